from decimal import Decimal

import jwt
import pytest
from botocore.exceptions import ClientError

from chalicelib.config import Settings, get_settings
from chalicelib.utils import auth, data, db, exceptions


def client_error(code):
    return ClientError({'Error': {'Code': code, 'Message': code}}, 'PutItem')


@pytest.mark.parametrize('value, expected', [
    (100, Decimal('100.00')),
    ('99.999', Decimal('100.00')),
    (Decimal('12.5'), Decimal('12.50')),
    ('0', Decimal('0.00')),
])
def test_to_money(value, expected):
    assert data.to_money(value) == expected


@pytest.mark.parametrize('value', [-1, 'abc', None, True, 'NaN', 'Infinity'])
def test_to_money_invalid(value):
    with pytest.raises(exceptions.ValidationException):
        data.to_money(value)


@pytest.mark.parametrize('value, expected', [(1, 1), ('3', 3), (Decimal('4'), 4)])
def test_to_quantity(value, expected):
    assert data.to_quantity(value) == expected


def test_to_bool():
    assert data.to_bool('True', 'isAvailable') is True
    assert data.to_bool('false', 'isAvailable') is False
    with pytest.raises(exceptions.ValidationException):
        data.to_bool('yes', 'isAvailable')


def test_fix_values_from_ui():
    assert data.fix_values_from_ui({'price': 1.5, 'comment': None, 'name': ''}) == {'price': Decimal('1.5'), 'name': ''}
    assert data.fix_values_from_ui({'name': '', '_values_from_ui_strategy': 'delete_empty'}) == {}


def test_status_codes_for_every_error_kind():
    assert {kind: exceptions.status_code_for(kind) for kind in exceptions.ErrorKind} == {
        exceptions.ErrorKind.INVALID_INPUT: 400,
        exceptions.ErrorKind.NOT_AUTHORIZED: 401,
        exceptions.ErrorKind.ACCESS_DENIED: 403,
        exceptions.ErrorKind.NOT_FOUND: 404,
        exceptions.ErrorKind.SIGNATURE_MISMATCH: 400,
        exceptions.ErrorKind.UPSTREAM_FAILURE: 500,
        exceptions.ErrorKind.UNHANDLED_FAILURE: 500,
    }
    assert exceptions.QuantityLimitExceeded.KIND == exceptions.ErrorKind.INVALID_INPUT
    assert exceptions.CartItemNotFound.KIND == exceptions.ErrorKind.NOT_FOUND
    assert exceptions.PaymentGatewayError.KIND == exceptions.ErrorKind.UPSTREAM_FAILURE


def test_settings_from_env_defaults():
    settings = Settings.from_env({})

    assert settings.table_name == 'food-ordering-gen-table'
    assert settings.images_base_url == 'https://food-ordering-images.s3.ap-south-1.amazonaws.com'
    assert settings.max_item_quantity == 50
    assert settings.currency == 'INR'
    assert settings.dynamodb_endpoint_url is None


def test_decode_token():
    settings = get_settings()
    token = jwt.encode({'sub': 'user-1', 'role': 'admin', 'email': 'a@b.c'}, settings.jwt_secret,
                       algorithm=settings.jwt_algorithm)

    assert auth.decode_token(token) == {'user_id': 'user-1', 'role': 'admin', 'name': None, 'email': 'a@b.c'}


@pytest.mark.parametrize('claims, secret', [
    ({'sub': 'user-1'}, 'wrong-secret'),
    ({'role': 'user'}, None),
    ({'sub': 'user-1', 'role': 'superuser'}, None),
])
def test_decode_token_invalid(claims, secret):
    settings = get_settings()
    token = jwt.encode(claims, secret or settings.jwt_secret, algorithm=settings.jwt_algorithm)

    with pytest.raises(exceptions.NotAuthorizedException):
        auth.decode_token(token)


def test_check_user_access():
    auth.check_user_access({'user_id': 'user-1', 'role': 'user'}, 'user-1')
    auth.check_user_access({'user_id': 'admin-1', 'role': 'admin'}, 'user-1')
    with pytest.raises(exceptions.AccessDenied):
        auth.check_user_access({'user_id': 'user-2', 'role': 'user'}, 'user-1')


def test_db_backoff_retries_throttling(monkeypatch):
    monkeypatch.setattr(db.time, 'sleep', lambda seconds: None)
    attempts = []

    def put_item(**kwargs):
        attempts.append(kwargs)
        if len(attempts) < 3:
            raise client_error('ProvisionedThroughputExceededException')
        return {'ok': True}

    assert db.exp_db_backoff(put_item)(Item={}) == {'ok': True}
    assert len(attempts) == 3
    assert attempts[0]['ReturnConsumedCapacity'] == 'TOTAL'


def test_db_backoff_gives_up(monkeypatch):
    monkeypatch.setattr(db.time, 'sleep', lambda seconds: None)

    def put_item(**kwargs):
        raise client_error('ThrottlingException')

    with pytest.raises(exceptions.NumberOfRetriesExceeded):
        db.exp_db_backoff(put_item)(Item={})


def test_db_backoff_does_not_retry_other_errors():
    attempts = []

    def put_item(**kwargs):
        attempts.append(kwargs)
        raise client_error('ValidationException')

    with pytest.raises(ClientError):
        db.exp_db_backoff(put_item)(Item={})
    assert len(attempts) == 1
