from chalice.test import Client
from app import app


def test_index():
    with Client(app) as client:
        response = client.http.get('/health-check')
        assert response.json_body == {'health': 'check'}


def test_unknown_token_is_rejected():
    with Client(app) as client:
        response = client.http.get('/carts', headers={'Authorization': 'Bearer not-a-jwt'})
        assert response.status_code == 401
        assert response.json_body['error_kind'] == 'not_authorized'


def test_missing_token_is_rejected():
    with Client(app) as client:
        response = client.http.get('/orders')
        assert response.status_code == 401
        assert response.json_body['success'] is False
