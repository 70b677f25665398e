from decimal import Decimal

import pytest

from chalicelib.config import get_settings
from chalicelib.payments import RazorpayGateway, generate_signature, to_minor_units
from chalicelib.utils import exceptions
from test.utils.payment_utils import FakeRazorpayClient, sign_payment


def flip_one_bit(signature: str, position: int) -> str:
    char = signature[position]
    flipped = format(int(char, 16) ^ 1, 'x')
    return signature[:position] + flipped + signature[position + 1:]


def test_to_minor_units():
    assert to_minor_units(Decimal('250.00')) == 25000
    assert to_minor_units(Decimal('99.99')) == 9999
    assert to_minor_units(Decimal('0')) == 0


def test_generate_signature_is_hmac_sha256_hex():
    signature = generate_signature('secret', 'order_1', 'pay_1')

    assert len(signature) == 64
    assert signature == generate_signature('secret', 'order_1', 'pay_1')
    assert signature != generate_signature('secret', 'order_1', 'pay_2')
    assert signature != generate_signature('other-secret', 'order_1', 'pay_1')


def test_verify_signature():
    gateway = RazorpayGateway(get_settings(), client=FakeRazorpayClient())

    gateway.verify_signature('order_1', 'pay_1', sign_payment('order_1', 'pay_1'))


@pytest.mark.parametrize('position', [0, 17, 63])
def test_verify_tampered_signature(position):
    gateway = RazorpayGateway(get_settings(), client=FakeRazorpayClient())
    signature = flip_one_bit(sign_payment('order_1', 'pay_1'), position)

    with pytest.raises(exceptions.SignatureMismatch):
        gateway.verify_signature('order_1', 'pay_1', signature)


def test_verify_signature_non_hex_input():
    gateway = RazorpayGateway(get_settings(), client=FakeRazorpayClient())

    with pytest.raises(exceptions.SignatureMismatch):
        gateway.verify_signature('order_1', 'pay_1', 'подпись')


def test_create_order():
    client = FakeRazorpayClient()
    gateway = RazorpayGateway(get_settings(), client=client)

    gateway_order = gateway.create_order(25000, receipt='order-id')

    assert gateway_order == {'id': 'order_test1', 'amount': 25000, 'currency': 'INR'}
    assert client.order.calls == [{'amount': 25000, 'currency': 'INR', 'receipt': 'order-id'}]


def test_create_order_failure():
    client = FakeRazorpayClient()
    client.order.fail_with = ConnectionError('gateway is down')
    gateway = RazorpayGateway(get_settings(), client=client)

    with pytest.raises(exceptions.PaymentGatewayError):
        gateway.create_order(25000, receipt='order-id')


def test_key_id():
    assert RazorpayGateway(get_settings(), client=FakeRazorpayClient()).key_id == 'rzp_test_key'
