import hashlib
import hmac
from decimal import Decimal
from typing import Dict

from chalicelib.config import Settings
from chalicelib.utils.exceptions import PaymentGatewayError, SignatureMismatch
from chalicelib.utils.logger import logger


def to_minor_units(amount: Decimal) -> int:
    """
    Gateway amounts are integers in the smallest currency unit (paise for INR)
    """
    return int((Decimal(amount) * 100).to_integral_value())


def generate_signature(secret: str, gateway_order_id: str, gateway_payment_id: str) -> str:
    message = f'{gateway_order_id}|{gateway_payment_id}'
    return hmac.new(secret.encode('utf-8'), message.encode('utf-8'), hashlib.sha256).hexdigest()


class RazorpayGateway:
    def __init__(self, settings: Settings, client=None):
        self.settings = settings
        self._client = client

    @property
    def key_id(self) -> str:
        return self.settings.razorpay_key_id

    @property
    def client(self):
        if self._client is None:
            import razorpay
            self._client = razorpay.Client(auth=(self.settings.razorpay_key_id, self.settings.razorpay_key_secret))
        return self._client

    def create_order(self, amount_minor: int, receipt: str) -> Dict:
        request_data = {'amount': amount_minor, 'currency': self.settings.currency, 'receipt': receipt}
        logger.info(f'create_order ::: creating gateway order {request_data=}')
        try:
            gateway_order = self.client.order.create(data=request_data)
        except Exception as error:
            logger.error(f'create_order ::: gateway order creation failed, {receipt=}, {error=}')
            raise PaymentGatewayError(f'Payment gateway order creation failed: {error}') from error
        if not gateway_order or not gateway_order.get('id'):
            raise PaymentGatewayError(f'Payment gateway returned no order id for {receipt=}')
        logger.info(f"create_order ::: gateway order {gateway_order['id']} created for {receipt=}")
        return {
            'id': gateway_order['id'],
            'amount': gateway_order.get('amount', amount_minor),
            'currency': gateway_order.get('currency', self.settings.currency)
        }

    def verify_signature(self, gateway_order_id: str, gateway_payment_id: str, signature: str) -> None:
        expected = generate_signature(self.settings.razorpay_key_secret, gateway_order_id, gateway_payment_id)
        if not hmac.compare_digest(expected.encode('utf-8'), str(signature).encode('utf-8')):
            logger.warning(f'verify_signature ::: signature mismatch for {gateway_order_id=} {gateway_payment_id=}')
            raise SignatureMismatch('Invalid payment signature')
        logger.info(f'verify_signature ::: signature verified for {gateway_order_id=}')
