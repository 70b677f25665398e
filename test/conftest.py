import os

os.environ.update({
    'AWS_ACCESS_KEY_ID': 'testing',
    'AWS_SECRET_ACCESS_KEY': 'testing',
    'AWS_SECURITY_TOKEN': 'testing',
    'AWS_SESSION_TOKEN': 'testing',
    'AWS_DEFAULT_REGION': 'ap-south-1',
    'AWS_REGION': 'ap-south-1',
    'GEN_TABLE_NAME': 'food-ordering-gen-table-test',
    'IMAGES_BUCKET_NAME': 'food-ordering-images-test',
    'RAZORPAY_KEY_ID': 'rzp_test_key',
    'RAZORPAY_KEY_SECRET': 'rzp_test_secret',
    'JWT_SECRET': 'test-jwt-secret',
    'MAX_ITEM_QUANTITY': '10',
    'LOG_LEVEL': 'DEBUG',
})
os.environ.pop('ENDPOINT_URL', None)

import boto3  # noqa: E402
import pytest  # noqa: E402
from moto import mock_aws  # noqa: E402

import app as app_module  # noqa: E402
from chalicelib.config import get_settings  # noqa: E402
from chalicelib.payments import RazorpayGateway  # noqa: E402
from test.utils.fixtures import chalice_gateway  # noqa: E402,F401
from test.utils.payment_utils import FakeRazorpayClient  # noqa: E402


@pytest.fixture(autouse=True)
def aws():
    settings = get_settings()
    with mock_aws():
        boto3.client('dynamodb', region_name=settings.region).create_table(
            TableName=settings.table_name,
            KeySchema=[
                {'AttributeName': 'partkey', 'KeyType': 'HASH'},
                {'AttributeName': 'sortkey', 'KeyType': 'RANGE'}
            ],
            AttributeDefinitions=[
                {'AttributeName': 'partkey', 'AttributeType': 'S'},
                {'AttributeName': 'sortkey', 'AttributeType': 'S'}
            ],
            BillingMode='PAY_PER_REQUEST'
        )
        boto3.client('s3', region_name=settings.region).create_bucket(
            Bucket=settings.images_bucket,
            CreateBucketConfiguration={'LocationConstraint': settings.region}
        )
        yield


@pytest.fixture
def razorpay_client(monkeypatch) -> FakeRazorpayClient:
    client = FakeRazorpayClient()
    monkeypatch.setattr(app_module, 'payment_gateway', RazorpayGateway(get_settings(), client=client))
    return client
