import boto3

from botocore.config import Config

from chalicelib.config import get_settings


def aws_config() -> Config:
    return Config(retries={'max_attempts': 30}, region_name=get_settings().region)


def dynamodb_resource():
    """
    DynamoDB Resource.
    ENDPOINT_URL points the resource to a local DynamoDB (test stage)
    """
    settings = get_settings()
    if settings.dynamodb_endpoint_url:
        return boto3.resource('dynamodb', endpoint_url=settings.dynamodb_endpoint_url, config=aws_config())
    return boto3.resource('dynamodb', config=aws_config())


def s3_client():
    """
    S3 Client.
    Clients provide a low-level interface to AWS services whose methods map close to 1:1 with service APIs.
    """
    return boto3.client('s3', config=aws_config())
