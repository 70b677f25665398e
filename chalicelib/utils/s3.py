import tempfile

from boto3.exceptions import Boto3Error
from botocore.exceptions import BotoCoreError, ClientError

from chalicelib.config import Settings
from chalicelib.utils.boto_clients import s3_client
from chalicelib.utils.exceptions import ImageUploadError
from chalicelib.utils.logger import logger


def public_url(settings: Settings, file_path: str) -> str:
    return f"{settings.images_base_url.rstrip('/')}/{file_path}"


def upload_file_to_s3(settings: Settings, body: bytes, file_path: str, content_type: str) -> str:
    client = s3_client()
    try:
        with tempfile.TemporaryFile() as tf:
            tf.write(body)
            tf.seek(0)
            client.upload_fileobj(tf, settings.images_bucket, f'{file_path}', ExtraArgs={'ContentType': content_type})
    except (Boto3Error, BotoCoreError, ClientError) as error:
        logger.error(f'upload_file_to_s3:: FAILED, file_path:{file_path}, {error=}')
        raise ImageUploadError(f'Image upload failed: {error}')
    logger.info(f'upload_file_to_s3:: SUCCESS, file_name_uuid:{file_path} ')
    return public_url(settings, file_path)
