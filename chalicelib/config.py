import functools
import os
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Settings:
    table_name: str
    region: str
    images_bucket: str
    images_base_url: str
    max_image_width: int
    max_thumbnail_width: int
    razorpay_key_id: str
    razorpay_key_secret: str
    currency: str
    jwt_secret: str
    jwt_algorithm: str
    max_item_quantity: int
    log_level: str
    dynamodb_endpoint_url: Optional[str] = None

    @classmethod
    def from_env(cls, environ=None) -> 'Settings':
        """
        Builds settings from environment variables
        (provided by .chalice/config.json for deployed stages)
        """
        if environ is None:
            environ = os.environ
        region = environ.get('AWS_REGION', 'ap-south-1')
        images_bucket = environ.get('IMAGES_BUCKET_NAME', 'food-ordering-images')
        return cls(
            table_name=environ.get('GEN_TABLE_NAME', 'food-ordering-gen-table'),
            region=region,
            images_bucket=images_bucket,
            images_base_url=environ.get('IMAGES_BASE_URL') or f'https://{images_bucket}.s3.{region}.amazonaws.com',
            max_image_width=int(environ.get('MAX_IMG_WIDTH', 1024)),
            max_thumbnail_width=int(environ.get('MAX_THUMBNAIL_WIDTH', 256)),
            razorpay_key_id=environ.get('RAZORPAY_KEY_ID', ''),
            razorpay_key_secret=environ.get('RAZORPAY_KEY_SECRET', ''),
            currency=environ.get('PAYMENT_CURRENCY', 'INR'),
            jwt_secret=environ.get('JWT_SECRET', 'dev-secret-change-me'),
            jwt_algorithm=environ.get('JWT_ALGORITHM', 'HS256'),
            max_item_quantity=int(environ.get('MAX_ITEM_QUANTITY', 50)),
            log_level=environ.get('LOG_LEVEL', 'DEBUG').upper(),
            dynamodb_endpoint_url=environ.get('ENDPOINT_URL') or None
        )


@functools.lru_cache(maxsize=None)
def get_settings() -> Settings:
    return Settings.from_env()
