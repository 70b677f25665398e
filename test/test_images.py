from dataclasses import replace
from io import BytesIO

import pytest
from PIL import Image

from chalicelib.config import get_settings
from chalicelib.constants.constants import MAIN_IMAGE_NAME, THUMB_IMAGE_NAME
from chalicelib.images import compress_images, get_resize_width_height, ImageStorage
from chalicelib.utils import exceptions
from chalicelib.utils.boto_clients import s3_client
from test.utils.request_utils import make_test_image


def test_get_resize_width_height_downscales_only():
    assert get_resize_width_height(Image.new('RGB', (2048, 1024)), 1024) == (1024, 512)
    assert get_resize_width_height(Image.new('RGB', (500, 1000)), 250) == (125, 250)
    assert get_resize_width_height(Image.new('RGB', (300, 200)), 1024) == (300, 200)


def test_compress_images():
    main, thumb = compress_images(BytesIO(make_test_image(2000, 1000)), 1024, 256)

    main_image, thumb_image = Image.open(BytesIO(main)), Image.open(BytesIO(thumb))
    assert main_image.format == 'JPEG'
    assert main_image.size == (1024, 512)
    assert thumb_image.format == 'JPEG'
    assert max(thumb_image.size) <= 256


def test_compress_images_converts_transparent_png():
    image = Image.new('RGBA', (64, 64), color=(0, 0, 0, 0))
    buf = BytesIO()
    image.save(buf, format='PNG')

    main, _ = compress_images(BytesIO(buf.getvalue()), 1024, 256)
    assert Image.open(BytesIO(main)).mode == 'RGB'


def test_compress_images_invalid_file():
    with pytest.raises(exceptions.ValidationException):
        compress_images(BytesIO(b'not an image'), 1024, 256)


@pytest.mark.local_db_test
def test_store_image():
    settings = get_settings()
    stored = ImageStorage(settings).store_image('menu_items', 'menu-item-id', make_test_image())

    assert stored.url == f'{settings.images_base_url}/menu_items/menu-item-id/images/{MAIN_IMAGE_NAME}'
    assert stored.thumb_url == f'{settings.images_base_url}/menu_items/menu-item-id/images/{THUMB_IMAGE_NAME}'
    keys = [obj['Key'] for obj in s3_client().list_objects_v2(Bucket=settings.images_bucket)['Contents']]
    assert sorted(keys) == [f'menu_items/menu-item-id/images/{MAIN_IMAGE_NAME}',
                            f'menu_items/menu-item-id/images/{THUMB_IMAGE_NAME}']


def test_store_image_rejects_unknown_entity():
    with pytest.raises(exceptions.ValidationException):
        ImageStorage(get_settings()).store_image('users', 'user-id', make_test_image())


def test_store_image_upload_failure():
    settings = get_settings()
    storage = ImageStorage(replace(settings, images_bucket='missing-bucket'))

    with pytest.raises(exceptions.ImageUploadError):
        storage.store_image('categories', 'category-id', make_test_image())
