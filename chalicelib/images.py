from email.message import Message
from io import BytesIO
from typing import Tuple, Dict, NamedTuple, Optional

from PIL import Image, UnidentifiedImageError
from chalice.app import Request
from requests_toolbelt.multipart.decoder import MultipartDecoder, ImproperBodyPartContentException, \
    NonMultipartContentTypeException

from chalicelib.config import Settings
from chalicelib.constants.constants import MAIN_IMAGE_NAME, THUMB_IMAGE_NAME
from chalicelib.utils.exceptions import ValidationException, MandatoryFieldsAreNotFilled
from chalicelib.utils.logger import logger
from chalicelib.utils.s3 import upload_file_to_s3

entities_to_upload_attachment_white_list = ['categories', 'menu_items']


class UploadedFile(NamedTuple):
    filename: Optional[str]
    content_type: Optional[str]
    content: bytes


class StoredImage(NamedTuple):
    url: str
    thumb_url: str


def get_resize_width_height(image: Image.Image, max_width: int) -> Tuple[int, int]:
    width, height = image.size
    divider = max([width, height]) / max_width
    if divider <= 1:
        return width, height
    return max(int(width / divider), 1), max(int(height / divider), 1)


def get_thumbnail(image: Image.Image, max_thumbnail_width: int) -> Image.Image:
    image_thumb = image.copy()
    image_thumb.thumbnail(size=get_resize_width_height(image_thumb, max_thumbnail_width))
    return image_thumb


def compress_images(image_file_obj: BytesIO, max_width: int, max_thumbnail_width: int) -> Tuple[bytes, bytes]:
    try:
        image: Image.Image = Image.open(image_file_obj)
        image.load()
    except (UnidentifiedImageError, OSError) as error:
        raise ValidationException(f'Uploaded file is not a valid image: {error}')
    image = image.convert('RGB')
    image = image.resize(size=get_resize_width_height(image, max_width))

    image_thumb: Image.Image = get_thumbnail(image, max_thumbnail_width)

    buf_main = BytesIO()
    image.save(buf_main, format='JPEG', optimize=True, quality=90)

    buf_thumb = BytesIO()
    image_thumb.save(buf_thumb, format='JPEG', optimize=True, quality=90)

    return buf_main.getvalue(), buf_thumb.getvalue()


def _content_disposition_params(raw_header: bytes) -> Tuple[Optional[str], Optional[str]]:
    message = Message()
    message['content-disposition'] = raw_header.decode('utf-8')
    return message.get_param('name', header='content-disposition'), message.get_filename()


def parse_multipart_request_data(current_request: Request) -> Tuple[Dict[str, str], Dict[str, UploadedFile]]:
    """
    Splits a multipart/form-data body into plain text fields and uploaded files
    """
    content_type = current_request.headers.get('content-type', '')
    body = current_request.raw_body or b''
    if 'boundary=' not in content_type:
        raise ValidationException('multipart/form-data request without boundary')
    try:
        decoder = MultipartDecoder(body, content_type)
    except (NonMultipartContentTypeException, ImproperBodyPartContentException) as error:
        raise ValidationException(f'Request body is not a valid multipart/form-data: {error}')

    fields, files = {}, {}
    for part in decoder.parts:
        disposition = part.headers.get(b'Content-Disposition')
        if not disposition:
            continue
        name, filename = _content_disposition_params(disposition)
        if not name:
            continue
        if filename is not None:
            part_content_type = part.headers.get(b'Content-Type')
            files[name] = UploadedFile(
                filename=filename,
                content_type=part_content_type.decode('utf-8') if part_content_type else None,
                content=part.content
            )
        else:
            fields[name] = part.text
    logger.info(f'parse_multipart_request_data ::: fields={list(fields)}, files={list(files)}')
    return fields, files


class ImageStorage:
    def __init__(self, settings: Settings):
        self.settings = settings

    def store_image(self, entity_type: str, entity_id: str, file_content: bytes) -> StoredImage:
        if entity_type not in entities_to_upload_attachment_white_list:
            raise ValidationException(f'You could not upload attachment to {entity_type=}')
        if not file_content:
            raise MandatoryFieldsAreNotFilled('Image file is required')

        content_main, content_thumb = compress_images(
            BytesIO(file_content), self.settings.max_image_width, self.settings.max_thumbnail_width)

        entity_path = f'{entity_type}/{entity_id}/images'
        url_main = upload_file_to_s3(self.settings, content_main, f'{entity_path}/{MAIN_IMAGE_NAME}', 'image/jpeg')
        url_thumb = upload_file_to_s3(self.settings, content_thumb, f'{entity_path}/{THUMB_IMAGE_NAME}', 'image/jpeg')
        logger.info(f'store_image ::: {entity_type} {entity_id} image was uploaded successfully')
        return StoredImage(url=url_main, thumb_url=url_thumb)
