from typing import Tuple, Dict, List, Optional
from uuid import uuid4

from boto3.dynamodb.conditions import Key
from chalice import Response
from chalice.app import Request

from chalicelib.base_class_entity import EntityBase, check_mandatory_fields, newest_first, now_iso
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import ROLE_ADMIN
from chalicelib.constants.status_codes import http200, http201
from chalicelib.images import ImageStorage, parse_multipart_request_data, UploadedFile
from chalicelib.utils import auth as utils_auth, db as utils_db, app as utils_app, exceptions
from chalicelib.utils.logger import logger


class Category(EntityBase):
    pk = keys_structure.categories_pk
    sk = keys_structure.categories_sk

    required_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'name_': lambda x: isinstance(x, str) and len(x) > 0,
        'image': lambda x: isinstance(x, str),
        'date_created': lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'image_thumb': lambda x: isinstance(x, str),
        'created_by': lambda x: isinstance(x, str)
    }

    def __init__(self, id_, **kwargs):
        EntityBase.__init__(self, id_)

        self.name_: str = kwargs.get('name_')
        self.image: str = kwargs.get('image')
        self.image_thumb: str = kwargs.get('image_thumb')
        self.created_by: str = kwargs.get('created_by')
        self.date_created: str = kwargs.get('date_created') or now_iso()
        self.record_type = 'category'
        self.image_file: Optional[UploadedFile] = kwargs.get('image_file')

    @classmethod
    @utils_auth.authenticate_class
    def init_request_create(cls, request: Request):
        logger.info("init_request_create ::: started")
        utils_auth.check_role(request.auth_result, [ROLE_ADMIN])
        fields, files = parse_multipart_request_data(request)
        name = (fields.get('name') or '').strip()
        check_mandatory_fields({'name': name, 'image': files.get('image')}, ['name', 'image'])
        return cls(
            id_=str(uuid4()),
            name_=name,
            created_by=request.auth_result['user_id'],
            image_file=files['image']
        )

    @classmethod
    def init_get_by_id(cls, category_id):
        logger.info(f"init_get_by_id ::: {category_id=}")
        try:
            return cls.from_db_record(cls(category_id)._get_db_item())
        except exceptions.RecordNotFound:
            raise exceptions.CategoryNotFound(f'Category {category_id} not found')

    @classmethod
    def get_all(cls) -> List['Category']:
        records: List[Dict] = utils_db.query_items_paged(Key('partkey').eq(cls.pk))
        return [cls.from_db_record(record) for record in newest_first(records)]

    @classmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_create_category(cls, request: Request, image_storage: ImageStorage) -> Response:
        category = cls.init_request_create(request)
        category.create(image_storage)
        return Response(status_code=http201,
                        body={'success': True, 'message': 'Category created', 'category': category.to_ui()})

    @classmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_get_all(cls) -> Response:
        categories = [category.to_ui() for category in cls.get_all()]
        logger.info(f"endpoint_get_all ::: returning categories={[category['id'] for category in categories]}")
        return Response(status_code=http200, body={'success': True, 'categories': categories})

    @classmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_get_by_id(cls, category_id) -> Response:
        category = cls.init_get_by_id(category_id)
        return Response(status_code=http200, body={'success': True, 'category': category.to_ui()})

    def create(self, image_storage: ImageStorage):
        """
        The name lock is written first and released if the image upload or the category record fails
        """
        self._reserve_name()
        try:
            stored_image = image_storage.store_image('categories', self.id_, self.image_file.content)
            self.image, self.image_thumb = stored_image.url, stored_image.thumb_url
            self._create_db_record()
        except Exception:
            logger.warning(f"create ::: category {self.id_} was not created, releasing name {self.name_}")
            self._release_name()
            raise

    def _name_lock_key(self) -> Dict:
        return {
            'partkey': keys_structure.category_names_pk,
            'sortkey': keys_structure.category_names_sk.format(name=self.name_.lower())
        }

    def _release_name(self):
        utils_db.delete_db_item(**self._name_lock_key())

    def _reserve_name(self):
        try:
            utils_db.put_db_record(
                {**self._name_lock_key(), 'record_type': 'category_name', 'category_id': self.id_},
                condition_expression='attribute_not_exists(partkey)'
            )
        except utils_db.ConditionNotMet:
            raise exceptions.CategoryAlreadyExists(f'Category with name {self.name_} already exists')

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(category_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'name_': self.name_,
            'image': self.image,
            'image_thumb': self.image_thumb,
            'created_by': self.created_by,
            'date_created': self.date_created
        }
