from decimal import Decimal
from typing import List, Dict, Tuple, Optional
from uuid import uuid4

from boto3.dynamodb.conditions import Attr, Key
from chalice import Response
from chalice.app import Request

from chalicelib.base_class_entity import EntityBase, check_mandatory_fields, newest_first, now_iso
from chalicelib.categories import Category
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import ROLE_ADMIN, MENU_ITEM_TYPES
from chalicelib.constants.status_codes import http200, http201
from chalicelib.images import ImageStorage, parse_multipart_request_data, UploadedFile
from chalicelib.utils import auth as utils_auth, data as utils_data, exceptions, db as utils_db, app as utils_app
from chalicelib.utils.logger import logger


class MenuItem(EntityBase):
    pk = keys_structure.menu_items_pk
    sk = keys_structure.menu_items_sk

    required_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'name_': lambda x: isinstance(x, str) and len(x) > 0,
        'description': lambda x: isinstance(x, str),
        'price': lambda x: isinstance(x, Decimal) and x >= 0,
        'image': lambda x: isinstance(x, str),
        'category_id': lambda x: isinstance(x, str),
        'type_': lambda x: x in MENU_ITEM_TYPES,
        'is_available': lambda x: isinstance(x, bool),
        "date_created": lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'image_thumb': lambda x: isinstance(x, str),
        'created_by': lambda x: isinstance(x, str)
    }

    def __init__(self, id_, **kwargs):
        EntityBase.__init__(self, id_)

        self.name_: str = kwargs.get('name_')
        self.description: str = kwargs.get('description')
        self.price: Decimal = Decimal(kwargs.get('price')).quantize(Decimal('1.00')) if \
            type(kwargs.get('price')) in [int, float, Decimal] else None
        self.image: str = kwargs.get('image')
        self.image_thumb: str = kwargs.get('image_thumb')
        self.category_id: str = kwargs.get('category_id')
        self.type_: str = kwargs.get('type_')
        self.is_available: bool = kwargs.get('is_available', True)
        self.created_by: str = kwargs.get('created_by')
        self.date_created: str = kwargs.get('date_created') or now_iso()
        self.record_type = 'menu_item'
        self.image_file: Optional[UploadedFile] = kwargs.get('image_file')

    @classmethod
    @utils_auth.authenticate_class
    def init_request_create(cls, request: Request):
        logger.info("init_request_create ::: started")
        utils_auth.check_role(request.auth_result, [ROLE_ADMIN])
        fields, files = parse_multipart_request_data(request)
        fields = {key: value.strip() for key, value in fields.items()}
        check_mandatory_fields(
            {**fields, 'image': files.get('image')},
            ['name', 'description', 'price', 'category', 'type', 'image']
        )
        if fields['type'] not in MENU_ITEM_TYPES:
            raise exceptions.ValidationException(f'type must be one of {", ".join(MENU_ITEM_TYPES)}')
        is_available = utils_data.to_bool(fields['isAvailable'], 'isAvailable') if fields.get('isAvailable') else True
        return cls(
            id_=str(uuid4()),
            name_=fields['name'],
            description=fields['description'],
            price=utils_data.to_money(fields['price']),
            category_id=fields['category'],
            type_=fields['type'],
            is_available=is_available,
            created_by=request.auth_result['user_id'],
            image_file=files['image']
        )

    @classmethod
    def init_get_by_id(cls, menu_item_id):
        logger.info(f"init_get_by_id ::: {menu_item_id=}")
        try:
            return cls.from_db_record(cls(menu_item_id)._get_db_item())
        except exceptions.RecordNotFound:
            raise exceptions.MenuItemNotFound(f'Menu item {menu_item_id} not found')

    @classmethod
    def get_all(cls, category_id=None) -> List['MenuItem']:
        filter_expression = Attr('category_id').eq(category_id) if category_id else None
        records: List[Dict] = utils_db.query_items_paged(Key('partkey').eq(cls.pk), filter_expression=filter_expression)
        return [cls.from_db_record(record) for record in newest_first(records)]

    @staticmethod
    def with_categories(menu_items: List['MenuItem']) -> List[Dict]:
        categories: Dict[str, Dict] = {}
        result = []
        for menu_item in menu_items:
            if menu_item.category_id not in categories:
                try:
                    categories[menu_item.category_id] = Category.init_get_by_id(menu_item.category_id).to_ui()
                except exceptions.CategoryNotFound:
                    logger.warning(f'with_categories ::: {menu_item.id_=} references missing '
                                   f'category {menu_item.category_id}')
                    categories[menu_item.category_id] = None
            result.append({**menu_item.to_ui(), 'category': categories[menu_item.category_id]})
        return result

    @classmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_create_menu_item(cls, request: Request, image_storage: ImageStorage) -> Response:
        menu_item = cls.init_request_create(request)
        menu_item.create(image_storage)
        return Response(status_code=http201,
                        body={'success': True, 'message': 'Menu item created', 'menu': menu_item.to_ui()})

    @classmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_get_all(cls) -> Response:
        menus = cls.with_categories(cls.get_all())
        logger.info(f"endpoint_get_all ::: returning menu items={[menu['id'] for menu in menus]}")
        return Response(status_code=http200, body={'success': True, 'menus': menus})

    @classmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_get_by_id(cls, menu_item_id) -> Response:
        menu = cls.with_categories([cls.init_get_by_id(menu_item_id)])[0]
        return Response(status_code=http200, body={'success': True, 'menu': menu})

    @classmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_get_by_category(cls, category_id) -> Response:
        category = Category.init_get_by_id(category_id)
        menus = [menu_item.to_ui() for menu_item in cls.get_all(category_id=category.id_)]
        return Response(status_code=http200, body={'success': True, 'category': category.to_ui(), 'menus': menus})

    def create(self, image_storage: ImageStorage):
        Category.init_get_by_id(self.category_id)
        stored_image = image_storage.store_image('menu_items', self.id_, self.image_file.content)
        self.image, self.image_thumb = stored_image.url, stored_image.thumb_url
        self._create_db_record()

    def is_available_right_now(self) -> bool:
        return self.is_available is True

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(menu_item_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'name_': self.name_,
            'description': self.description,
            'price': self.price,
            'image': self.image,
            'image_thumb': self.image_thumb,
            'category_id': self.category_id,
            'type_': self.type_,
            'is_available': self.is_available,
            'created_by': self.created_by,
            'date_created': self.date_created
        }
