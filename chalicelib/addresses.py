from typing import Tuple, Dict, List, Optional
from uuid import uuid4

from boto3.dynamodb.conditions import Key
from chalice import Response
from chalice.app import Request

from chalicelib.base_class_entity import EntityBase, check_mandatory_fields, newest_first, now_iso
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import ROLE_ADMIN
from chalicelib.constants.status_codes import http200, http201
from chalicelib.utils import auth as utils_auth, db as utils_db, app as utils_app, data as utils_data, exceptions
from chalicelib.utils.logger import logger

ADDRESS_FIELDS = ('street', 'city', 'state', 'zip', 'country')


class Address(EntityBase):
    pk = keys_structure.addresses_pk
    sk = keys_structure.addresses_sk

    required_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'user_id': lambda x: isinstance(x, str),
        'street': lambda x: isinstance(x, str) and len(x) > 0,
        'city': lambda x: isinstance(x, str) and len(x) > 0,
        'state': lambda x: isinstance(x, str) and len(x) > 0,
        'country': lambda x: isinstance(x, str) and len(x) > 0,
        'date_created': lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'zip': lambda x: isinstance(x, str),
        'date_updated': lambda x: isinstance(x, str)
    }

    def __init__(self, id_, user_id=None, **kwargs):
        EntityBase.__init__(self, id_)

        self.user_id: str = user_id
        self.street: str = kwargs.get('street')
        self.city: str = kwargs.get('city')
        self.state: str = kwargs.get('state')
        self.zip: Optional[str] = kwargs.get('zip')
        self.country: str = kwargs.get('country')
        self.date_created: str = kwargs.get('date_created') or now_iso()
        self.date_updated: str = kwargs.get('date_updated') or self.date_created
        self.record_type = 'address'

    @classmethod
    @utils_auth.authenticate_class
    def init_request_create(cls, request: Request):
        logger.info("init_request_create ::: started")
        body = utils_data.parse_raw_body(request)
        fields = {key: str(body[key]).strip() for key in ADDRESS_FIELDS if body.get(key) is not None}
        check_mandatory_fields(fields, ['street', 'city', 'state', 'country'])
        return cls(
            id_=str(uuid4()),
            user_id=request.auth_result['user_id'],
            street=fields['street'],
            city=fields['city'],
            state=fields['state'],
            zip=fields.get('zip') or None,
            country=fields['country']
        )

    @classmethod
    @utils_auth.authenticate_class
    def init_auth(cls, request: Request) -> Dict:
        return request.auth_result

    @classmethod
    def init_get_by_id(cls, user_id, address_id):
        logger.info(f"init_get_by_id ::: {user_id=} {address_id=}")
        try:
            return cls.from_db_record(cls(address_id, user_id=user_id)._get_db_item())
        except exceptions.RecordNotFound:
            raise exceptions.AddressNotFound(f'Address {address_id} not found')

    @classmethod
    def get_by_user(cls, user_id) -> List['Address']:
        records: List[Dict] = utils_db.query_items_paged(
            Key('partkey').eq(cls.pk.format(user_id=user_id))
        )
        return [cls.from_db_record(record) for record in newest_first(records)]

    @classmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_create_address(cls, request: Request) -> Response:
        address = cls.init_request_create(request)
        address._create_db_record()
        return Response(status_code=http201,
                        body={'success': True, 'message': 'Address added', 'address': address.to_ui()})

    @classmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_get_my_addresses(cls, request: Request) -> Response:
        auth_result = cls.init_auth(request)
        addresses = [address.to_ui() for address in cls.get_by_user(auth_result['user_id'])]
        return Response(status_code=http200, body={'success': True, 'addresses': addresses})

    @classmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_get_user_addresses(cls, request: Request, user_id) -> Response:
        auth_result = cls.init_auth(request)
        utils_auth.check_role(auth_result, [ROLE_ADMIN])
        addresses = [address.to_ui() for address in cls.get_by_user(user_id)]
        logger.info(f"endpoint_get_user_addresses ::: {user_id=} has {len(addresses)} addresses")
        return Response(status_code=http200, body={'success': True, 'addresses': addresses})

    def snapshot(self) -> Dict:
        """
        Copy of the address stored on an order, later edits of the address don't change placed orders
        """
        return {key: getattr(self, key) for key in ADDRESS_FIELDS if getattr(self, key) is not None}

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk.format(user_id=self.user_id), self.sk.format(address_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'user_id': self.user_id,
            'street': self.street,
            'city': self.city,
            'state': self.state,
            'zip': self.zip,
            'country': self.country,
            'date_created': self.date_created,
            'date_updated': self.date_updated
        }
