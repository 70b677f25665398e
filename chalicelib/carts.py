from decimal import Decimal
from typing import Tuple, List, Dict, Any

from chalice import Response
from chalice.app import Request

from chalicelib.base_class_entity import EntityBase, check_mandatory_fields, now_iso
from chalicelib.config import get_settings
from chalicelib.constants import keys_structure
from chalicelib.constants.status_codes import http200
from chalicelib.menu_items import MenuItem
from chalicelib.utils import auth as utils_auth, db as utils_db, app as utils_app, data as utils_data, exceptions
from chalicelib.utils.logger import logger


class Cart(EntityBase):
    """
    One cart per user, the user id is the cart id.
    Line items are kept in a map {menu_item_id: {'id': menu_item_id, 'qty': quantity}}
    so the same menu item can never appear twice
    """
    pk = keys_structure.carts_pk
    sk = keys_structure.carts_sk

    def __init__(self, id_, request_body=None, **kwargs):
        EntityBase.__init__(self, id_)

        if request_body is None:
            request_body = {}

        self.request_body: Dict = request_body
        self.user_name: Any[str, None] = kwargs.get('user_name')
        self.menu_items: Dict = kwargs.get('menu_items') or {}
        self.date_updated: Any[str, None] = kwargs.get('date_updated')
        self.record_type: str = 'cart'

    def _fill_db_item(self):
        try:
            self.db_record = self._get_db_item()
        except exceptions.RecordNotFound:
            raise exceptions.CartNotFound(f'Cart of user {self.id_} not found')
        self._fill_from_record(self.db_record)

    def _fill_from_record(self, record: Dict):
        self.user_name = record.get('user_name')
        self.menu_items = record.get('menu_items') or {}
        self.date_updated = record.get('date_updated')

    @classmethod
    def init_by_user_id(cls, user_id):
        c = cls(id_=user_id)
        c._fill_db_item()
        return c

    @classmethod
    @utils_auth.authenticate_class
    def init_endpoint(cls, request: Request):
        logger.info("init_endpoint ::: started")
        auth_result = request.auth_result
        return cls(
            id_=auth_result['user_id'],
            user_name=auth_result.get('name'),
            request_body=utils_data.parse_raw_body(request)
        )

    @classmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_get_cart(cls, request: Request):
        cart = cls.init_endpoint(request)
        cart._fill_db_item()
        return Response(status_code=http200, body={'success': True, 'cart': cart.to_ui()})

    @classmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_add_item_to_cart(cls, request: Request):
        cart = cls.init_endpoint(request)
        body = cart.request_body
        check_mandatory_fields(body, ['menu_item_id'])
        quantity = utils_data.to_quantity(body.get('quantity', 1))
        cart.add_item(str(body['menu_item_id']), quantity)
        return Response(status_code=http200,
                        body={'success': True, 'message': 'Item added to cart', 'cart': cart.to_ui()})

    @classmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_remove_item_from_cart(cls, request: Request, menu_item_id):
        cart = cls.init_endpoint(request)
        cart.remove_item(menu_item_id)
        return Response(status_code=http200,
                        body={'success': True, 'message': 'Item removed from cart', 'cart': cart.to_ui()})

    @classmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_clear_cart(cls, request: Request):
        cart = cls.init_endpoint(request)
        cart.clear()
        return Response(status_code=http200, body={'success': True, 'message': 'Cart was successfully cleared'})

    def add_item(self, menu_item_id: str, quantity: int):
        """
        Three atomic updates instead of read-modify-write:
        create the cart if absent, create the line if absent, increment the line quantity on the db side.
        The increment is conditional so a line never exceeds max_item_quantity
        """
        max_quantity = get_settings().max_item_quantity
        if quantity > max_quantity:
            raise exceptions.QuantityLimitExceeded(f'Quantity of one item cannot exceed {max_quantity}')
        menu_item = MenuItem.init_get_by_id(menu_item_id)
        if not menu_item.is_available_right_now():
            raise exceptions.SomeItemsAreNotAvailable(f'Menu item {menu_item_id} is not available')

        key = self._get_key()
        set_cart_expr = 'SET id_ = :user_id, record_type = :record_type, date_updated = :now, ' \
                        'menu_items = if_not_exists(menu_items, :empty)'
        values = {':user_id': self.id_, ':record_type': self.record_type, ':now': now_iso(), ':empty': {}}
        if self.user_name:
            set_cart_expr += ', user_name = :user_name'
            values[':user_name'] = self.user_name
        utils_db.update_db_item(key, set_cart_expr, values, return_values='NONE')

        utils_db.update_db_item(
            key,
            'SET menu_items.#item = if_not_exists(menu_items.#item, :new_line)',
            {':new_line': {'id': menu_item_id, 'qty': 0}},
            {'#item': menu_item_id},
            return_values='NONE'
        )

        try:
            record = utils_db.update_db_item(
                key,
                'SET menu_items.#item.qty = menu_items.#item.qty + :qty',
                {':qty': quantity, ':limit': max_quantity - quantity},
                {'#item': menu_item_id},
                condition_expression='menu_items.#item.qty <= :limit'
            )
        except utils_db.ConditionNotMet:
            raise exceptions.QuantityLimitExceeded(f'Quantity of one item cannot exceed {max_quantity}')
        self._fill_from_record(record)
        logger.info(f"add_item ::: {menu_item_id=} {quantity=} added to cart of user {self.id_}")

    def remove_item(self, menu_item_id: str):
        try:
            record = utils_db.update_db_item(
                self._get_key(),
                'REMOVE menu_items.#item SET date_updated = :now',
                {':now': now_iso()},
                {'#item': menu_item_id},
                condition_expression='attribute_exists(menu_items.#item)'
            )
        except utils_db.ConditionNotMet:
            raise exceptions.CartItemNotFound(f'Menu item {menu_item_id} is not in the cart')
        self._fill_from_record(record)
        logger.info(f"remove_item ::: {menu_item_id=} removed from cart of user {self.id_}")

    def clear(self, missing_ok=False):
        """
        Empties the item map, the cart record itself is kept
        """
        try:
            record = utils_db.update_db_item(
                self._get_key(),
                'SET menu_items = :empty, date_updated = :now',
                {':empty': {}, ':now': now_iso()},
                condition_expression='attribute_exists(partkey)'
            )
        except utils_db.ConditionNotMet:
            if missing_ok:
                logger.info(f"clear ::: user {self.id_} has no cart, nothing to clear")
                return
            raise exceptions.CartNotFound(f'Cart of user {self.id_} not found')
        self._fill_from_record(record)
        logger.info(f"clear ::: item list in the cart of user {self.id_} was successfully cleared")

    def lines(self) -> List[Dict]:
        """
        Cart lines as a list of {menu_item_id, quantity}
        """
        return [{'menu_item_id': item_id, 'quantity': int(info.get('qty', 0))}
                for item_id, info in self.menu_items.items() if int(info.get('qty', 0)) > 0]

    def _get_key(self) -> Dict:
        pk, sk = self._get_pk_sk()
        return {'partkey': pk, 'sortkey': sk}

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(user_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'user_name': self.user_name,
            'menu_items': self.menu_items,
            'date_updated': self.date_updated
        }

    def _to_ui(self):
        items, total = [], Decimal('0.00')
        for line in self.lines():
            try:
                menu_item = MenuItem.init_get_by_id(line['menu_item_id'])
            except exceptions.MenuItemNotFound:
                logger.warning(f"_to_ui ::: menu item {line['menu_item_id']} of cart {self.id_} not found")
                continue
            available = menu_item.is_available_right_now()
            items.append({
                **line,
                'name': menu_item.name_,
                'price': menu_item.price,
                'image': menu_item.image,
                'is_available': available
            })
            if available:
                total += menu_item.price * line['quantity']
        return {
            'id': self.id_,
            'user_id': self.id_,
            'user_name': self.user_name,
            'items': items,
            'total': total,
            'date_updated': self.date_updated
        }
