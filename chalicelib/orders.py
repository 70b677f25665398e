from decimal import Decimal
from typing import Tuple, Any, List, Dict, Optional
from uuid import uuid4

from boto3.dynamodb.conditions import Key, Attr
from chalice import Response
from chalice.app import Request

from chalicelib.addresses import Address
from chalicelib.base_class_entity import EntityBase, check_mandatory_fields, newest_first, now_iso, SERVICE_KEYS
from chalicelib.carts import Cart
from chalicelib.config import get_settings
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import ROLE_ADMIN, PAYMENT_MODES, PAYMENT_MODE_ONLINE, \
    PAYMENT_STATUS_PENDING, PAYMENT_STATUS_PAID, PAYMENT_STATUS_FAILED, PAYMENT_STATUSES, \
    ORDER_STATUSES, ORDER_STATUS_PENDING, ORDER_STATUS_ORDERED, ORDER_STATUS_CANCELLED
from chalicelib.constants.status_codes import http200, http201
from chalicelib.menu_items import MenuItem
from chalicelib.payments import RazorpayGateway, to_minor_units
from chalicelib.utils import auth as utils_auth, \
    data as utils_data, \
    db as utils_db, \
    app as utils_app, \
    exceptions
from chalicelib.utils.logger import logger

MAX_PAGE_SIZE = 100
STATUS_NAMES = {'#status': 'status_', '#history': 'history'}


class Order(EntityBase):
    pk = keys_structure.orders_pk
    sk = keys_structure.orders_sk

    required_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'user_id': lambda x: isinstance(x, str),
        'address_id': lambda x: isinstance(x, str),
        'delivery_address': lambda x: isinstance(x, dict),
        'items': lambda x: isinstance(x, list) and len(x) > 0,
        'amount': lambda x: isinstance(x, Decimal) and x >= 0,
        'currency': lambda x: isinstance(x, str),
        'payment_mode': lambda x: x in PAYMENT_MODES,
        'payment_status': lambda x: x in PAYMENT_STATUSES,
        'status_': lambda x: x in ORDER_STATUSES,
        'history': lambda x: isinstance(x, list),
        'date_created': lambda x: isinstance(x, str),
        'date_updated': lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'user_name': lambda x: isinstance(x, str),
        'user_email': lambda x: isinstance(x, str),
        'gateway_order_id': lambda x: isinstance(x, str),
        'transaction_id': lambda x: isinstance(x, str),
        'updated_by': lambda x: isinstance(x, str)
    }

    def __init__(self, id_, user_id=None, **kwargs):
        EntityBase.__init__(self, id_)

        self.requested_lines: List[Dict] = kwargs.get('requested_lines', [])

        self.user_id: str = user_id
        self.user_name: Optional[str] = kwargs.get('user_name')
        self.user_email: Optional[str] = kwargs.get('user_email')
        self.address_id: str = kwargs.get('address_id')
        self.delivery_address: Dict = kwargs.get('delivery_address', {})
        self.items: List[Dict] = kwargs.get('items', [])
        self.amount: Any[Decimal, None] = Decimal(kwargs.get('amount')).quantize(Decimal('1.00')) if \
            type(kwargs.get('amount')) in [int, Decimal] else None
        self.currency: str = kwargs.get('currency')
        self.payment_mode: str = kwargs.get('payment_mode')
        self.payment_status: str = kwargs.get('payment_status', PAYMENT_STATUS_PENDING)
        self.gateway_order_id: Optional[str] = kwargs.get('gateway_order_id')
        self.transaction_id: Optional[str] = kwargs.get('transaction_id')
        self.status_: str = kwargs.get('status_', ORDER_STATUS_PENDING)
        self.date_created: str = kwargs.get('date_created') or now_iso()
        self.history: List[Dict] = kwargs.get('history') or [{'status': self.status_, 'date': self.date_created}]
        self.date_updated: str = kwargs.get('date_updated') or self.date_created
        self.updated_by: Optional[str] = kwargs.get('updated_by')
        self.record_type = 'order'

    @classmethod
    @utils_auth.authenticate_class
    def init_request_create(cls, request: Request):
        logger.info("init_request_create ::: started")
        auth_result = request.auth_result
        user_id = auth_result['user_id']
        body = utils_data.parse_raw_body(request)
        check_mandatory_fields(body, ['address_id', 'payment_mode'])
        if body['payment_mode'] not in PAYMENT_MODES:
            raise exceptions.ValidationException(f'payment_mode must be one of {", ".join(PAYMENT_MODES)}')
        if 'items' in body:
            requested_lines = parse_requested_lines(body['items'])
        else:
            requested_lines = get_cart_lines(user_id)
        transaction_id = body.get('transaction_id')
        return cls(
            id_=str(uuid4()),
            user_id=user_id,
            user_name=auth_result.get('name'),
            user_email=auth_result.get('email'),
            address_id=str(body['address_id']),
            payment_mode=body['payment_mode'],
            transaction_id=str(transaction_id) if transaction_id else None,
            requested_lines=requested_lines
        )

    @classmethod
    @utils_auth.authenticate_class
    def init_auth(cls, request: Request) -> Dict:
        return request.auth_result

    @classmethod
    def init_get_by_id(cls, order_id):
        logger.info(f"init_get_by_id ::: {order_id=}")
        try:
            return cls.from_db_record(cls(order_id)._get_db_item())
        except exceptions.RecordNotFound:
            raise exceptions.OrderNotFound(f'Order {order_id} not found')

    @classmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_create_order(cls, request: Request, payment_gateway: RazorpayGateway) -> Response:
        order = cls.init_request_create(request)
        payment = order.place(payment_gateway)
        body = {'success': True, 'message': 'Order created', 'order': order.to_ui()}
        if payment:
            body['payment'] = payment
        return Response(status_code=http201, body=body)

    @classmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_verify_payment(cls, request: Request, payment_gateway: RazorpayGateway) -> Response:
        auth_result = cls.init_auth(request)
        body = utils_data.parse_raw_body(request)
        check_mandatory_fields(body, ['gateway_order_id', 'gateway_payment_id', 'signature', 'order_id'])
        gateway_order_id, gateway_payment_id = str(body['gateway_order_id']), str(body['gateway_payment_id'])
        payment_gateway.verify_signature(gateway_order_id, gateway_payment_id, str(body['signature']))
        order = cls.init_get_by_id(str(body['order_id']))
        order.check_access(auth_result)
        order.confirm_payment(gateway_order_id, gateway_payment_id)
        return Response(status_code=http200,
                        body={'success': True, 'message': 'Payment verified', 'order': order.to_ui()})

    def place(self, payment_gateway: RazorpayGateway) -> Optional[Dict]:
        """
        Online orders without a transaction id are written before the gateway is called,
        so every gateway order has an order record with receipt = order id.
        The cart is cleared only after the payment is verified.
        Other orders are written as pending and the cart is cleared right away
        :return:
        checkout data for the client in case of a gateway order, otherwise None
        """
        self._price_lines()
        self.currency = payment_gateway.settings.currency
        self._create_db_record(condition_expression='attribute_not_exists(partkey)')

        if self.payment_mode == PAYMENT_MODE_ONLINE and not self.transaction_id:
            amount_minor = to_minor_units(self.amount)
            try:
                gateway_order = payment_gateway.create_order(amount_minor, receipt=self.id_)
            except exceptions.PaymentGatewayError:
                self._mark_payment_failed()
                raise
            self._set_gateway_order_id(gateway_order['id'])
            return {
                'gateway_order_id': gateway_order['id'],
                'amount': gateway_order['amount'],
                'currency': gateway_order['currency'],
                'key_id': payment_gateway.key_id
            }

        Cart(self.user_id).clear(missing_ok=True)
        return None

    def confirm_payment(self, gateway_order_id: str, gateway_payment_id: str) -> None:
        """
        Only an Online order waiting for the payment of its own gateway order can become paid.
        The same terms are part of the conditional update
        """
        self._check_payment_belongs_to_order(gateway_order_id)
        if self._check_already_paid(gateway_payment_id):
            return
        self._check_awaits_payment()
        now = now_iso()
        try:
            record = utils_db.update_db_item(
                self._get_key(),
                'SET #status = :ordered, payment_status = :paid, transaction_id = :payment_id, '
                'date_updated = :now, #history = list_append(#history, :entry)',
                {
                    ':ordered': ORDER_STATUS_ORDERED,
                    ':paid': PAYMENT_STATUS_PAID,
                    ':pending': PAYMENT_STATUS_PENDING,
                    ':online': PAYMENT_MODE_ONLINE,
                    ':payment_id': gateway_payment_id,
                    ':gateway_order_id': gateway_order_id,
                    ':now': now,
                    ':entry': [{'status': ORDER_STATUS_ORDERED, 'date': now}]
                },
                STATUS_NAMES,
                condition_expression='attribute_exists(partkey) AND payment_mode = :online '
                                     'AND gateway_order_id = :gateway_order_id AND payment_status = :pending'
            )
        except utils_db.ConditionNotMet:
            # changed in the meantime, e.g. paid by a concurrent verification
            self._fill_from_record(self._get_db_item())
            self._check_payment_belongs_to_order(gateway_order_id)
            if self._check_already_paid(gateway_payment_id):
                return
            self._check_awaits_payment()
            raise exceptions.PaymentAlreadyCaptured(f'Order {self.id_} is already paid')
        self._fill_from_record(record)
        logger.info(f"confirm_payment ::: order {self.id_} paid, {gateway_payment_id=}")
        Cart(self.user_id).clear(missing_ok=True)

    def update_status(self, status: str, updated_by: str) -> None:
        if status not in ORDER_STATUSES:
            raise exceptions.InvalidOrderStatus(f'Invalid order status {status}, '
                                                f'allowed statuses: {", ".join(ORDER_STATUSES)}')
        now = now_iso()
        try:
            record = utils_db.update_db_item(
                self._get_key(),
                'SET #status = :status, date_updated = :now, updated_by = :updated_by, '
                '#history = list_append(#history, :entry)',
                {
                    ':status': status,
                    ':now': now,
                    ':updated_by': updated_by,
                    ':entry': [{'status': status, 'date': now}]
                },
                STATUS_NAMES,
                condition_expression='attribute_exists(partkey)'
            )
        except utils_db.ConditionNotMet:
            raise exceptions.OrderNotFound(f'Order {self.id_} not found')
        self._fill_from_record(record)
        logger.info(f"update_status ::: order {self.id_} status set to {status} by {updated_by}")

    def check_access(self, auth_result: Dict) -> None:
        """
        Orders of other users look the same as missing ones
        """
        if auth_result.get('role') != ROLE_ADMIN and auth_result.get('user_id') != self.user_id:
            logger.warning(f"check_access ::: user {auth_result.get('user_id')} requested order {self.id_} "
                           f"of user {self.user_id}")
            raise exceptions.OrderNotFound(f'Order {self.id_} not found')

    def _check_payment_belongs_to_order(self, gateway_order_id: str) -> None:
        if self.payment_mode != PAYMENT_MODE_ONLINE or not self.gateway_order_id \
                or self.gateway_order_id != gateway_order_id:
            logger.warning(f"_check_payment_belongs_to_order ::: {gateway_order_id=} does not match order {self.id_} "
                           f"({self.payment_mode=}, {self.gateway_order_id=})")
            raise exceptions.SignatureMismatch(f'Payment does not belong to order {self.id_}')

    def _check_awaits_payment(self) -> None:
        if self.payment_status != PAYMENT_STATUS_PENDING:
            raise exceptions.ValidationException(f'Order {self.id_} is not awaiting payment')

    def _check_already_paid(self, gateway_payment_id: str) -> bool:
        if self.payment_status != PAYMENT_STATUS_PAID:
            return False
        if self.transaction_id == gateway_payment_id:
            logger.info(f"_check_already_paid ::: order {self.id_} already paid with {gateway_payment_id=}")
            return True
        raise exceptions.PaymentAlreadyCaptured(f'Order {self.id_} is already paid')

    def _price_lines(self) -> None:
        """
        Snapshots the address, item names and catalog prices on the order.
        amount is the sum of price * quantity of the snapshotted lines
        """
        self.delivery_address = Address.init_get_by_id(self.user_id, self.address_id).snapshot()
        items, unavailable = [], []
        for line in self.requested_lines:
            menu_item = MenuItem.init_get_by_id(line['menu_item_id'])
            if not menu_item.is_available_right_now():
                unavailable.append(menu_item.name_)
                continue
            items.append({
                'menu_item_id': menu_item.id_,
                'name': menu_item.name_,
                'price': menu_item.price,
                'quantity': line['quantity'],
                'line_total': (menu_item.price * line['quantity']).quantize(Decimal('1.00'))
            })
        if unavailable:
            raise exceptions.SomeItemsAreNotAvailable(f'Some items are currently unavailable: '
                                                      f'{", ".join(unavailable)}')
        self.items = items
        self.amount = sum([item['line_total'] for item in items], Decimal('0.00'))

    def _mark_payment_failed(self) -> None:
        now = now_iso()
        record = utils_db.update_db_item(
            self._get_key(),
            'SET #status = :cancelled, payment_status = :failed, date_updated = :now, '
            '#history = list_append(#history, :entry)',
            {
                ':cancelled': ORDER_STATUS_CANCELLED,
                ':failed': PAYMENT_STATUS_FAILED,
                ':now': now,
                ':entry': [{'status': ORDER_STATUS_CANCELLED, 'date': now}]
            },
            STATUS_NAMES
        )
        self._fill_from_record(record)
        logger.warning(f"_mark_payment_failed ::: order {self.id_} cancelled, gateway order was not created")

    def _set_gateway_order_id(self, gateway_order_id: str) -> None:
        record = utils_db.update_db_item(
            self._get_key(),
            'SET gateway_order_id = :gateway_order_id, date_updated = :now',
            {':gateway_order_id': gateway_order_id, ':now': now_iso()}
        )
        self._fill_from_record(record)

    def _fill_from_record(self, record: Dict) -> None:
        self.__init__(**{key: value for key, value in record.items() if key not in SERVICE_KEYS})

    def _get_key(self) -> Dict:
        pk, sk = self._get_pk_sk()
        return {'partkey': pk, 'sortkey': sk}

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(order_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'user_id': self.user_id,
            'user_name': self.user_name,
            'user_email': self.user_email,
            'address_id': self.address_id,
            'delivery_address': self.delivery_address,
            'items': self.items,
            'amount': self.amount,
            'currency': self.currency,
            'payment_mode': self.payment_mode,
            'payment_status': self.payment_status,
            'gateway_order_id': self.gateway_order_id,
            'transaction_id': self.transaction_id,
            'status_': self.status_,
            'history': self.history,
            'date_created': self.date_created,
            'date_updated': self.date_updated,
            'updated_by': self.updated_by
        }

    def _init_db_record(self):
        EntityBase._init_db_record(self)
        self.db_record = utils_data.cleanup_dict(self.db_record, [None])


def parse_requested_lines(items: Any) -> List[Dict]:
    """
    Validates order lines from the request body, lines with the same menu item are merged
    """
    if not isinstance(items, list) or not items:
        raise exceptions.ValidationException('items must be a non-empty list')
    merged: Dict[str, int] = {}
    for item in items:
        if not isinstance(item, dict):
            raise exceptions.ValidationException('Each item must be an object with menu_item_id and quantity')
        check_mandatory_fields(item, ['menu_item_id'])
        menu_item_id = str(item['menu_item_id'])
        merged[menu_item_id] = merged.get(menu_item_id, 0) + utils_data.to_quantity(item.get('quantity', 1))
    max_quantity = get_settings().max_item_quantity
    if any(quantity > max_quantity for quantity in merged.values()):
        raise exceptions.QuantityLimitExceeded(f'Quantity of one item cannot exceed {max_quantity}')
    return [{'menu_item_id': menu_item_id, 'quantity': quantity} for menu_item_id, quantity in merged.items()]


def get_cart_lines(user_id: str) -> List[Dict]:
    try:
        lines = Cart.init_by_user_id(user_id).lines()
    except exceptions.CartNotFound:
        lines = []
    if not lines:
        raise exceptions.ValidationException('Cart is empty, nothing to order')
    return lines


def get_user_db_orders(user_id):
    return utils_db.query_items_paged(
        key_condition_expression=Key('partkey').eq(Order.pk),
        filter_expression=Attr('user_id').eq(user_id)
    )


def get_all_db_orders_paginated(limit, start_key):
    if start_key:
        start_key = {
            'partkey': Order.pk,
            'sortkey': Order.sk.format(order_id=start_key)
        }
    return utils_db.query_items_paginated(
        key_condition_expression=Key('partkey').eq(Order.pk),
        start_key=start_key,
        limit=limit
    )


def orders_to_ui(db_records: List[Dict]) -> List[Dict]:
    return [Order.from_db_record(record).to_ui() for record in newest_first(db_records)]


@utils_app.log_start_finish
@utils_auth.authenticate
@utils_app.request_exception_handler
def endpoint_get_my_orders(request):
    user_id = request.auth_result['user_id']
    return Response(status_code=http200, body={'success': True, 'orders': orders_to_ui(get_user_db_orders(user_id))})


@utils_app.log_start_finish
@utils_auth.authenticate
@utils_app.request_exception_handler
def endpoint_get_user_orders(request, user_id):
    utils_auth.check_user_access(request.auth_result, user_id)
    return Response(status_code=http200, body={'success': True, 'orders': orders_to_ui(get_user_db_orders(user_id))})


@utils_app.log_start_finish
@utils_auth.authenticate
@utils_app.request_exception_handler
@utils_auth.admin_only
def endpoint_get_all_orders(request):
    qp = request.query_params or {}
    start_key, limit = qp.get('start_key'), qp.get('page_size')
    if limit is not None:
        limit = min(utils_data.to_quantity(limit, 'page_size'), MAX_PAGE_SIZE)
    db_records, new_last_key = get_all_db_orders_paginated(limit, start_key)
    if new_last_key:
        new_last_key = new_last_key['sortkey']

    return Response(
        status_code=http200,
        body={
            'success': True,
            'orders': orders_to_ui(db_records),
            'last_evaluated_key': new_last_key
        }
    )


@utils_app.log_start_finish
@utils_auth.authenticate
@utils_app.request_exception_handler
def endpoint_get_order(request, order_id):
    order = Order.init_get_by_id(order_id)
    order.check_access(request.auth_result)
    return Response(status_code=http200, body={'success': True, 'order': order.to_ui()})


@utils_app.log_start_finish
@utils_auth.authenticate
@utils_app.request_exception_handler
@utils_auth.admin_only
def endpoint_update_order_status(request, order_id):
    body = utils_data.parse_raw_body(request)
    check_mandatory_fields(body, ['status'])
    order = Order(order_id)
    order.update_status(str(body['status']), updated_by=request.auth_result['user_id'])
    return Response(status_code=http200,
                    body={'success': True, 'message': 'Order status updated', 'order': order.to_ui()})
