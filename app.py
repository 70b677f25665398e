from chalice import Chalice

from chalicelib import addresses, carts, categories, menu_items, orders
from chalicelib.config import get_settings
from chalicelib.images import ImageStorage
from chalicelib.payments import RazorpayGateway

app = Chalice(app_name='food-ordering-api')

app.api.binary_types.insert(0, 'multipart/form-data')
app.debug = True

settings = get_settings()
payment_gateway = RazorpayGateway(settings)
image_storage = ImageStorage(settings)


@app.route('/health-check', methods=['GET'], cors=True)
def health_check():
    return {'health': 'check'}


# CATEGORIES
@app.route('/categories', methods=['POST'], content_types=['multipart/form-data'], cors=True)
def create_category():
    """
    admin operation
    """
    return categories.Category.endpoint_create_category(app.current_request, image_storage)


@app.route('/categories', methods=['GET'], cors=True)
def get_categories():
    return categories.Category.endpoint_get_all()


@app.route('/categories/{category_id}', methods=['GET'], cors=True)
def get_category_by_id(category_id):
    return categories.Category.endpoint_get_by_id(category_id)


@app.route('/categories/{category_id}/menus', methods=['GET'], cors=True)
def get_menus_by_category(category_id):
    return menu_items.MenuItem.endpoint_get_by_category(category_id)


# MENU ITEMS
@app.route('/menus', methods=['POST'], content_types=['multipart/form-data'], cors=True)
def create_menu_item():
    """
    admin operation
    """
    return menu_items.MenuItem.endpoint_create_menu_item(app.current_request, image_storage)


@app.route('/menus', methods=['GET'], cors=True)
def get_menu_items():
    return menu_items.MenuItem.endpoint_get_all()


@app.route('/menus/{menu_item_id}', methods=['GET'], cors=True)
def get_menu_item_by_id(menu_item_id):
    return menu_items.MenuItem.endpoint_get_by_id(menu_item_id)


# CARTS
@app.route('/carts', methods=['GET'], cors=True)
def get_cart():
    return carts.Cart.endpoint_get_cart(app.current_request)


@app.route('/carts', methods=['POST'], cors=True)
def add_item_to_cart():
    return carts.Cart.endpoint_add_item_to_cart(app.current_request)


@app.route('/carts/{menu_item_id}', methods=['DELETE'], cors=True)
def remove_item_from_cart(menu_item_id):
    return carts.Cart.endpoint_remove_item_from_cart(app.current_request, menu_item_id)


@app.route('/carts', methods=['DELETE'], cors=True)
def clear_cart():
    return carts.Cart.endpoint_clear_cart(app.current_request)


# ADDRESSES
@app.route('/addresses', methods=['POST'], cors=True)
def create_address():
    return addresses.Address.endpoint_create_address(app.current_request)


@app.route('/addresses', methods=['GET'], cors=True)
def get_my_addresses():
    return addresses.Address.endpoint_get_my_addresses(app.current_request)


@app.route('/addresses/user/{user_id}', methods=['GET'], cors=True)
def get_user_addresses(user_id):
    """
    admin operation
    """
    return addresses.Address.endpoint_get_user_addresses(app.current_request, user_id)


# ORDERS
@app.route('/orders', methods=['POST'], cors=True)
def create_order():
    return orders.Order.endpoint_create_order(app.current_request, payment_gateway)


@app.route('/orders/verify', methods=['POST'], cors=True)
def verify_payment():
    return orders.Order.endpoint_verify_payment(app.current_request, payment_gateway)


@app.route('/orders', methods=['GET'], cors=True)
def get_my_orders():
    return orders.endpoint_get_my_orders(app.current_request)


@app.route('/orders/user/{user_id}', methods=['GET'], cors=True)
def get_user_orders(user_id):
    return orders.endpoint_get_user_orders(app.current_request, user_id)


@app.route('/orders/all', methods=['GET'], cors=True)
def get_all_orders():
    """
    admin operation, paginated with page_size and start_key query parameters
    """
    return orders.endpoint_get_all_orders(app.current_request)


@app.route('/orders/id/{order_id}', methods=['GET'], cors=True)
def get_order_by_id(order_id):
    return orders.endpoint_get_order(app.current_request, order_id)


@app.route('/orders/id/{order_id}/status', methods=['PUT'], cors=True)
def update_order_status(order_id):
    """
    admin operation
    """
    return orders.endpoint_update_order_status(app.current_request, order_id)
