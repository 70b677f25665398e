import pytest
from chalice.config import Config
from chalice.local import LocalGateway

from chalicelib.constants.status_codes import http200, http201
from chalicelib.utils.logger import log_message
from test.utils.request_utils import make_request, make_multipart_request, make_token, make_test_image, \
    response_body

id_admin = '13303309-d941-486f-b600-3e90929ac50f'
id_user = 'e5b01491-e538-4be3-8d3c-a57db7fc43c1'
id_other_user = '8178f948-cdc2-4e8c-b013-07a956e7e72a'

token_admin = make_token(id_admin, role='admin', name='Admin')
token_user = make_token(id_user, name='Test User', email='user@test-domain.com')
token_other_user = make_token(id_other_user, name='Other User')


def local_gateway() -> LocalGateway:
    from app import app
    log_message('local_gateway ::: creating local gateway for tests')
    return LocalGateway(app, Config.create(chalice_app=app, app_name=app.app_name))


@pytest.fixture(scope='session')
def chalice_gateway() -> LocalGateway:
    yield local_gateway()


def create_test_category(chalice_gateway, name='Pizza') -> str:
    response = make_multipart_request(chalice_gateway, '/categories', fields={
        'name': name,
        'image': ('category.png', make_test_image(), 'image/png')
    }, token=token_admin)
    assert response['statusCode'] == http201, response['body']
    return response_body(response)['category']['id']


def create_test_menu_item(chalice_gateway, category_id, name='Margherita', price='100', is_available='true') -> str:
    response = make_multipart_request(chalice_gateway, '/menus', fields={
        'name': name,
        'description': f'{name} description',
        'price': str(price),
        'category': category_id,
        'type': 'veg',
        'isAvailable': is_available,
        'image': ('menu.png', make_test_image(), 'image/png')
    }, token=token_admin)
    assert response['statusCode'] == http201, response['body']
    return response_body(response)['menu']['id']


def create_test_address(chalice_gateway, token=token_user) -> str:
    response = make_request(chalice_gateway, endpoint='/addresses', method='POST', json_body={
        'street': '12 MG Road',
        'city': 'Bengaluru',
        'state': 'Karnataka',
        'zip': '560001',
        'country': 'India'
    }, token=token)
    assert response['statusCode'] == http201, response['body']
    return response_body(response)['address']['id']


def add_test_item_to_cart(chalice_gateway, menu_item_id, quantity=1, token=token_user):
    response = make_request(chalice_gateway, endpoint='/carts', method='POST',
                            json_body={'menu_item_id': menu_item_id, 'quantity': quantity}, token=token)
    assert response['statusCode'] == http200, response['body']
    return response_body(response)['cart']
