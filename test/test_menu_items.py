from decimal import Decimal

import pytest

from chalicelib.constants import keys_structure
from chalicelib.constants.status_codes import http200, http201, http400, http404
from chalicelib.utils import db
from test.utils.fixtures import create_test_category, create_test_menu_item, token_admin
from test.utils.request_utils import make_request, make_multipart_request, make_test_image, response_body


def menu_item_fields(category_id, **overrides):
    fields = {
        'name': 'Paneer Tikka',
        'description': 'Grilled cottage cheese',
        'price': '249.5',
        'category': category_id,
        'type': 'veg',
        'image': ('paneer.png', make_test_image(), 'image/png')
    }
    fields.update(overrides)
    return fields


@pytest.mark.local_db_test
def test_create_menu_item(chalice_gateway):
    category_id = create_test_category(chalice_gateway)

    response = make_multipart_request(chalice_gateway, '/menus', fields=menu_item_fields(category_id),
                                      token=token_admin)

    assert response['statusCode'] == http201, response['body']
    menu = response_body(response)['menu']
    assert menu['name'] == 'Paneer Tikka'
    assert menu['price'] == 249.5
    assert menu['type'] == 'veg'
    assert menu['is_available'] is True
    assert menu['category_id'] == category_id

    db_record = db.get_db_item(keys_structure.menu_items_pk,
                               keys_structure.menu_items_sk.format(menu_item_id=menu['id']))
    assert db_record['price'] == Decimal('249.50')
    assert db_record['type_'] == 'veg'


@pytest.mark.local_db_test
def test_create_menu_item_unknown_category(chalice_gateway):
    response = make_multipart_request(chalice_gateway, '/menus', fields=menu_item_fields('missing-category'),
                                      token=token_admin)

    assert response['statusCode'] == http404
    assert response_body(response)['exception'] == 'CategoryNotFound'


@pytest.mark.local_db_test
@pytest.mark.parametrize('overrides', [
    {'price': '-1'},
    {'price': 'free'},
    {'type': 'vegan'},
    {'isAvailable': 'maybe'},
    {'name': ''},
])
def test_create_menu_item_invalid_fields(chalice_gateway, overrides):
    category_id = create_test_category(chalice_gateway)

    response = make_multipart_request(chalice_gateway, '/menus', fields=menu_item_fields(category_id, **overrides),
                                      token=token_admin)

    assert response['statusCode'] == http400
    assert response_body(response)['error_kind'] == 'invalid_input'


@pytest.mark.local_db_test
def test_get_menu_items_with_category(chalice_gateway):
    category_id = create_test_category(chalice_gateway, name='Breakfast')
    menu_item_id = create_test_menu_item(chalice_gateway, category_id, name='Poha', price='60')

    response = make_request(chalice_gateway, endpoint='/menus')
    assert response['statusCode'] == http200
    menus = response_body(response)['menus']
    assert [menu['id'] for menu in menus] == [menu_item_id]
    assert menus[0]['category']['name'] == 'Breakfast'

    response = make_request(chalice_gateway, endpoint=f'/menus/{menu_item_id}')
    assert response['statusCode'] == http200
    assert response_body(response)['menu']['category']['id'] == category_id


@pytest.mark.local_db_test
def test_get_menu_item_not_found(chalice_gateway):
    response = make_request(chalice_gateway, endpoint='/menus/missing-menu-item')

    assert response['statusCode'] == http404
    assert response_body(response)['exception'] == 'MenuItemNotFound'


@pytest.mark.local_db_test
def test_get_menu_items_by_category(chalice_gateway):
    category_id = create_test_category(chalice_gateway, name='Breakfast')
    other_category_id = create_test_category(chalice_gateway, name='Dinner')
    menu_item_id = create_test_menu_item(chalice_gateway, category_id, name='Idli')
    create_test_menu_item(chalice_gateway, other_category_id, name='Biryani')

    response = make_request(chalice_gateway, endpoint=f'/categories/{category_id}/menus')

    assert response['statusCode'] == http200
    body = response_body(response)
    assert body['category']['id'] == category_id
    assert [menu['id'] for menu in body['menus']] == [menu_item_id]

    response = make_request(chalice_gateway, endpoint='/categories/missing-category/menus')
    assert response['statusCode'] == http404
