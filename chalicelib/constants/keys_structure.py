categories_pk = 'categories'
categories_sk = '{category_id}'

category_names_pk = 'category_names'
category_names_sk = '{name}'

menu_items_pk = 'menu_items'
menu_items_sk = '{menu_item_id}'

carts_pk = 'carts'
carts_sk = '{user_id}'

addresses_pk = 'addresses_{user_id}'
addresses_sk = '{address_id}'

orders_pk = 'orders'
orders_sk = '{order_id}'
