ROLE_USER = 'user'
ROLE_ADMIN = 'admin'

MAIN_IMAGE_NAME = 'main.jpg'
THUMB_IMAGE_NAME = 'thumb.jpg'

PAYMENT_MODE_COD = 'COD'
PAYMENT_MODE_ONLINE = 'Online'
PAYMENT_MODES = (PAYMENT_MODE_COD, PAYMENT_MODE_ONLINE)

PAYMENT_STATUS_PENDING = 'pending'
PAYMENT_STATUS_PAID = 'paid'
PAYMENT_STATUS_FAILED = 'failed'
PAYMENT_STATUSES = (PAYMENT_STATUS_PENDING, PAYMENT_STATUS_PAID, PAYMENT_STATUS_FAILED)

ORDER_STATUS_PENDING = 'pending'
ORDER_STATUS_ORDERED = 'ordered'
ORDER_STATUS_CANCELLED = 'cancelled'
ORDER_STATUSES = (
    ORDER_STATUS_PENDING,
    ORDER_STATUS_ORDERED,
    'confirmed',
    'preparing',
    'out-for-delivery',
    'delivered',
    ORDER_STATUS_CANCELLED
)

MENU_ITEM_TYPES = ('veg', 'non-veg')
