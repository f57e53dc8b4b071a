from .auth import User, SessionToken, USER_ROLES
from .catalog import (
    Product, ProductVariant, InventoryOffer, Offer, offer_products,
    PRODUCT_CATEGORIES, VARIANT_TYPES, OFFER_TYPES,
)
from .orders import Order, OrderItem, ORDER_STATUSES

__all__ = [
    'User', 'SessionToken', 'USER_ROLES',
    'Product', 'ProductVariant', 'InventoryOffer', 'Offer', 'offer_products',
    'PRODUCT_CATEGORIES', 'VARIANT_TYPES', 'OFFER_TYPES',
    'Order', 'OrderItem', 'ORDER_STATUSES',
]
