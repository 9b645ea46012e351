"""Models package - exports all SQLAlchemy models."""
from marketplace_checkout.models.user import AppUser
from marketplace_checkout.models.address import UserAddress, AddressType
from marketplace_checkout.models.product import Product, ProductStatus
from marketplace_checkout.models.cart_item import CartItem
from marketplace_checkout.models.order import (
    Order, OrderStatus, PaymentStatus, ORDER_STATUS_TRANSITIONS, STOCK_HELD_STATUSES
)
from marketplace_checkout.models.order_item import OrderItem

__all__ = [
    'AppUser', 'UserAddress', 'AddressType',
    'Product', 'ProductStatus',
    'CartItem',
    'Order', 'OrderStatus', 'PaymentStatus', 'ORDER_STATUS_TRANSITIONS', 'STOCK_HELD_STATUSES',
    'OrderItem',
]
