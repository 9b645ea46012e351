"""Order header model."""
import enum
from decimal import Decimal

from sqlalchemy import Column, BigInteger, String, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from marketplace_checkout.database import Base, BigIntPK
from marketplace_checkout.utils.number_format import quantize_money


class OrderStatus(str, enum.Enum):
    """Order lifecycle status."""
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    PROCESSING = 'processing'
    SHIPPED = 'shipped'
    DELIVERED = 'delivered'
    CANCELLED = 'cancelled'
    REFUNDED = 'refunded'


class PaymentStatus(str, enum.Enum):
    """Payment status, settled outside this service."""
    PENDING = 'pending'
    PAID = 'paid'
    FAILED = 'failed'
    REFUNDED = 'refunded'
    PARTIALLY_REFUNDED = 'partially_refunded'


# Allowed order-status moves; anything else is a conflict.
ORDER_STATUS_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.CANCELLED, OrderStatus.REFUNDED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED, OrderStatus.REFUNDED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.REFUNDED},
    OrderStatus.DELIVERED: {OrderStatus.REFUNDED},
    OrderStatus.CANCELLED: set(),
    OrderStatus.REFUNDED: set(),
}

# Statuses in which the ordered units are still held by the seller.
STOCK_HELD_STATUSES = {OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.PROCESSING}


class Order(Base):
    """
    Order header created by a committed checkout.

    Header amounts and addresses are fixed at creation; only
    ``order_status`` and ``payment_status`` change afterwards.
    """

    __tablename__ = 'orders'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    buyer_id = Column(BigInteger, ForeignKey('app_user.id'), nullable=False, index=True)
    shipping_address_id = Column(BigInteger, ForeignKey('user_address.id'), nullable=False)
    billing_address_id = Column(BigInteger, ForeignKey('user_address.id'), nullable=False)
    subtotal = Column(Numeric(18, 8), nullable=False)
    total_amount = Column(Numeric(18, 8), nullable=False)
    order_status = Column(String(20), nullable=False, default=OrderStatus.PENDING.value)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    payment_method = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    items = relationship('OrderItem', back_populates='order', cascade='all, delete-orphan',
                         order_by='OrderItem.id')

    def to_dict(self, include_items=True, minor_unit=Decimal('0.01')):
        """Serialize for the API; money is rounded to the currency minor unit."""
        rv = {
            'id': self.id,
            'buyerId': self.buyer_id,
            'shippingAddressId': self.shipping_address_id,
            'billingAddressId': self.billing_address_id,
            'subtotal': str(quantize_money(self.subtotal, minor_unit)),
            'totalAmount': str(quantize_money(self.total_amount, minor_unit)),
            'orderStatus': self.order_status,
            'paymentStatus': self.payment_status,
            'paymentMethod': self.payment_method,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }
        if include_items:
            rv['items'] = [item.to_dict(minor_unit) for item in self.items]
        return rv

    def __repr__(self):
        return f"<Order(id={self.id}, buyer_id={self.buyer_id}, total={self.total_amount}, status={self.order_status})>"
