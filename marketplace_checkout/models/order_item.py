"""Order item model - frozen snapshot of a purchased line."""
from decimal import Decimal

from sqlalchemy import Column, BigInteger, Integer, String, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from marketplace_checkout.database import Base, BigIntPK
from marketplace_checkout.utils.number_format import quantize_money


class OrderItem(Base):
    """
    Purchased line.

    Name, sku, image and price are copied from the product at checkout so
    later catalog edits or deletions never change historical orders.
    ``product_id`` is kept as a soft reference and nulled if the product is
    deleted.
    """

    __tablename__ = 'order_item'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    order_id = Column(BigInteger, ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True)
    product_id = Column(BigInteger, ForeignKey('product.id', ondelete='SET NULL'), nullable=True, index=True)
    seller_id = Column(BigInteger, ForeignKey('app_user.id'), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(18, 8), nullable=False)
    total_price = Column(Numeric(18, 8), nullable=False)
    product_name = Column(String(255), nullable=False)
    product_sku = Column(String(64), nullable=True)
    product_image_url = Column(String(500), nullable=True)

    # Relationships
    order = relationship('Order', back_populates='items')

    def to_dict(self, minor_unit=Decimal('0.01')):
        return {
            'id': self.id,
            'productId': self.product_id,
            'sellerId': self.seller_id,
            'quantity': self.quantity,
            'unitPrice': str(quantize_money(self.unit_price, minor_unit)),
            'totalPrice': str(quantize_money(self.total_price, minor_unit)),
            'productName': self.product_name,
            'productSku': self.product_sku,
            'productImageUrl': self.product_image_url,
        }

    def __repr__(self):
        return f"<OrderItem(id={self.id}, order_id={self.order_id}, product_id={self.product_id}, quantity={self.quantity})>"
