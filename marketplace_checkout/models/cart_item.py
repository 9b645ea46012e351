"""Cart item model - one line per (buyer, product)."""
from sqlalchemy import Column, BigInteger, Integer, DateTime, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from marketplace_checkout.database import Base, BigIntPK


class CartItem(Base):
    """
    Pending intent to purchase.

    Owned exclusively by ``user_id``; the pair (user_id, product_id) is
    unique, so adding the same product again mutates the existing line.
    """

    __tablename__ = 'cart_item'
    __table_args__ = (
        UniqueConstraint('user_id', 'product_id', name='uq_cart_item_user_product'),
        CheckConstraint('quantity > 0', name='ck_cart_item_quantity_positive'),
    )

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, ForeignKey('app_user.id', ondelete='CASCADE'), nullable=False, index=True)
    product_id = Column(BigInteger, ForeignKey('product.id', ondelete='CASCADE'), nullable=False)
    quantity = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    product = relationship('Product')

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'productId': self.product_id,
            'quantity': self.quantity,
        }

    def __repr__(self):
        return f"<CartItem(user_id={self.user_id}, product_id={self.product_id}, quantity={self.quantity})>"
