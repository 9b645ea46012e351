"""Product model."""
import enum

from sqlalchemy import Column, BigInteger, Integer, String, Numeric, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from marketplace_checkout.database import Base, BigIntPK


class ProductStatus(str, enum.Enum):
    """Listing status."""
    ACTIVE = 'active'
    INACTIVE = 'inactive'


class Product(Base):
    """
    Product listing.

    ``quantity`` is the available stock. It is written only through
    ``InventoryLedger``; the check constraint backs the ledger's guard.
    """

    __tablename__ = 'product'
    __table_args__ = (
        CheckConstraint('quantity >= 0', name='ck_product_quantity_non_negative'),
    )

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    seller_id = Column(BigInteger, ForeignKey('app_user.id'), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    sku = Column(String(64), nullable=True)
    price = Column(Numeric(18, 8), nullable=False)
    quantity = Column(Integer, nullable=False, default=0, server_default='0')
    status = Column(String(20), nullable=False, default=ProductStatus.ACTIVE.value, server_default='active')
    image_url = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    seller = relationship('AppUser', back_populates='products')

    @property
    def is_active(self):
        return self.status == ProductStatus.ACTIVE.value

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', quantity={self.quantity})>"
