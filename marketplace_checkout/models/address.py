"""User address model."""
import enum

from sqlalchemy import Column, BigInteger, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from marketplace_checkout.database import Base, BigIntPK


class AddressType(str, enum.Enum):
    """Address usage."""
    SHIPPING = 'shipping'
    BILLING = 'billing'


class UserAddress(Base):
    """Address owned by a user (managed by the address service)."""

    __tablename__ = 'user_address'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, ForeignKey('app_user.id', ondelete='CASCADE'), nullable=False, index=True)
    address_type = Column(String(20), nullable=False)
    line1 = Column(String(255), nullable=False)
    city = Column(String(120), nullable=False)
    postal_code = Column(String(20), nullable=True)
    country = Column(String(2), nullable=False, default='US')
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    user = relationship('AppUser', back_populates='addresses')

    def __repr__(self):
        return f"<UserAddress(id={self.id}, user_id={self.user_id}, type='{self.address_type}')>"
