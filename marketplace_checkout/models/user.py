"""AppUser model - marketplace identities (buyers and sellers)."""
from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from marketplace_checkout.database import Base, BigIntPK


class AppUser(Base):
    """
    Marketplace user.

    Identity is issued by the auth service; this table is the local read
    model the checkout path needs (existence, seller reference).
    """

    __tablename__ = 'app_user'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    username = Column(String(100), nullable=False, unique=True)
    email = Column(String(255), nullable=False, unique=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    addresses = relationship('UserAddress', back_populates='user', cascade='all, delete-orphan')
    products = relationship('Product', back_populates='seller')

    def __repr__(self):
        return f"<AppUser(id={self.id}, username='{self.username}')>"
