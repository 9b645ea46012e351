"""Cart service - per-buyer cart lines and the derived snapshot."""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from marketplace_checkout.exceptions import (
    ConflictError, InsufficientStockError, NotFoundError, ValidationError
)
from marketplace_checkout.models import AppUser, CartItem, Product, ProductStatus
from marketplace_checkout.utils.number_format import quantize_money

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SnapshotLine:
    """A cart line joined with the live product row (product fields are None if it vanished)."""
    cart_item_id: int
    product_id: int
    quantity: int
    unit_price: Optional[Decimal]
    available_quantity: Optional[int]
    seller_id: Optional[int]
    seller_username: Optional[str]
    product_name: Optional[str]
    product_sku: Optional[str]
    product_image_url: Optional[str]
    product_status: Optional[str]

    @property
    def product_exists(self) -> bool:
        return self.unit_price is not None

    @property
    def line_total(self) -> Decimal:
        if not self.product_exists:
            return Decimal('0')
        return self.unit_price * self.quantity

    def to_dict(self, minor_unit) -> dict:
        product = None
        if self.product_exists:
            product = {
                'id': self.product_id,
                'name': self.product_name,
                'sku': self.product_sku,
                'price': str(self.unit_price),
                'quantity': self.available_quantity,
                'status': self.product_status,
                'imageUrl': self.product_image_url,
                'seller': {'id': self.seller_id, 'username': self.seller_username},
            }
        return {
            'id': self.cart_item_id,
            'productId': self.product_id,
            'quantity': self.quantity,
            'lineTotal': str(quantize_money(self.line_total, minor_unit)),
            'product': product,
        }


@dataclass(frozen=True)
class CartSnapshot:
    """Transient, recomputed-on-read view of a buyer's cart."""
    buyer_id: int
    lines: Tuple[SnapshotLine, ...]
    total_items: int
    total_price: Decimal

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def to_dict(self, minor_unit) -> dict:
        return {
            'items': [line.to_dict(minor_unit) for line in self.lines],
            'totalItems': self.total_items,
            'totalPrice': str(self.total_price),
        }


# =====================================================
# QUERIES
# =====================================================

def get_snapshot(session: Session, buyer_id: int, minor_unit=Decimal('0.01')) -> CartSnapshot:
    """
    Build the buyer's cart snapshot from live product data.

    totalItems is the sum of quantities; totalPrice is the sum of
    quantity x current price, rounded to the currency minor unit.
    """
    rows = (
        session.query(CartItem, Product, AppUser.username)
        .outerjoin(Product, Product.id == CartItem.product_id)
        .outerjoin(AppUser, AppUser.id == Product.seller_id)
        .filter(CartItem.user_id == buyer_id)
        .order_by(CartItem.created_at.asc(), CartItem.id.asc())
        .all()
    )

    lines = []
    for item, product, seller_username in rows:
        lines.append(SnapshotLine(
            cart_item_id=item.id,
            product_id=item.product_id,
            quantity=item.quantity,
            unit_price=Decimal(str(product.price)) if product else None,
            available_quantity=product.quantity if product else None,
            seller_id=product.seller_id if product else None,
            seller_username=seller_username,
            product_name=product.name if product else None,
            product_sku=product.sku if product else None,
            product_image_url=product.image_url if product else None,
            product_status=product.status if product else None,
        ))

    total_items = sum(line.quantity for line in lines)
    total_price = quantize_money(sum((line.line_total for line in lines), Decimal('0')), minor_unit)

    return CartSnapshot(
        buyer_id=buyer_id,
        lines=tuple(lines),
        total_items=total_items,
        total_price=total_price,
    )


def count_items(session: Session, buyer_id: int) -> int:
    """Sum of quantities across the buyer's cart lines."""
    total = session.query(func.coalesce(func.sum(CartItem.quantity), 0)).filter(
        CartItem.user_id == buyer_id
    ).scalar()
    return int(total or 0)


# =====================================================
# COMMANDS
# =====================================================

def add_item(session: Session, buyer_id: int, product_id: int, qty: int) -> Tuple[CartItem, int]:
    """
    Add ``qty`` units of a product to the buyer's cart.

    Additive on an existing line. The stock comparison here is advisory;
    checkout re-checks inside its own transaction.
    """
    if isinstance(qty, bool) or not isinstance(qty, int) or qty <= 0:
        raise ValidationError('quantity must be a positive integer.', payload={'field': 'quantity'})

    get_buyer_or_error(session, buyer_id)
    product = _get_purchasable_product(session, product_id)

    line = session.query(CartItem).filter(
        CartItem.user_id == buyer_id,
        CartItem.product_id == product_id
    ).first()

    new_qty = (line.quantity if line else 0) + qty
    if new_qty > product.quantity:
        raise InsufficientStockError(product.name, new_qty, product.quantity, product_id=product.id)

    if line:
        line.quantity = new_qty
    else:
        line = CartItem(user_id=buyer_id, product_id=product_id, quantity=new_qty)
        session.add(line)

    _flush_cart(session)
    logger.info(f"[CART] buyer={buyer_id} product={product_id} quantity={new_qty}")
    return line, count_items(session, buyer_id)


def update_item(session: Session, buyer_id: int, product_id: int, qty: int) -> int:
    """
    Overwrite the quantity of an existing line.

    qty == 0 deletes the line. Returns the buyer's new item count.
    """
    if isinstance(qty, bool) or not isinstance(qty, int) or qty < 0:
        raise ValidationError('quantity must be a non-negative integer.', payload={'field': 'quantity'})

    line = _get_line_or_error(session, buyer_id, product_id)

    if qty == 0:
        session.delete(line)
        _flush_cart(session)
        logger.info(f"[CART] buyer={buyer_id} product={product_id} removed via update")
        return count_items(session, buyer_id)

    product = _get_purchasable_product(session, product_id)
    if qty > product.quantity:
        raise InsufficientStockError(product.name, qty, product.quantity, product_id=product.id)

    line.quantity = qty
    _flush_cart(session)
    logger.info(f"[CART] buyer={buyer_id} product={product_id} quantity={qty}")
    return count_items(session, buyer_id)


def remove_item(session: Session, buyer_id: int, product_id: int) -> int:
    """Delete one line. A missing line is NotFound so callers can detect stale state."""
    line = _get_line_or_error(session, buyer_id, product_id)
    session.delete(line)
    _flush_cart(session)
    logger.info(f"[CART] buyer={buyer_id} product={product_id} removed")
    return count_items(session, buyer_id)


def clear_cart(session: Session, buyer_id: int) -> int:
    """Delete every line for the buyer. Returns the number of lines deleted."""
    deleted = session.query(CartItem).filter(
        CartItem.user_id == buyer_id
    ).delete(synchronize_session=False)
    session.flush()
    return deleted


# =====================================================
# HELPERS
# =====================================================

def get_buyer_or_error(session: Session, buyer_id: int) -> AppUser:
    """Load an active user by id or raise NotFoundError."""
    buyer = session.query(AppUser).filter(AppUser.id == buyer_id, AppUser.active.is_(True)).first()
    if not buyer:
        raise NotFoundError('Buyer not found.', payload={'buyer_id': buyer_id})
    return buyer


def _get_purchasable_product(session: Session, product_id: int) -> Product:
    product = session.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError('Product not found.', payload={'product_id': product_id})
    if product.status != ProductStatus.ACTIVE.value:
        raise ValidationError(f'Product "{product.name}" is not available.', payload={'product_id': product_id})
    return product


def _get_line_or_error(session: Session, buyer_id: int, product_id: int) -> CartItem:
    line = session.query(CartItem).filter(
        CartItem.user_id == buyer_id,
        CartItem.product_id == product_id
    ).first()
    if not line:
        raise NotFoundError('Cart item not found.', payload={'product_id': product_id})
    return line


def _flush_cart(session: Session) -> None:
    try:
        session.flush()
    except IntegrityError as e:
        session.rollback()
        logger.warning(f"[CART] concurrent modification: {e.orig}")
        raise ConflictError('Cart was modified concurrently. Please retry.')
