"""
Inventory ledger - the only writer of Product.quantity.

Both primitives are single conditional UPDATE statements; the row count
returned by the database is the authoritative result. Never read the
quantity first and write it back.
"""
import logging

from sqlalchemy import update

from marketplace_checkout.exceptions import ValidationError
from marketplace_checkout.models import Product

logger = logging.getLogger(__name__)


class InventoryLedger:
    """Atomic stock counter operations bound to one session/transaction."""

    def __init__(self, session):
        self.session = session

    def decrement_if_available(self, product_id: int, qty: int) -> bool:
        """
        Decrement stock by ``qty`` only if at least ``qty`` units remain.

        Executes ``UPDATE product SET quantity = quantity - :qty
        WHERE id = :id AND quantity >= :qty``. Returns False when no row
        matched (product gone or not enough stock); the caller must then
        abort its whole transaction.
        """
        self._check_qty(qty)
        stmt = (
            update(Product)
            .where(Product.id == product_id, Product.quantity >= qty)
            .values(quantity=Product.quantity - qty)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        if result.rowcount != 1:
            logger.warning(f"[INVENTORY] decrement refused: product={product_id} qty={qty}")
            return False
        logger.debug(f"[INVENTORY] decremented product={product_id} by {qty}")
        return True

    def increment(self, product_id: int, qty: int) -> bool:
        """Return ``qty`` units to stock (cancellation/refund). False if the product is gone."""
        self._check_qty(qty)
        stmt = (
            update(Product)
            .where(Product.id == product_id)
            .values(quantity=Product.quantity + qty)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        if result.rowcount != 1:
            logger.warning(f"[INVENTORY] increment skipped, product {product_id} not found")
            return False
        logger.debug(f"[INVENTORY] incremented product={product_id} by {qty}")
        return True

    @staticmethod
    def _check_qty(qty):
        if isinstance(qty, bool) or not isinstance(qty, int) or qty <= 0:
            raise ValidationError('Stock adjustments require a positive integer quantity.')
