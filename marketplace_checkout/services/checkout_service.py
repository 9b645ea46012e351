"""
Checkout orchestrator - converts a buyer's cart into an order.

States:
    received -> validating -> reserving -> committed
    received -> validating -> rejected       (no side effects)
    received -> reserving  -> rolled_back    (transaction discarded)

Validation before the transaction is optimistic and can go stale; the
conditional stock decrement inside the transaction is what prevents
overselling. Any failure inside the transaction rolls back the order, the
items, every decrement and the cart clear together.
"""
import enum
import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from marketplace_checkout.database import unit_of_work
from marketplace_checkout.exceptions import (
    CheckoutError, EmptyCartError, InsufficientStockError, InternalError
)
from marketplace_checkout.services.address_service import resolve_checkout_addresses
from marketplace_checkout.services.cart_service import clear_cart, get_buyer_or_error, get_snapshot
from marketplace_checkout.services.inventory_ledger import InventoryLedger
from marketplace_checkout.services.order_builder import build_order
from marketplace_checkout.services.stock_validator import validate_snapshot, violation_to_error

logger = logging.getLogger(__name__)


class CheckoutState(str, enum.Enum):
    RECEIVED = 'received'
    VALIDATING = 'validating'
    RESERVING = 'reserving'
    COMMITTED = 'committed'
    REJECTED = 'rejected'
    ROLLED_BACK = 'rolled_back'


TERMINAL_STATES = {CheckoutState.COMMITTED, CheckoutState.REJECTED, CheckoutState.ROLLED_BACK}


class CheckoutOrchestrator:
    """One checkout attempt. Create a new instance per request."""

    def __init__(
        self,
        session: Session,
        ledger: InventoryLedger = None,
        notifier=None,
        minor_unit=Decimal('0.01'),
        timeout_ms: int = None
    ):
        self.session = session
        self.ledger = ledger or InventoryLedger(session)
        self.notifier = notifier
        self.minor_unit = minor_unit
        self.timeout_ms = timeout_ms
        self.state = CheckoutState.RECEIVED
        self.order = None

    def checkout(
        self,
        buyer_id: int,
        shipping_address_id: int,
        billing_address_id: int,
        payment_method: str = None
    ):
        """
        Run the checkout for ``buyer_id`` and return the committed Order.

        Raises a CheckoutError subclass on rejection or rollback; its payload
        carries ``state`` and, where known, the offending ``product_id``.
        """
        if self.state != CheckoutState.RECEIVED:
            raise RuntimeError(f'Checkout already ran (state={self.state.value})')

        logger.info(f"[CHECKOUT] buyer={buyer_id} received")

        # 1. Inputs that must hold before anything else happens
        try:
            get_buyer_or_error(self.session, buyer_id)
            addresses = resolve_checkout_addresses(
                self.session, buyer_id, shipping_address_id, billing_address_id
            )
            snapshot = get_snapshot(self.session, buyer_id, self.minor_unit)
        except CheckoutError as e:
            self._reject(buyer_id, e)

        if snapshot.is_empty:
            self._reject(buyer_id, EmptyCartError())

        # 2. Optimistic validation of the whole snapshot
        self._transition(buyer_id, CheckoutState.VALIDATING)
        violations = validate_snapshot(snapshot, buyer_id)
        if violations:
            self._reject(buyer_id, violation_to_error(violations))

        # 3. Single transaction: order + items, conditional decrements, cart clear
        self._transition(buyer_id, CheckoutState.RESERVING)
        try:
            with unit_of_work(self.session, timeout_ms=self.timeout_ms):
                order = build_order(
                    self.session, buyer_id, addresses, snapshot,
                    minor_unit=self.minor_unit, payment_method=payment_method
                )
                for line in snapshot.lines:
                    if not self.ledger.decrement_if_available(line.product_id, line.quantity):
                        raise InsufficientStockError(
                            line.product_name, line.quantity, None,
                            product_id=line.product_id
                        )
                clear_cart(self.session, buyer_id)
        except CheckoutError as e:
            self._roll_back(buyer_id, e)
        except Exception as e:
            logger.exception(f"[CHECKOUT] buyer={buyer_id} unexpected failure inside transaction")
            self._roll_back(buyer_id, InternalError('Checkout failed, please retry.'), cause=e)

        self.order = order
        self._transition(buyer_id, CheckoutState.COMMITTED)
        logger.info(f"[CHECKOUT] buyer={buyer_id} order={order.id} total={order.total_amount}")

        if self.notifier is not None:
            self.notifier.publish_checkout_completed(order)

        return order

    # =====================================================
    # PRIVATE HELPERS
    # =====================================================

    def _transition(self, buyer_id, state):
        logger.info(f"[CHECKOUT] buyer={buyer_id} {self.state.value} -> {state.value}")
        self.state = state

    def _reject(self, buyer_id, error):
        # Nothing was written; drop the read transaction.
        self.session.rollback()
        self._transition(buyer_id, CheckoutState.REJECTED)
        self._attach_state(error)
        logger.warning(f"[CHECKOUT] buyer={buyer_id} rejected: {error.kind} {error.message}")
        raise error

    def _roll_back(self, buyer_id, error, cause=None):
        self._transition(buyer_id, CheckoutState.ROLLED_BACK)
        self._attach_state(error)
        logger.warning(f"[CHECKOUT] buyer={buyer_id} rolled back: {error.kind} {error.message}")
        if cause is not None:
            raise error from cause
        raise error

    def _attach_state(self, error):
        payload = dict(error.payload or ())
        payload['state'] = self.state.value
        error.payload = payload
