"""Order queries and status transitions for orders created by checkout."""
import logging
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session, selectinload

from marketplace_checkout.database import unit_of_work
from marketplace_checkout.exceptions import ConflictError, NotFoundError, ValidationError
from marketplace_checkout.models import (
    Order, OrderItem, OrderStatus, PaymentStatus,
    ORDER_STATUS_TRANSITIONS, STOCK_HELD_STATUSES
)
from marketplace_checkout.services.inventory_ledger import InventoryLedger

logger = logging.getLogger(__name__)

STOCK_RELEASING_STATUSES = {OrderStatus.CANCELLED, OrderStatus.REFUNDED}


def get_order(session: Session, order_id: int) -> Order:
    """Load an order with its items or raise NotFoundError."""
    order = session.query(Order).options(selectinload(Order.items)).filter(
        Order.id == order_id
    ).first()
    if not order:
        raise NotFoundError('Order not found.', payload={'order_id': order_id})
    return order


def list_orders(
    session: Session,
    buyer_id: Optional[int] = None,
    seller_id: Optional[int] = None,
    order_status: Optional[str] = None,
    payment_status: Optional[str] = None,
    limit: int = 50,
    offset: int = 0
) -> List[Order]:
    """List orders newest first. ``seller_id`` matches orders with at least one item from that seller."""
    query = session.query(Order).options(selectinload(Order.items))

    if buyer_id is not None:
        query = query.filter(Order.buyer_id == buyer_id)
    if order_status is not None:
        query = query.filter(Order.order_status == parse_order_status(order_status).value)
    if payment_status is not None:
        query = query.filter(Order.payment_status == parse_payment_status(payment_status).value)
    if seller_id is not None:
        query = query.filter(Order.items.any(OrderItem.seller_id == seller_id))

    return (query
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(limit)
            .offset(offset)
            .all())


def update_order_status(
    session: Session,
    order_id: int,
    order_status: Optional[str] = None,
    payment_status: Optional[str] = None,
    ledger: Optional[InventoryLedger] = None
) -> Order:
    """
    Move an order to a new order and/or payment status.

    Order-status moves must follow ORDER_STATUS_TRANSITIONS. Cancelling or
    refunding an order whose units were still held returns them to stock.
    The status write is a compare-and-set on the previous status, so two
    concurrent cancellations cannot both restock.
    """
    if order_status is None and payment_status is None:
        raise ValidationError('Provide order_status and/or payment_status.')

    new_order_status = parse_order_status(order_status) if order_status is not None else None
    new_payment_status = parse_payment_status(payment_status) if payment_status is not None else None

    order = get_order(session, order_id)
    current = OrderStatus(order.order_status)
    ledger = ledger or InventoryLedger(session)

    values = {}
    if new_order_status is not None and new_order_status != current:
        if new_order_status not in ORDER_STATUS_TRANSITIONS[current]:
            raise ConflictError(
                f'Cannot move order from {current.value} to {new_order_status.value}.',
                payload={'order_id': order_id}
            )
        values['order_status'] = new_order_status.value
    if new_payment_status is not None:
        values['payment_status'] = new_payment_status.value

    if not values:
        return order

    with unit_of_work(session):
        result = session.execute(
            update(Order)
            .where(Order.id == order_id, Order.order_status == current.value)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConflictError('Order was modified concurrently. Please retry.', payload={'order_id': order_id})

        if new_order_status in STOCK_RELEASING_STATUSES and current in STOCK_HELD_STATUSES:
            for item in order.items:
                if item.product_id is not None:
                    ledger.increment(item.product_id, item.quantity)
            logger.info(f"[ORDER] order={order_id} restocked {len(order.items)} line(s)")

    logger.info(f"[ORDER] order={order_id} {current.value} -> {values}")
    session.refresh(order)
    return order


def delete_order(session: Session, order_id: int) -> None:
    """Delete a cancelled order and its items."""
    order = get_order(session, order_id)
    if order.order_status != OrderStatus.CANCELLED.value:
        raise ValidationError(
            'Only cancelled orders can be deleted. Please cancel the order first.',
            payload={'order_id': order_id}
        )
    with unit_of_work(session):
        session.delete(order)
    logger.info(f"[ORDER] order={order_id} deleted")


def parse_order_status(value) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        valid = ', '.join(s.value for s in OrderStatus)
        raise ValidationError(f'Invalid order_status. Valid values: {valid}', payload={'field': 'order_status'})


def parse_payment_status(value) -> PaymentStatus:
    try:
        return PaymentStatus(value)
    except ValueError:
        valid = ', '.join(s.value for s in PaymentStatus)
        raise ValidationError(f'Invalid payment_status. Valid values: {valid}', payload={'field': 'payment_status'})
