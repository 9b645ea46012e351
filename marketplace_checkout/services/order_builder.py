"""Order builder - materializes the Order header and frozen OrderItem rows."""
from decimal import Decimal

from sqlalchemy.orm import Session

from marketplace_checkout.models import Order, OrderItem, OrderStatus, PaymentStatus
from marketplace_checkout.utils.number_format import quantize_money


def build_order(
    session: Session,
    buyer_id: int,
    addresses,
    snapshot,
    minor_unit=Decimal('0.01'),
    payment_method: str = None
) -> Order:
    """
    Create an order from a validated snapshot inside the caller's transaction.

    Steps:
    1. Price every line from the snapshot (unit price x quantity)
    2. Create the Order header, pending order and payment status
    3. Create one OrderItem per line with name/sku/image/price copied

    totalAmount equals subtotal; tax and shipping are applied elsewhere.
    Only flushes; the caller owns commit/rollback.
    """
    lines_data = []
    subtotal = Decimal('0')

    for line in snapshot.lines:
        line_total = quantize_money(line.unit_price * line.quantity, minor_unit)
        lines_data.append((line, line_total))
        subtotal += line_total

    subtotal = quantize_money(subtotal, minor_unit)

    order = Order(
        buyer_id=buyer_id,
        shipping_address_id=addresses.shipping_address_id,
        billing_address_id=addresses.billing_address_id,
        subtotal=subtotal,
        total_amount=subtotal,
        order_status=OrderStatus.PENDING.value,
        payment_status=PaymentStatus.PENDING.value,
        payment_method=payment_method,
    )
    session.add(order)
    session.flush()

    for line, line_total in lines_data:
        order.items.append(OrderItem(
            order_id=order.id,
            product_id=line.product_id,
            seller_id=line.seller_id,
            quantity=line.quantity,
            unit_price=line.unit_price,
            total_price=line_total,
            product_name=line.product_name,
            product_sku=line.product_sku,
            product_image_url=line.product_image_url,
        ))

    session.flush()
    return order
