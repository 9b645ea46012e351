"""
Stock validator - authoritative pre-commit check of a cart snapshot.

Pure functions: no session, no writes. Each violation names the offending
product so the client can point at the exact line.
"""
import enum
from dataclasses import dataclass
from typing import List

from marketplace_checkout.exceptions import (
    CheckoutError, InsufficientStockError, NotFoundError, SelfPurchaseError
)
from marketplace_checkout.models import ProductStatus


class ViolationReason(str, enum.Enum):
    PRODUCT_NOT_FOUND = 'PRODUCT_NOT_FOUND'
    PRODUCT_INACTIVE = 'PRODUCT_INACTIVE'
    INSUFFICIENT_STOCK = 'INSUFFICIENT_STOCK'
    SELF_PURCHASE = 'SELF_PURCHASE'


@dataclass(frozen=True)
class LineViolation:
    product_id: int
    reason: ViolationReason
    message: str
    requested: int = 0
    available: int = 0
    product_name: str = ''


def validate_snapshot(snapshot, buyer_id: int) -> List[LineViolation]:
    """Return every violation in the snapshot, in cart order (empty list means valid)."""
    violations = []

    for line in snapshot.lines:
        if not line.product_exists:
            violations.append(LineViolation(
                product_id=line.product_id,
                reason=ViolationReason.PRODUCT_NOT_FOUND,
                message=f'Product {line.product_id} no longer exists.',
                requested=line.quantity,
            ))
            continue

        if line.seller_id == buyer_id:
            violations.append(LineViolation(
                product_id=line.product_id,
                reason=ViolationReason.SELF_PURCHASE,
                message=f'Cannot purchase your own product: {line.product_name}',
                requested=line.quantity,
                available=line.available_quantity,
                product_name=line.product_name,
            ))

        if line.product_status != ProductStatus.ACTIVE.value:
            violations.append(LineViolation(
                product_id=line.product_id,
                reason=ViolationReason.PRODUCT_INACTIVE,
                message=f'Product "{line.product_name}" is no longer available.',
                requested=line.quantity,
                available=line.available_quantity,
                product_name=line.product_name,
            ))
        elif line.available_quantity < line.quantity:
            violations.append(LineViolation(
                product_id=line.product_id,
                reason=ViolationReason.INSUFFICIENT_STOCK,
                message=f'Insufficient stock for product: {line.product_name}',
                requested=line.quantity,
                available=line.available_quantity,
                product_name=line.product_name,
            ))

    return violations


def violation_to_error(violations: List[LineViolation], payload=None) -> CheckoutError:
    """
    Pick the error to surface for a failed validation.

    A self-purchase line wins over every other reason; otherwise the first
    violation in cart order is reported. All violations are listed in the
    payload.
    """
    if not violations:
        raise ValueError('violation_to_error() needs at least one violation')

    primary = next(
        (v for v in violations if v.reason == ViolationReason.SELF_PURCHASE),
        violations[0],
    )
    rv = dict(payload or ())
    rv['violations'] = [
        {'product_id': v.product_id, 'reason': v.reason.value, 'message': v.message}
        for v in violations
    ]

    if primary.reason == ViolationReason.SELF_PURCHASE:
        return SelfPurchaseError(primary.product_name, product_id=primary.product_id, payload=rv)
    if primary.reason == ViolationReason.INSUFFICIENT_STOCK:
        return InsufficientStockError(
            primary.product_name, primary.requested, primary.available,
            product_id=primary.product_id, payload=rv
        )
    rv['product_id'] = primary.product_id
    return NotFoundError(primary.message, payload=rv)
