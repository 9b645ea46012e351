"""Address lookups needed by checkout."""
from typing import NamedTuple

from sqlalchemy.orm import Session

from marketplace_checkout.exceptions import ValidationError
from marketplace_checkout.models import AddressType, UserAddress


class CheckoutAddresses(NamedTuple):
    shipping_address_id: int
    billing_address_id: int


def resolve_checkout_addresses(
    session: Session,
    buyer_id: int,
    shipping_address_id: int,
    billing_address_id: int
) -> CheckoutAddresses:
    """Verify both addresses belong to the buyer and have the right type."""
    _require_address(session, buyer_id, shipping_address_id, AddressType.SHIPPING)
    _require_address(session, buyer_id, billing_address_id, AddressType.BILLING)
    return CheckoutAddresses(shipping_address_id, billing_address_id)


def _require_address(session: Session, buyer_id: int, address_id: int, address_type: AddressType) -> UserAddress:
    address = session.query(UserAddress).filter(
        UserAddress.id == address_id,
        UserAddress.user_id == buyer_id,
        UserAddress.address_type == address_type.value
    ).first()
    if not address:
        field = f'{address_type.value}AddressId'
        raise ValidationError(
            f'Invalid {address_type.value} address or address does not belong to buyer.',
            payload={'field': field}
        )
    return address
