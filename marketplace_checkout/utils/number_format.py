"""Parsing and rounding helpers for ids, quantities and money."""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from marketplace_checkout.exceptions import ValidationError

# Column ranges: BIGINT ids, INTEGER quantities
MAX_ID = 2 ** 63 - 1
MAX_QUANTITY = 2 ** 31 - 1


def parse_id(value, field: str) -> int:
    """
    Parse a positive integer identifier from JSON or a path segment.

    Accepts ints and integer strings; rejects booleans, floats with a
    fractional part, blanks and non-positive numbers.
    """
    parsed = _parse_int(value, field)
    if parsed <= 0:
        raise ValidationError(f'{field} must be a positive integer.', payload={'field': field})
    if parsed > MAX_ID:
        raise ValidationError(f'{field} is out of range.', payload={'field': field})
    return parsed


def parse_quantity(value, field: str = 'quantity', allow_zero: bool = False) -> int:
    """Parse a quantity; zero is accepted only when ``allow_zero`` is set."""
    parsed = _parse_int(value, field)
    if parsed < 0 or (parsed == 0 and not allow_zero):
        qualifier = 'non-negative' if allow_zero else 'positive'
        raise ValidationError(f'{field} must be a {qualifier} integer.', payload={'field': field})
    if parsed > MAX_QUANTITY:
        raise ValidationError(f'{field} must be at most {MAX_QUANTITY}.', payload={'field': field})
    return parsed


def _parse_int(value, field: str) -> int:
    if value is None or isinstance(value, bool):
        raise ValidationError(f'{field} is required and must be an integer.', payload={'field': field})

    if isinstance(value, int):
        return value

    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f'{field} must be an integer.', payload={'field': field})
        return int(value)

    cleaned = str(value).strip()
    try:
        return int(cleaned)
    except ValueError:
        raise ValidationError(f'{field} must be an integer.', payload={'field': field})


def to_minor_unit(minor_unit) -> Decimal:
    """Normalize a configured minor unit ('0.01', Decimal) to a Decimal quantum."""
    try:
        quantum = Decimal(str(minor_unit))
    except (InvalidOperation, ValueError):
        raise ValueError(f'Invalid currency minor unit: {minor_unit!r}')
    if quantum <= 0:
        raise ValueError(f'Invalid currency minor unit: {minor_unit!r}')
    return quantum


def quantize_money(amount, minor_unit=Decimal('0.01')) -> Decimal:
    """Round a monetary amount half-up to the currency's minor unit."""
    return Decimal(str(amount)).quantize(to_minor_unit(minor_unit), rounding=ROUND_HALF_UP)
