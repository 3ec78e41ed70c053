from __future__ import annotations

from decimal import Decimal, InvalidOperation

from finplat.domain.models import ZERO, Amount

ONE = Decimal("1")

# values of 10**15 and above are treated as unusable input
MAX_ADJUSTED_EXPONENT = 14


def parse_amount(value: Amount) -> Decimal | None:
    """Decimal for numbers and numeric strings, None for anything unusable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, int):
        number = Decimal(value)
    elif isinstance(value, float):
        number = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None
    if not number.is_finite() or number.adjusted() > MAX_ADJUSTED_EXPONENT:
        return None
    return number


def to_amount(value: Amount) -> Decimal:
    number = parse_amount(value)
    return ZERO if number is None else number


def to_quantity(value: Amount) -> Decimal:
    # missing -> 1, garbage or negative -> 0
    if value is None or (isinstance(value, str) and not value.strip()):
        return ONE
    number = parse_amount(value)
    if number is None or number < 0:
        return ZERO
    return number


def to_price(value: Amount) -> Decimal:
    number = parse_amount(value)
    if number is None or number < 0:
        return ZERO
    return number
