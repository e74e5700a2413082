import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

_CURRENCY_NOISE = re.compile(r"[£$€,\s]|GBP|USD|EUR", re.IGNORECASE)
_ONE = Decimal("1")


def parse_amount(value: object) -> Decimal | None:
    """Parse a major-unit amount from a number or a currency string.

    ``"£1,234.50"`` -> 1234.50, ``"(12.00)"`` -> -12.00. Anything that is not
    a finite number returns None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, Decimal)):
        amount = Decimal(value)
    elif isinstance(value, float):
        amount = Decimal(repr(value))
    elif isinstance(value, str):
        cleaned = _CURRENCY_NOISE.sub("", value.strip())
        if cleaned.startswith("(") and cleaned.endswith(")"):
            cleaned = f"-{cleaned[1:-1]}"
        if not cleaned:
            return None
        try:
            amount = Decimal(cleaned)
        except InvalidOperation:
            return None
    else:
        return None
    if not amount.is_finite():
        return None
    return amount


def to_minor_units(value: object) -> int | None:
    """Convert a major-unit amount to integer minor units, rounding half up."""
    amount = parse_amount(value)
    if amount is None:
        return None
    return int((amount * 100).quantize(_ONE, rounding=ROUND_HALF_UP))
