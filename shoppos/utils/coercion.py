"""Coercion helpers for loosely typed request values."""
import math
from decimal import Decimal, InvalidOperation

from shoppos.exceptions import ValidationError

# Money and quantity columns are 32-bit integers; keys are 64-bit
MAX_WHOLE_NUMBER = 2**31 - 1
MAX_ID = 2**63 - 1


def to_whole_number(value, field: str, maximum: int = MAX_WHOLE_NUMBER) -> int:
    """
    Coerce a JSON/form value to an int without truncating.

    Accepts ints, integral floats and numeric strings ("12", " 12 ", "12.0").
    Booleans, fractions, NaN/Infinity and anything non-numeric are rejected,
    as are values above ``maximum``.

    Raises:
        ValidationError: naming ``field`` when the value is not a whole number
    """
    message = f'{field} must be a whole number'

    if isinstance(value, bool):
        raise ValidationError(message)

    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise ValidationError(message)
        number = int(value)
    elif isinstance(value, str):
        try:
            parsed = Decimal(value.strip())
        except InvalidOperation:
            raise ValidationError(message)
        if not parsed.is_finite() or parsed != parsed.to_integral_value():
            raise ValidationError(message)
        number = int(parsed)
    else:
        raise ValidationError(message)

    if number > maximum:
        raise ValidationError(f'{field} is too large')
    return number


def is_blank(value) -> bool:
    """True for values a client uses to mean "not provided"."""
    return value is None or (isinstance(value, str) and not value.strip())
