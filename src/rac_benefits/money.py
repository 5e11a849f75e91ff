"""
Decimal money helpers.

All amounts flow through the engine as Decimal cents. Inputs are never
rounded on the way in: a value with sub-cent precision raises
PrecisionError. Computed intermediates are rounded with the rule table's
RoundingMode, which is half-up unless a table says otherwise.
"""

from decimal import ROUND_DOWN, ROUND_HALF_UP, ROUND_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Union

from .errors import PrecisionError, ValidationError

CENT = Decimal("0.01")
DOLLAR = Decimal("1")
ZERO = Decimal("0.00")

MoneyLike = Union[Decimal, int, float, str]


class RoundingMode(str, Enum):
    """Rounding conventions a rule table may specify."""

    HALF_UP = "half_up"
    DOWN = "down"
    UP = "up"

    @property
    def decimal_rounding(self) -> str:
        return {
            RoundingMode.HALF_UP: ROUND_HALF_UP,
            RoundingMode.DOWN: ROUND_DOWN,
            RoundingMode.UP: ROUND_UP,
        }[self]


def to_money(value: MoneyLike, field: str = "amount") -> Decimal:
    """
    Convert an input amount to Decimal cents.

    Args:
        value: int, str, Decimal or float amount
        field: Name used in error messages

    Returns:
        Decimal quantized to cents

    Raises:
        ValidationError: value is not numeric
        PrecisionError: value carries more than two decimal places
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number, got {value!r}")
    if isinstance(value, float):
        # repr gives the shortest string that round-trips, so 0.1 -> "0.1"
        value = repr(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field} must be a number, got {value!r}")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be finite, got {value!r}")
    quantized = amount.quantize(CENT)
    if quantized != amount:
        raise PrecisionError(f"{field} has sub-cent precision: {value!r}")
    return quantized


def non_negative_money(value: MoneyLike, field: str = "amount") -> Decimal:
    amount = to_money(value, field)
    if amount < 0:
        raise ValidationError(f"{field} must not be negative, got {amount}")
    return amount


def round_money(value: Decimal, mode: RoundingMode = RoundingMode.HALF_UP) -> Decimal:
    """Round a computed amount to cents."""
    return Decimal(value).quantize(CENT, rounding=RoundingMode(mode).decimal_rounding)


def round_dollars(value: Decimal, mode: RoundingMode = RoundingMode.HALF_UP) -> Decimal:
    """Round a computed amount to whole dollars, kept at cent scale."""
    whole = Decimal(value).quantize(DOLLAR, rounding=RoundingMode(mode).decimal_rounding)
    return whole.quantize(CENT)


def format_money(value: Decimal) -> str:
    """Format as $1,234.56, negatives in parentheses."""
    formatted = f"${abs(value):,.2f}"
    return f"({formatted})" if value < 0 else formatted
