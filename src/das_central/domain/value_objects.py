from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum

CENTS = Decimal("0.01")


class GuideStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"


class DisplayStatus(str, Enum):
    PAID = "PAID"
    PAID_VISUAL = "PAID_VISUAL"
    OVERDUE = "OVERDUE"
    PENDING = "PENDING"
    UPCOMING = "UPCOMING"


def to_amount(value: Decimal | int | float | str) -> Decimal:
    """Coerce a monetary value to a two-place Decimal.

    Floats go through ``str`` so 75.6 becomes Decimal("75.60"), not the
    binary expansion.
    """
    if not isinstance(value, Decimal):
        try:
            value = Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"Invalid amount: {value!r}")
    if not value.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


__all__ = [
    "CENTS",
    "DisplayStatus",
    "GuideStatus",
    "to_amount",
]
