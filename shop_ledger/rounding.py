"""
Amount rounding shared by the models and the currency helpers.

Halves round toward positive infinity: floor(x + 0.5). So 2.5 -> 3
and -2.5 -> -2, matching every total the shop has stored so far.

Kept free of model imports so log entries can round their own totals.
"""

from decimal import ROUND_FLOOR, Decimal, InvalidOperation
from typing import Any, Optional


_WHOLE = Decimal("1")
_CENTS = Decimal("0.01")
_HALF_WHOLE = Decimal("0.5")
_HALF_CENT = Decimal("0.005")


def to_decimal(value: Any) -> Optional[Decimal]:
    """Decimal for a number or numeric string; None for anything else."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def round_local(amount: Any) -> int:
    """Round a local-currency amount to a whole unit."""
    d = to_decimal(amount)
    if d is None or not d.is_finite():
        return 0
    return int((d + _HALF_WHOLE).quantize(_WHOLE, rounding=ROUND_FLOOR))


def round_foreign(amount: Any) -> float:
    """Round a foreign-currency amount to cents."""
    d = to_decimal(amount)
    if d is None or not d.is_finite():
        return 0.0
    return float((d + _HALF_CENT).quantize(_CENTS, rounding=ROUND_FLOOR))
