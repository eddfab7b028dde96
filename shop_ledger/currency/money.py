"""
Money parsing, rounding and display formatting.

Amounts are plain floats on the wire (the state document is JSON).
Rounding goes through Decimal (see shop_ledger.rounding): halves round
toward positive infinity, the way the shop's receipts and reports have
always rounded.

Display uses German-style grouping: 1.234.567,5
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from shop_ledger.models.inventory import Currency
from shop_ledger.rounding import round_foreign, round_local
from shop_ledger.rounding import to_decimal as _to_decimal


_DISPLAY_PLACES = Decimal("0.001")


def round_for(amount: Any, currency: Currency) -> float:
    """Round with the policy of the given currency."""
    if currency == Currency.USD:
        return round_foreign(amount)
    return round_local(amount)


def parse_number(value: Any) -> float:
    """
    Parse a user-entered number in either German or US notation.

    Examples:
        "1.234,50"  -> 1234.5
        "1,234.50"  -> 1234.5
        "1,000"     -> 1000
        "1.000"     -> 1000
        "12,5"      -> 12.5
        "1 234 567" -> 1234567

    Returns 0 for None or anything unparseable.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return value

    s = "".join(str(value).split())
    last_comma = s.rfind(",")
    last_dot = s.rfind(".")

    if last_comma > -1 and last_dot > -1:
        if last_comma > last_dot:
            # 1.234,50
            s = s.replace(".", "").replace(",", ".")
        else:
            # 1,234.50
            s = s.replace(",", "")
    elif last_comma > -1:
        # Three or more digits after the last comma means thousands
        if len(s) - last_comma > 3:
            s = s.replace(",", "")
        else:
            s = s.replace(",", ".", 1)
    elif last_dot > -1:
        if len(s) - last_dot > 3:
            s = s.replace(".", "")

    if not s:
        return 0
    try:
        n = float(s)
    except ValueError:
        return 0
    if n != n or n in (float("inf"), float("-inf")):
        return 0
    return n


def _group(digits: str, separator: str) -> str:
    parts = []
    while len(digits) > 3:
        parts.insert(0, digits[-3:])
        digits = digits[:-3]
    parts.insert(0, digits)
    return separator.join(parts)


def format_money(value: Any) -> str:
    """Format with '.' grouping and ',' decimals, at most 3 fraction digits."""
    if value is None:
        return "0"
    d = _to_decimal(value)
    if d is None or not d.is_finite():
        return str(value)

    d = d.quantize(_DISPLAY_PLACES, rounding=ROUND_HALF_UP)
    sign = "-" if d < 0 else ""
    whole, _, fraction = f"{abs(d):f}".partition(".")
    fraction = fraction.rstrip("0")
    text = _group(whole, ".")
    if fraction:
        text += "," + fraction
    if text == "0":
        sign = ""
    return sign + text


def format_integer(value: Any) -> str:
    """Format as a whole number with '.' grouping."""
    if value is None:
        return "0"
    return format_money(round_local(value))


def format_with_spaces(value: Any) -> str:
    """Format as a whole number with spaces between thousands: 1 234 567."""
    if value is None:
        return ""
    d = _to_decimal(value)
    if d is None or not d.is_finite():
        return str(value)
    n = round_local(d)
    sign = "-" if n < 0 else ""
    return sign + _group(str(abs(n)), " ")


def format_currency(value: Any, currency: Any = Currency.UZS) -> str:
    """
    Format an amount with its currency.

    USD is shown with a dollar sign, everything else with its code:
    "12,5 $", "1.234 UZS".
    """
    code = Currency.normalize(currency)
    suffix = "$" if code == Currency.USD else code.value
    if value is None:
        return f"0 {suffix}"
    return f"{format_money(value)} {suffix}"
