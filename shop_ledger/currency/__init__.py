"""
Currency Package

Money parsing/formatting and cross-currency totals.
"""

from shop_ledger.currency.money import (
    format_currency,
    format_integer,
    format_money,
    format_with_spaces,
    parse_number,
    round_for,
    round_foreign,
    round_local,
)
from shop_ledger.currency.conversion import (
    AggregateResult,
    MoneyLine,
    aggregate,
    convert,
    credit_totals,
    group_by_currency,
    inventory_value,
)

__all__ = [
    # Money
    "format_currency",
    "format_integer",
    "format_money",
    "format_with_spaces",
    "parse_number",
    "round_for",
    "round_foreign",
    "round_local",
    # Conversion
    "AggregateResult",
    "MoneyLine",
    "aggregate",
    "convert",
    "credit_totals",
    "group_by_currency",
    "inventory_value",
]
