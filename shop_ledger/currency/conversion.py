"""
Currency Reconciliation

Totals over lines recorded in different currencies.

DESIGN DECISION: Exclusion over approximation.
A line that needs the exchange rate when no rate is available is left
out of the total and counted in `skipped`, so the caller can say
"2 USD items excluded - no rate". It is never converted 1:1 and never
counted as zero silently.

Rounding happens per line at the moment of conversion (whole units for
UZS, cents for USD) and the rounded lines are summed. That is lossy on
many small lines, but it is how every stored report has been computed,
so it is kept for compatibility.
"""

from typing import Any, Iterable, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shop_ledger.currency.money import parse_number, round_for, round_foreign, round_local
from shop_ledger.models.credits import CreditEntry
from shop_ledger.models.inventory import Currency, InventoryItem


class MoneyLine(BaseModel):
    """An amount tagged with the currency it was recorded in."""
    model_config = ConfigDict(frozen=True)

    amount: float = 0
    currency: Currency = Currency.UZS

    @field_validator('amount', mode='before')
    @classmethod
    def coerce_amount(cls, v: Any) -> float:
        return parse_number(v)

    @field_validator('currency', mode='before')
    @classmethod
    def normalize_currency(cls, v: Any) -> Currency:
        return Currency.normalize(v)


class AggregateResult(BaseModel):
    """
    A total in one display currency.

    `skipped` counts lines left out because they needed a rate that
    was not available.
    """
    model_config = ConfigDict(frozen=True)

    currency: Currency
    total: float = 0
    line_count: int = Field(default=0, ge=0)
    included: int = Field(default=0, ge=0)
    skipped: int = Field(default=0, ge=0)
    breakdown: dict[Currency, float] = Field(
        default_factory=dict,
        description="Native (unconverted) sum per currency"
    )

    @property
    def complete(self) -> bool:
        """True when no line had to be excluded."""
        return self.skipped == 0


LineLike = Union[MoneyLine, dict]


def _usable_rate(rate: Optional[float]) -> Optional[float]:
    if rate is None:
        return None
    try:
        value = float(rate)
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


def _as_line(line: LineLike) -> MoneyLine:
    if isinstance(line, MoneyLine):
        return line
    amount = line.get("amount")
    if amount is None:
        amount = line.get("price", 0)
    return MoneyLine(amount=amount, currency=line.get("currency"))


def convert(
    amount: float,
    from_currency: Any,
    to_currency: Any,
    rate: Optional[float],
) -> Optional[float]:
    """
    Convert an amount between UZS and USD.

    Same currency passes through unchanged. A cross-currency conversion
    without a positive rate returns None.
    """
    source = Currency.normalize(from_currency)
    target = Currency.normalize(to_currency)
    if source == target:
        return amount

    usable = _usable_rate(rate)
    if usable is None:
        return None

    if source == Currency.USD:
        return round_local(amount * usable)
    return round_foreign(amount / usable)


def aggregate(
    lines: Iterable[LineLike],
    display_currency: Any,
    rate: Optional[float],
) -> AggregateResult:
    """
    Sum lines in the display currency, excluding unconvertible ones.

    Example:
        USD 100 + UZS 200000 at 12500 -> 1450000 UZS
        same lines with no rate        -> 200000 UZS, skipped == 1
    """
    target = Currency.normalize(display_currency)
    total = 0.0
    native: dict[Currency, float] = {}
    line_count = included = skipped = 0

    for raw in lines:
        line = _as_line(raw)
        line_count += 1
        native[line.currency] = native.get(line.currency, 0) + line.amount

        converted = convert(line.amount, line.currency, target, rate)
        if converted is None:
            skipped += 1
            continue
        total += converted
        included += 1

    return AggregateResult(
        currency=target,
        total=round_foreign(total) if target == Currency.USD else total,
        line_count=line_count,
        included=included,
        skipped=skipped,
        breakdown={currency: round_for(value, currency) for currency, value in native.items()},
    )


def group_by_currency(lines: Iterable[LineLike]) -> dict[Currency, float]:
    """Native sums per currency, no conversion."""
    grouped = {Currency.UZS: 0.0, Currency.USD: 0.0}
    for raw in lines:
        line = _as_line(raw)
        grouped[line.currency] += line.amount
    return grouped


def _unit_value(item: InventoryItem, basis: str) -> tuple[float, Currency]:
    """
    Per-unit value of an item and the currency it is in.

    USD items may carry a stored local copy (cost_uzs / price_uzs) taken
    when they were entered; it wins over converting at today's rate.
    """
    extra = item.model_extra or {}
    if basis == "cost":
        unit = parse_number(item.unit_cost or 0)
        local_copy = extra.get("cost_uzs")
    else:
        unit = parse_number(item.unit_price or item.unit_cost or 0)
        local_copy = extra.get("price_uzs")

    if item.currency == Currency.USD and isinstance(local_copy, (int, float)) and not isinstance(local_copy, bool):
        return float(local_copy), Currency.UZS
    return unit, item.currency


def inventory_value(
    items: Iterable[InventoryItem],
    rate: Optional[float],
    basis: Literal["cost", "price"] = "cost",
    display_currency: Any = Currency.UZS,
) -> AggregateResult:
    """Value of a pool (qty x unit cost or price) in the display currency."""
    lines = []
    for item in items:
        unit, currency = _unit_value(item, basis)
        lines.append(MoneyLine(amount=parse_number(item.qty) * unit, currency=currency))
    return aggregate(lines, display_currency, rate)


def credit_totals(
    credits: Iterable[CreditEntry],
    display_currency: Any,
    rate: Optional[float],
    status: Literal["all", "active", "completed"] = "all",
) -> AggregateResult:
    """Total of credits, optionally only open or only settled ones."""
    selected = []
    for credit in credits:
        if status == "active" and credit.completed:
            continue
        if status == "completed" and not credit.completed:
            continue
        selected.append(MoneyLine(amount=credit.amount, currency=credit.currency))
    return aggregate(selected, display_currency, rate)
