"""
Sales and Inventory Reports

Read-only views over the sale log and the two pools.

Sale totals are in UZS. Each entry uses the `total_uzs` stored when it
was logged. A USD entry without a stored total is converted at the
current rate, or counted in `skipped` when there is none.
"""

from collections import defaultdict
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

from shop_ledger.currency.conversion import AggregateResult, inventory_value
from shop_ledger.currency.money import parse_number, round_local
from shop_ledger.models.inventory import Currency
from shop_ledger.models.logs import LogKind, SaleLogEntry
from shop_ledger.models.state import AppState


# =============================================================================
# RESULT MODELS
# =============================================================================

class SalesTotal(BaseModel):
    """Sum of a group of SELL entries."""
    model_config = ConfigDict(frozen=True)

    count: int = 0
    qty: float = 0
    total_uzs: int = 0
    skipped: int = Field(default=0, description="USD entries with no stored total and no rate")


class DailySales(SalesTotal):
    day: str
    entries: list[SaleLogEntry] = Field(default_factory=list)


class MonthlySummary(BaseModel):
    """Sold vs. incoming value for one calendar month."""
    model_config = ConfigDict(frozen=True)

    month: str = Field(..., description="YYYY-MM, or \"unknown\" for undated entries")
    sold_uzs: int = 0
    incoming_uzs: int = 0
    skipped: int = 0


class ProductSales(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_name: str
    qty: float = 0
    total_uzs: int = 0
    skipped: int = Field(default=0, description="Sales left out of total_uzs for lack of a rate")


class InventorySummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    warehouse: AggregateResult
    store: AggregateResult
    warehouse_items: int = 0
    store_items: int = 0

    @property
    def skipped(self) -> int:
        return self.warehouse.skipped + self.store.skipped


# =============================================================================
# HELPERS
# =============================================================================

def _entry_uzs(entry: SaleLogEntry, rate: Optional[float]) -> Optional[int]:
    """Local-currency value of an entry, None when it cannot be known."""
    if entry.total_uzs is not None:
        return entry.total_uzs
    amount = parse_number(entry.amount or 0)
    if entry.currency == Currency.USD:
        if not rate or rate <= 0:
            return None
        return round_local(amount * rate)
    return round_local(amount)


def _is_sale(entry: SaleLogEntry) -> bool:
    return entry.kind == LogKind.SELL


def _summarize(entries: Iterable[SaleLogEntry], rate: Optional[float]) -> dict:
    count = 0
    qty = 0.0
    total = 0
    skipped = 0
    for entry in entries:
        count += 1
        qty += parse_number(entry.qty or 0)
        value = _entry_uzs(entry, rate)
        if value is None:
            skipped += 1
        else:
            total += value
    return {"count": count, "qty": qty, "total_uzs": total, "skipped": skipped}


# =============================================================================
# REPORTS
# =============================================================================

def daily_sales(
    logs: Iterable[SaleLogEntry],
    day: str,
    rate: Optional[float] = None,
) -> DailySales:
    """SELL entries of one ISO day and their UZS total."""
    entries = [entry for entry in logs if _is_sale(entry) and entry.day == day]
    return DailySales(day=day, entries=entries, **_summarize(entries, rate))


def sales_by_user(
    logs: Iterable[SaleLogEntry],
    rate: Optional[float] = None,
    day: Optional[str] = None,
) -> dict[str, SalesTotal]:
    """SELL totals per seller, optionally limited to one day."""
    grouped: dict[str, list[SaleLogEntry]] = defaultdict(list)
    for entry in logs:
        if not _is_sale(entry):
            continue
        if day is not None and entry.day != day:
            continue
        grouped[entry.user or "unknown"].append(entry)
    return {
        user: SalesTotal(**_summarize(entries, rate))
        for user, entries in sorted(grouped.items())
    }


def monthly_summary(
    logs: Iterable[SaleLogEntry],
    rate: Optional[float] = None,
) -> list[MonthlySummary]:
    """Per-month value sold (SELL) and received (ADD), oldest month first."""
    months: dict[str, dict[str, int]] = defaultdict(
        lambda: {"sold_uzs": 0, "incoming_uzs": 0, "skipped": 0}
    )
    for entry in logs:
        if entry.kind not in (LogKind.SELL, LogKind.ADD):
            continue
        bucket = months[entry.day[:7] or "unknown"]
        value = _entry_uzs(entry, rate)
        if value is None:
            bucket["skipped"] += 1
        elif entry.kind == LogKind.SELL:
            bucket["sold_uzs"] += value
        else:
            bucket["incoming_uzs"] += value
    return [MonthlySummary(month=month, **totals) for month, totals in sorted(months.items())]


def top_products(
    logs: Iterable[SaleLogEntry],
    limit: int = 5,
    rate: Optional[float] = None,
) -> list[ProductSales]:
    """Best sellers by quantity, ties broken by name."""
    qty: dict[str, float] = defaultdict(float)
    totals: dict[str, int] = defaultdict(int)
    skipped: dict[str, int] = defaultdict(int)
    for entry in logs:
        if not _is_sale(entry):
            continue
        name = entry.product_name or entry.product_id or "?"
        qty[name] += parse_number(entry.qty or 0)
        value = _entry_uzs(entry, rate)
        if value is None:
            skipped[name] += 1
        else:
            totals[name] += value
    ranked = sorted(qty, key=lambda name: (-qty[name], name))
    return [
        ProductSales(
            product_name=name,
            qty=qty[name],
            total_uzs=totals[name],
            skipped=skipped[name],
        )
        for name in ranked[:limit]
    ]


def inventory_summary(
    state: AppState,
    rate: Optional[float] = None,
    basis: str = "cost",
) -> InventorySummary:
    """Value of both pools in the state's display currency."""
    currency = state.display_currency
    return InventorySummary(
        warehouse=inventory_value(state.warehouse, rate, basis=basis, display_currency=currency),
        store=inventory_value(state.store, rate, basis=basis, display_currency=currency),
        warehouse_items=len(state.warehouse),
        store_items=len(state.store),
    )
