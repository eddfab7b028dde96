"""
Sale Log Models for Shop Ledger

Every change to the warehouse, store, credits or accounts leaves one
entry in the log. The log is the history the reports are built from.

DESIGN DECISION: Log entries are append-only and immutable.
Normal operation never edits or removes them. The only exception is
an explicit purge of one day's entries by a protected admin, which is
itself recorded as a new entry.

Entries are read leniently. Documents written by older clients carry
no `ts`, use kinds this module has no builder for (MOVE, CREDIT,
PAYMENT, ...) and sometimes store numbers as strings. All of that
must load, or hydration would replace the whole shop with defaults.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from shop_ledger.models.credits import CreditEntry
from shop_ledger.models.inventory import Currency, InventoryItem, Number, Pool
from shop_ledger.rounding import round_foreign, round_local


class LogKind(str, Enum):
    """
    Known entry kinds.

    `SaleLogEntry.kind` is a plain string, so kinds missing here still
    load and compare equal to their members ("SELL" == LogKind.SELL).
    """
    SELL = "SELL"
    ADD = "ADD"
    EDIT = "EDIT"
    DELETE = "DELETE"
    MOVE = "MOVE"
    CREDIT = "CREDIT"
    CREDIT_EDIT = "CREDIT_EDIT"
    CREDIT_DELETE = "CREDIT_DELETE"
    CREDIT_DEDUCT = "CREDIT_DEDUCT"
    CREDIT_COMPLETE = "CREDIT_COMPLETE"
    PAYMENT = "PAYMENT"
    CLIENT_ADD = "CLIENT_ADD"
    CLIENT_EDIT = "CLIENT_EDIT"
    CLIENT_DELETE = "CLIENT_DELETE"


# Older documents used camelCase or alternative key names
_LEGACY_KEYS = {
    "user_name": "user",
    "productId": "product_id",
    "productName": "product_name",
    "unitPrice": "unit_price",
    "totalUzs": "total_uzs",
    "amount_uzs": "total_uzs",
    "totalUsd": "total_usd",
}

# Wall-clock formats seen in stored `time` values
_TIME_FORMATS = ("%H:%M:%S", "%H:%M", "%I:%M:%S %p", "%I:%M %p")


def _timestamp_from(date: Any, time: Any) -> Optional[int]:
    """Milliseconds since the epoch for a stored date/time pair, if parseable."""
    if not date:
        return None
    try:
        moment = datetime.fromisoformat(str(date).strip()[:10])
    except ValueError:
        return None
    clock = str(time or "").strip().upper()
    for fmt in _TIME_FORMATS:
        try:
            parsed = datetime.strptime(clock, fmt).time()
        except ValueError:
            continue
        moment = datetime.combine(moment.date(), parsed)
        break
    return int(moment.timestamp() * 1000)


def _lenient_number(v: Any) -> Any:
    """Numeric strings become numbers; blanks and garbage become None."""
    if isinstance(v, str):
        text = v.strip().replace(" ", "")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
        return int(number) if number.is_integer() else number
    return v


class SaleLogEntry(BaseModel):
    """
    A single log entry.

    Only id is guaranteed. `ts` is derived from date/time when an older
    entry lacks it, and stays None when neither is usable.
    """
    model_config = ConfigDict(frozen=True, extra="allow")

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Unique entry identifier"
    )
    ts: Optional[int] = Field(
        default=None,
        description="Milliseconds since the epoch"
    )
    date: Optional[str] = Field(
        default=None,
        description="ISO date (YYYY-MM-DD) of the action"
    )
    time: Optional[str] = Field(
        default=None,
        description="Wall-clock time of the action"
    )
    user: Optional[str] = None
    action: str = Field(
        default="",
        description="Action label, e.g. 'product_sold'"
    )
    kind: Optional[str] = Field(
        default=None,
        description="Entry kind; see LogKind for the known values"
    )
    source: Optional[str] = Field(
        default=None,
        description="Pool the entry touched, usually a Pool value"
    )

    # Product fields
    product_id: Optional[str] = None
    product_name: Optional[str] = None
    qty: Optional[Number] = None
    unit_price: Optional[Number] = None
    amount: Optional[Number] = Field(
        default=None,
        description="qty * unit_price in the native currency"
    )
    currency: Optional[Currency] = None
    total_uzs: Optional[int] = Field(
        default=None,
        description="Amount in local currency at the rate in force when logged"
    )
    total_usd: Optional[float] = None

    detail: Optional[str] = Field(
        default=None,
        description="Human-readable one-line summary"
    )

    @model_validator(mode='before')
    @classmethod
    def rename_legacy_keys(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        renamed = dict(data)
        for old, new in _LEGACY_KEYS.items():
            if old in renamed:
                value = renamed.pop(old)
                renamed.setdefault(new, value)
        if renamed.get("ts") is None:
            renamed["ts"] = _timestamp_from(renamed.get("date"), renamed.get("time"))
        return renamed

    @field_validator('kind', 'source', mode='before')
    @classmethod
    def enum_to_value(cls, v: Any) -> Any:
        if isinstance(v, Enum):
            return v.value
        if v is None or isinstance(v, str):
            return v
        return str(v)

    @field_validator('qty', 'unit_price', 'amount', 'total_usd', mode='before')
    @classmethod
    def coerce_numbers(cls, v: Any) -> Any:
        return _lenient_number(v)

    @field_validator('currency', mode='before')
    @classmethod
    def normalize_currency(cls, v: Any) -> Optional[Currency]:
        if v is None:
            return None
        return Currency.normalize(v)

    @field_validator('total_uzs', mode='before')
    @classmethod
    def round_total_uzs(cls, v: Any) -> Any:
        """Some older entries stored fractional or string sums."""
        v = _lenient_number(v)
        if isinstance(v, float):
            return round_local(v)
        return v

    @field_validator('product_id', mode='before')
    @classmethod
    def coerce_product_id(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @property
    def day(self) -> str:
        """ISO date of the entry, derived from ts when date is missing; "" if neither."""
        if self.date:
            return str(self.date)[:10]
        if self.ts is None:
            return ""
        return datetime.fromtimestamp(self.ts / 1000).date().isoformat()

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True, mode="json")


# =============================================================================
# BUILDERS
# =============================================================================

def _stamp(now: Optional[datetime]) -> dict[str, Any]:
    now = now or datetime.now()
    return {
        "id": str(uuid4()),
        "ts": int(now.timestamp() * 1000),
        "date": now.date().isoformat(),
        "time": now.strftime("%H:%M:%S"),
    }


def _local_total(amount: float, currency: Currency, rate: Optional[float]) -> Optional[int]:
    """Local-currency total at logging time; None when a USD amount has no rate."""
    if currency == Currency.USD:
        if not rate or rate <= 0:
            return None
        return round_local(amount * rate)
    return round_local(amount)


# Credit verbs and the kinds older clients logged them under
_CREDIT_KINDS = {
    "added": LogKind.CREDIT,
    "edited": LogKind.CREDIT_EDIT,
    "deleted": LogKind.CREDIT_DELETE,
    "completed": LogKind.CREDIT_COMPLETE,
}


class LogEntryBuilder:
    """
    Helper class to build log entries with common patterns.

    Usage:
        entry = LogEntryBuilder.product_sold(item, qty=2, user="habibjon", pool=Pool.STORE, rate=12500)
        entry = LogEntryBuilder.synthesized("Account shogirt added")
    """

    @staticmethod
    def _product_entry(
        item: InventoryItem,
        qty: Number,
        unit_price: Number,
        user: Optional[str],
        pool: Pool,
        action: str,
        kind: LogKind,
        label: str,
        rate: Optional[float],
        now: Optional[datetime],
    ) -> SaleLogEntry:
        stamp = _stamp(now)
        amount = qty * unit_price
        currency = item.currency
        total_uzs = _local_total(amount, currency, rate)
        who = user or "Admin"
        detail = (
            f"Who: {who}, Time: {stamp['time']}, Action: {label}, "
            f"Product: {item.name or item.id}, Qty: {qty}, "
            f"Price: {unit_price} {currency.value}, Total: {amount} {currency.value}"
        )
        if currency == Currency.USD and rate:
            detail += f", Rate: {round(rate)}"
        return SaleLogEntry(
            **stamp,
            user=who,
            action=action,
            kind=kind,
            source=pool,
            product_id=item.id,
            product_name=item.name or item.id,
            qty=qty,
            unit_price=unit_price,
            amount=amount,
            currency=currency,
            total_uzs=total_uzs,
            total_usd=round_foreign(amount) if currency == Currency.USD else None,
            detail=detail,
        )

    @staticmethod
    def product_added(
        item: InventoryItem,
        user: Optional[str],
        pool: Pool,
        rate: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> SaleLogEntry:
        price = item.unit_cost if pool == Pool.WAREHOUSE else item.unit_price
        return LogEntryBuilder._product_entry(
            item, item.qty, price or 0, user, pool,
            action="product_added",
            kind=LogKind.ADD,
            label=f"Product added to {pool.value}",
            rate=rate,
            now=now,
        )

    @staticmethod
    def product_edited(
        item: InventoryItem,
        user: Optional[str],
        pool: Pool,
        rate: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> SaleLogEntry:
        price = item.unit_cost if pool == Pool.WAREHOUSE else item.unit_price
        return LogEntryBuilder._product_entry(
            item, item.qty, price or 0, user, pool,
            action="product_updated",
            kind=LogKind.EDIT,
            label=f"Product edited in {pool.value}",
            rate=rate,
            now=now,
        )

    @staticmethod
    def product_deleted(
        item: InventoryItem,
        user: Optional[str],
        pool: Pool,
        rate: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> SaleLogEntry:
        price = item.unit_cost if pool == Pool.WAREHOUSE else item.unit_price
        return LogEntryBuilder._product_entry(
            item, item.qty, price or 0, user, pool,
            action="product_deleted",
            kind=LogKind.DELETE,
            label=f"Product deleted from {pool.value}",
            rate=rate,
            now=now,
        )

    @staticmethod
    def product_sold(
        item: InventoryItem,
        qty: Number,
        user: Optional[str],
        pool: Pool,
        rate: Optional[float] = None,
        unit_price: Optional[Number] = None,
        wholesale: bool = False,
        now: Optional[datetime] = None,
    ) -> SaleLogEntry:
        price = unit_price if unit_price is not None else (item.unit_price or 0)
        return LogEntryBuilder._product_entry(
            item, qty, price, user, pool,
            action="wholesale_sale" if wholesale else "product_sold",
            kind=LogKind.SELL,
            label="Wholesale sale" if wholesale else "Product sold",
            rate=rate,
            now=now,
        )

    @staticmethod
    def moved_to_store(
        item: InventoryItem,
        qty: Number,
        user: Optional[str],
        rate: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> SaleLogEntry:
        return LogEntryBuilder._product_entry(
            item, qty, item.unit_price or 0, user, Pool.WAREHOUSE,
            action="moved_to_store",
            kind=LogKind.MOVE,
            label="Moved from warehouse to store",
            rate=rate,
            now=now,
        )

    @staticmethod
    def credit_changed(
        credit: CreditEntry,
        user: Optional[str],
        verb: str,
        now: Optional[datetime] = None,
    ) -> SaleLogEntry:
        stamp = _stamp(now)
        who = user or "Admin"
        return SaleLogEntry(
            **stamp,
            user=who,
            action=f"credit_{verb}",
            kind=_CREDIT_KINDS.get(verb),
            amount=credit.amount,
            currency=credit.currency,
            detail=(
                f"Who: {who}, Time: {stamp['time']}, Action: Credit {verb}, "
                f"Name: {credit.name}, Amount: {credit.amount} {credit.currency.value}, "
                f"Type: {credit.type.value}"
            ),
        )

    @staticmethod
    def logs_purged(
        day: str,
        user: str,
        now: Optional[datetime] = None,
    ) -> SaleLogEntry:
        return SaleLogEntry(
            **_stamp(now),
            user=user,
            action=f"Logs for {day} deleted by {user}",
        )

    @staticmethod
    def synthesized(
        action: str,
        now: Optional[datetime] = None,
    ) -> SaleLogEntry:
        """Minimal entry used when a mutation arrives without a log."""
        now = now or datetime.now()
        return SaleLogEntry(
            ts=int(now.timestamp() * 1000),
            action=action,
        )
