"""
Inventory Models for Shop Ledger

An item lives in one of two pools: the warehouse or the store.
The same product id can exist in both pools at once; moving stock
from the warehouse to the store is the only cross-pool operation.

DESIGN DECISION: Field names on the wire are the short keys the
persisted document has always used (cost, price, date). Python code
uses the descriptive names (unit_cost, unit_price, arrived_date).
Unknown keys on stored items (category, pack sizes, converted copies)
are kept as-is so a load/save cycle never loses data.
"""

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


Number = Union[int, float]


# =============================================================================
# ENUMS
# =============================================================================

class Currency(str, Enum):
    """
    Currencies an amount can be recorded in.

    UZS is the local currency, USD the only foreign one.
    """
    UZS = "UZS"
    USD = "USD"

    @classmethod
    def normalize(cls, value: Any) -> "Currency":
        """Map missing or unknown currency codes to the local currency."""
        if isinstance(value, Currency):
            return value
        code = str(value or "").strip().upper()
        if code == cls.USD.value:
            return cls.USD
        return cls.UZS


class Pool(str, Enum):
    """The two independent inventory collections."""
    WAREHOUSE = "warehouse"
    STORE = "store"


# =============================================================================
# INVENTORY ITEM
# =============================================================================

class InventoryItem(BaseModel):
    """
    A product row in the warehouse or store pool.

    Quantities are never negative in storage: the reducer drops any
    row whose quantity reaches zero or below.
    """
    model_config = ConfigDict(
        frozen=True,
        extra="allow",
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    id: str = Field(
        ...,
        min_length=1,
        description="Product identifier, shared between pools"
    )
    name: str = Field(
        default="",
        description="Product name"
    )
    qty: Number = Field(
        default=0,
        description="Quantity on hand"
    )
    unit_cost: Optional[Number] = Field(
        default=None,
        alias="cost",
        description="Purchase cost per unit, in the item currency"
    )
    unit_price: Optional[Number] = Field(
        default=None,
        alias="price",
        description="Selling price per unit, in the item currency"
    )
    currency: Currency = Field(
        default=Currency.UZS,
        description="Native currency of cost and price"
    )
    arrived_date: Optional[str] = Field(
        default=None,
        alias="date",
        description="ISO date the stock arrived"
    )
    note: Optional[str] = None

    @field_validator('currency', mode='before')
    @classmethod
    def normalize_currency(cls, v: Any) -> Currency:
        return Currency.normalize(v)

    @field_validator('id', mode='before')
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        """Older documents stored numeric ids."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    def with_qty(self, qty: Number) -> "InventoryItem":
        """Return a copy with a new quantity."""
        return self.model_copy(update={"qty": qty})

    def merged(self, updates: dict[str, Any]) -> "InventoryItem":
        """
        Shallow-merge a dict of updates (wire or python keys).

        Re-validates so aliased keys such as 'price' land on unit_price.
        """
        data = self.to_document()
        for key, value in updates.items():
            field = type(self).model_fields.get(key)
            data[field.alias if field is not None and field.alias else key] = value
        return InventoryItem.model_validate(data)

    def to_document(self) -> dict[str, Any]:
        """Serialize with the persisted document's key names."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
