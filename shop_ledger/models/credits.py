"""
Credit Ledger Models

A simple ledger of money owed to or lent by the shop. Credits are
independent of inventory; they only share the log.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shop_ledger.models.inventory import Currency, Number


class CreditType(str, Enum):
    """
    Direction of a credit.

    The values are the Uzbek words the stored documents use.
    """
    RECEIVED = "olingan"  # money the shop received on credit (owes)
    GIVEN = "berilgan"    # money or goods the shop lent out (is owed)


class CreditEntry(BaseModel):
    """A single credit record."""
    model_config = ConfigDict(
        frozen=True,
        extra="allow",
        str_strip_whitespace=True,
    )

    id: str = Field(
        ...,
        min_length=1,
        description="Credit identifier"
    )
    name: str = Field(
        default="",
        description="Counterparty name"
    )
    date: Optional[str] = Field(
        default=None,
        description="ISO date of the credit"
    )
    amount: Number = Field(
        default=0,
        description="Amount in the native currency"
    )
    currency: Currency = Currency.UZS
    type: CreditType = CreditType.RECEIVED
    note: Optional[str] = None
    completed: bool = Field(
        default=False,
        description="Settled credits stay in the ledger flagged as completed"
    )

    @field_validator('currency', mode='before')
    @classmethod
    def normalize_currency(cls, v: Any) -> Currency:
        return Currency.normalize(v)

    @field_validator('id', mode='before')
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    def merged(self, updates: dict[str, Any]) -> "CreditEntry":
        """Shallow-merge a dict of updates and re-validate."""
        data = self.to_document()
        data.update(updates)
        return CreditEntry.model_validate(data)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True, mode="json")
