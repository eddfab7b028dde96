"""
Application State

AppState is the aggregate root: the whole shop in one document.
It is created once at startup (empty defaults merged with whatever
storage returned), changed only through the reducer, and persisted
as a single JSON document.

DESIGN DECISION: AppState and everything in it is frozen.
The reducer builds new lists and new models instead of mutating, so
"did anything change?" is a cheap identity check (new is not old).
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from shop_ledger.config import get_settings
from shop_ledger.models.accounts import PROTECTED_USERNAMES, Account, Permissions
from shop_ledger.models.credits import CreditEntry
from shop_ledger.models.inventory import Currency, InventoryItem, Pool
from shop_ledger.models.logs import SaleLogEntry


def default_ui() -> dict[str, Any]:
    """UI preferences of a fresh state; receipt rate and currency come from settings."""
    app = get_settings().app
    rate = app.default_receipt_rate
    return {
        "dark": False,
        "receiptRate": int(rate) if float(rate).is_integer() else rate,
        "displayCurrency": Currency.normalize(app.local_currency).value,
    }


def default_accounts() -> list[Account]:
    """Two protected admins plus one restricted apprentice account."""
    admins = [
        Account(username=name, label=name.capitalize(), permissions=Permissions.all_granted())
        for name in PROTECTED_USERNAMES
    ]
    return [
        *admins,
        Account(username="shogirt", label="Shogirt", permissions=Permissions()),
    ]


class AppState(BaseModel):
    """
    The whole shop state.

    No foreign-key integrity is enforced between pools, logs and
    credits; ids are linked by convention only.
    """
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
    )

    warehouse: list[InventoryItem] = Field(default_factory=list)
    store: list[InventoryItem] = Field(default_factory=list)
    logs: list[SaleLogEntry] = Field(default_factory=list)
    credits: list[CreditEntry] = Field(default_factory=list)
    exchange_rate: Optional[float] = Field(
        default=None,
        alias="exchangeRate",
        description="Manual USD -> UZS override; None means fetch"
    )
    ui: dict[str, Any] = Field(default_factory=default_ui)
    drafts: dict[str, Any] = Field(default_factory=dict)
    accounts: list[Account] = Field(default_factory=default_accounts)

    def pool(self, pool: Pool) -> list[InventoryItem]:
        return self.warehouse if pool == Pool.WAREHOUSE else self.store

    def find_item(self, pool: Pool, item_id: str) -> Optional[InventoryItem]:
        for item in self.pool(pool):
            if item.id == item_id:
                return item
        return None

    @property
    def display_currency(self) -> Currency:
        return Currency.normalize(self.ui.get("displayCurrency"))

    def to_document(self) -> dict[str, Any]:
        """Serialize to the persisted JSON document shape."""
        return {
            "warehouse": [item.to_document() for item in self.warehouse],
            "store": [item.to_document() for item in self.store],
            "logs": [entry.to_document() for entry in self.logs],
            "credits": [credit.to_document() for credit in self.credits],
            "exchangeRate": self.exchange_rate,
            "ui": dict(self.ui),
            "drafts": dict(self.drafts),
            "accounts": [account.to_document() for account in self.accounts],
        }

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "AppState":
        """Build a state from a persisted document, defaults for missing keys."""
        return cls.model_validate(document)
