"""
Reducer Actions

Each action type is its own model with a typed payload. Together they
form a tagged union discriminated by `type`, so the reducer can look
up exactly one handler per action and a payload with a missing field
is rejected at parse time instead of half-applied.

Wire format (what older callers dispatch) is the loose shape
    {"type": "SELL_STORE", "payload": {"id": "p1", "qty": 2}, "log": {...}}
parse_action() converts that into the typed models below.
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, TypeAdapter

from shop_ledger.models.accounts import Account
from shop_ledger.models.credits import CreditEntry
from shop_ledger.models.inventory import InventoryItem, Number
from shop_ledger.models.logs import SaleLogEntry


def _coerce_id(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


ItemId = Annotated[str, BeforeValidator(_coerce_id)]


class BaseAction(BaseModel):
    """Fields shared by every action."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    log: Optional[SaleLogEntry] = Field(
        default=None,
        description="Entry to append; synthesized when a mutation has none"
    )


# =============================================================================
# LIFECYCLE
# =============================================================================

class Init(BaseAction):
    type: Literal["INIT"] = "INIT"
    document: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# INVENTORY
# =============================================================================

class AddWarehouse(BaseAction):
    type: Literal["ADD_WAREHOUSE"] = "ADD_WAREHOUSE"
    item: InventoryItem


class AddStore(BaseAction):
    type: Literal["ADD_STORE"] = "ADD_STORE"
    item: InventoryItem


class MoveToStore(BaseAction):
    """Move `qty` units of warehouse item `id` into the store."""
    type: Literal["MOVE_TO_STORE"] = "MOVE_TO_STORE"
    id: ItemId
    qty: Number
    item: InventoryItem = Field(
        ...,
        description="Store row to insert when the store has no row with this id"
    )


class SellStore(BaseAction):
    type: Literal["SELL_STORE"] = "SELL_STORE"
    id: ItemId
    qty: Number


class SellWarehouse(BaseAction):
    type: Literal["SELL_WAREHOUSE"] = "SELL_WAREHOUSE"
    id: ItemId
    qty: Number


class DeleteStore(BaseAction):
    type: Literal["DELETE_STORE"] = "DELETE_STORE"
    id: ItemId


class DeleteWarehouse(BaseAction):
    type: Literal["DELETE_WAREHOUSE"] = "DELETE_WAREHOUSE"
    id: ItemId


class EditWarehouse(BaseAction):
    type: Literal["EDIT_WAREHOUSE"] = "EDIT_WAREHOUSE"
    id: ItemId
    updates: dict[str, Any] = Field(default_factory=dict)


class EditStore(BaseAction):
    type: Literal["EDIT_STORE"] = "EDIT_STORE"
    id: ItemId
    updates: dict[str, Any] = Field(default_factory=dict)


class AdjustWarehouseQty(BaseAction):
    """Signed quantity correction on one warehouse row."""
    type: Literal["ADJUST_WAREHOUSE_QTY"] = "ADJUST_WAREHOUSE_QTY"
    id: ItemId
    delta: Number


# =============================================================================
# CREDITS
# =============================================================================

class AddCredit(BaseAction):
    type: Literal["ADD_CREDIT"] = "ADD_CREDIT"
    credit: CreditEntry


class EditCredit(BaseAction):
    type: Literal["EDIT_CREDIT"] = "EDIT_CREDIT"
    id: ItemId
    updates: dict[str, Any] = Field(default_factory=dict)


class DeleteCredit(BaseAction):
    type: Literal["DELETE_CREDIT"] = "DELETE_CREDIT"
    id: ItemId


# =============================================================================
# SETTINGS, ACCOUNTS, LOGS
# =============================================================================

class SetExchangeRate(BaseAction):
    """Set or clear (None) the manual USD -> UZS override."""
    type: Literal["SET_EXCHANGE_RATE"] = "SET_EXCHANGE_RATE"
    rate: Optional[float] = None


class AddAccount(BaseAction):
    type: Literal["ADD_ACCOUNT"] = "ADD_ACCOUNT"
    account: Account


class EditAccount(BaseAction):
    type: Literal["EDIT_ACCOUNT"] = "EDIT_ACCOUNT"
    username: str = ""
    updates: dict[str, Any] = Field(default_factory=dict)


class DeleteAccount(BaseAction):
    type: Literal["DELETE_ACCOUNT"] = "DELETE_ACCOUNT"
    username: str = ""


class DeleteLogsForDate(BaseAction):
    """Purge one day's log entries. Only protected admins may do this."""
    type: Literal["DELETE_LOGS_FOR_DATE"] = "DELETE_LOGS_FOR_DATE"
    date: str = ""
    user: str = "unknown"


class SetUI(BaseAction):
    type: Literal["SET_UI"] = "SET_UI"
    updates: dict[str, Any] = Field(default_factory=dict)


class SetDraft(BaseAction):
    type: Literal["SET_DRAFT"] = "SET_DRAFT"
    key: Optional[str] = None
    value: Any = None


class ClearDraft(BaseAction):
    type: Literal["CLEAR_DRAFT"] = "CLEAR_DRAFT"
    key: Optional[str] = None


Action = Annotated[
    Union[
        Init,
        AddWarehouse,
        AddStore,
        MoveToStore,
        SellStore,
        SellWarehouse,
        DeleteStore,
        DeleteWarehouse,
        EditWarehouse,
        EditStore,
        AdjustWarehouseQty,
        AddCredit,
        EditCredit,
        DeleteCredit,
        SetExchangeRate,
        AddAccount,
        EditAccount,
        DeleteAccount,
        DeleteLogsForDate,
        SetUI,
        SetDraft,
        ClearDraft,
    ],
    Field(discriminator="type"),
]

_ACTION_ADAPTER: TypeAdapter = TypeAdapter(Action)

# Actions whose wire payload is a single value rather than a dict of fields
_SCALAR_PAYLOAD_FIELD = {
    "INIT": "document",
    "ADD_WAREHOUSE": "item",
    "ADD_STORE": "item",
    "ADD_CREDIT": "credit",
    "ADD_ACCOUNT": "account",
    "SET_EXCHANGE_RATE": "rate",
    "SET_UI": "updates",
}


def parse_action(raw: dict[str, Any]) -> BaseAction:
    """
    Convert a loose wire-format action into its typed model.

    Raises:
        pydantic.ValidationError: unknown type or malformed payload
    """
    action_type = raw.get("type")
    payload = raw.get("payload")
    data: dict[str, Any] = {"type": action_type}

    field = _SCALAR_PAYLOAD_FIELD.get(action_type)
    if field is not None:
        if payload is not None:
            data[field] = payload
    elif isinstance(payload, dict):
        data.update(payload)

    if raw.get("log") is not None:
        data["log"] = raw["log"]

    return _ACTION_ADAPTER.validate_python(data)
