"""
Data Models Package

Pydantic models for everything stored in the shop state document,
plus the typed actions the reducer accepts.
"""

from shop_ledger.models.inventory import (
    Currency,
    InventoryItem,
    Number,
    Pool,
)
from shop_ledger.models.credits import (
    CreditEntry,
    CreditType,
)
from shop_ledger.models.accounts import (
    PROTECTED_USERNAMES,
    Account,
    Permission,
    Permissions,
)
from shop_ledger.models.logs import (
    LogEntryBuilder,
    LogKind,
    SaleLogEntry,
)
from shop_ledger.models.state import (
    AppState,
    default_accounts,
    default_ui,
)
from shop_ledger.models.actions import (
    Action,
    AddAccount,
    AddCredit,
    AddStore,
    AddWarehouse,
    AdjustWarehouseQty,
    BaseAction,
    ClearDraft,
    DeleteAccount,
    DeleteCredit,
    DeleteLogsForDate,
    DeleteStore,
    DeleteWarehouse,
    EditAccount,
    EditCredit,
    EditStore,
    EditWarehouse,
    Init,
    MoveToStore,
    SellStore,
    SellWarehouse,
    SetDraft,
    SetExchangeRate,
    SetUI,
    parse_action,
)

__all__ = [
    # Inventory
    "Currency",
    "InventoryItem",
    "Number",
    "Pool",
    # Credits
    "CreditEntry",
    "CreditType",
    # Accounts
    "PROTECTED_USERNAMES",
    "Account",
    "Permission",
    "Permissions",
    # Logs
    "LogEntryBuilder",
    "LogKind",
    "SaleLogEntry",
    # State
    "AppState",
    "default_accounts",
    "default_ui",
    # Actions
    "Action",
    "AddAccount",
    "AddCredit",
    "AddStore",
    "AddWarehouse",
    "AdjustWarehouseQty",
    "BaseAction",
    "ClearDraft",
    "DeleteAccount",
    "DeleteCredit",
    "DeleteLogsForDate",
    "DeleteStore",
    "DeleteWarehouse",
    "EditAccount",
    "EditCredit",
    "EditStore",
    "EditWarehouse",
    "Init",
    "MoveToStore",
    "SellStore",
    "SellWarehouse",
    "SetDraft",
    "SetExchangeRate",
    "SetUI",
    "parse_action",
]
