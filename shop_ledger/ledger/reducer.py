"""
Ledger Reducer

reduce(state, action) -> new state. The only way the shop state changes.

GUARANTEES:
- Pure: no I/O. Persistence and receipts react to the returned state.
- Never raises. An action that cannot be applied returns the input
  state object unchanged (identity), and a warning is logged.
- Every branch that changes warehouse, store, credits or accounts
  appends exactly one log entry, at the end of the log.
- No pool keeps a row whose quantity is zero or below.

NOT GUARANTEED:
- Over-selling is not clamped. Selling more than is on hand simply
  removes the row; checking availability is the caller's job.
- Uniqueness of new ids and usernames is the caller's job.
"""

import json
from typing import Any, Callable, Optional

from pydantic import ValidationError

from shop_ledger.accounts import is_protected
from shop_ledger.audit import get_logger
from shop_ledger.models.actions import (
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
from shop_ledger.models.inventory import InventoryItem, Number
from shop_ledger.models.logs import LogEntryBuilder, SaleLogEntry
from shop_ledger.models.state import AppState


logger = get_logger(__name__)


# =============================================================================
# HELPERS
# =============================================================================

def _entry(action: BaseAction, fallback: str) -> SaleLogEntry:
    """The action's own log entry, or a minimal synthesized one."""
    return action.log if action.log is not None else LogEntryBuilder.synthesized(fallback)


def _same_json(a: Any, b: Any) -> bool:
    """Equal as stored JSON. Unlike ==, 0 and False differ here."""
    return json.dumps(a, sort_keys=True, default=str) == json.dumps(b, sort_keys=True, default=str)


def _append(state: AppState, entry: SaleLogEntry) -> list[SaleLogEntry]:
    return [*state.logs, entry]


def _drop_empty(pool: list[InventoryItem]) -> list[InventoryItem]:
    return [item for item in pool if item.qty > 0]


def _decrement(pool: list[InventoryItem], item_id: str, qty: Number) -> list[InventoryItem]:
    updated = [
        item.with_qty(item.qty - qty) if item.id == item_id else item
        for item in pool
    ]
    return _drop_empty(updated)


def _update(
    state: AppState,
    entry: Optional[SaleLogEntry] = None,
    **changes,
) -> AppState:
    if entry is not None:
        changes["logs"] = _append(state, entry)
    return state.model_copy(update=changes)


# =============================================================================
# HANDLERS
# =============================================================================

def _init(state: AppState, action: Init) -> AppState:
    merged = {**state.to_document(), **action.document}
    return AppState.from_document(merged)


def _add_warehouse(state: AppState, action: AddWarehouse) -> AppState:
    return _update(
        state,
        _entry(action, f"Product {action.item.id} added to warehouse"),
        warehouse=[*state.warehouse, action.item],
    )


def _add_store(state: AppState, action: AddStore) -> AppState:
    return _update(
        state,
        _entry(action, f"Product {action.item.id} added to store"),
        store=[*state.store, action.item],
    )


def _move_to_store(state: AppState, action: MoveToStore) -> AppState:
    warehouse = _decrement(state.warehouse, action.id, action.qty)

    incoming = action.item
    if any(row.id == incoming.id for row in state.store):
        store = [
            row.with_qty(row.qty + action.qty) if row.id == incoming.id else row
            for row in state.store
        ]
    else:
        store = [*state.store, incoming]

    return _update(
        state,
        _entry(action, f"Moved {action.qty} of {action.id} to store"),
        warehouse=warehouse,
        store=store,
    )


def _sell_store(state: AppState, action: SellStore) -> AppState:
    return _update(
        state,
        _entry(action, f"Sold {action.qty} of {action.id} from store"),
        store=_decrement(state.store, action.id, action.qty),
    )


def _sell_warehouse(state: AppState, action: SellWarehouse) -> AppState:
    return _update(
        state,
        _entry(action, f"Sold {action.qty} of {action.id} from warehouse"),
        warehouse=_decrement(state.warehouse, action.id, action.qty),
    )


def _delete_store(state: AppState, action: DeleteStore) -> AppState:
    return _update(
        state,
        _entry(action, f"Product {action.id} deleted from store"),
        store=[row for row in state.store if row.id != action.id],
    )


def _delete_warehouse(state: AppState, action: DeleteWarehouse) -> AppState:
    return _update(
        state,
        _entry(action, f"Product {action.id} deleted from warehouse"),
        warehouse=[row for row in state.warehouse if row.id != action.id],
    )


def _edit_warehouse(state: AppState, action: EditWarehouse) -> AppState:
    warehouse = [
        row.merged(action.updates) if row.id == action.id else row
        for row in state.warehouse
    ]
    return _update(
        state,
        _entry(action, f"Product {action.id} edited in warehouse"),
        warehouse=_drop_empty(warehouse),
    )


def _edit_store(state: AppState, action: EditStore) -> AppState:
    store = [
        row.merged(action.updates) if row.id == action.id else row
        for row in state.store
    ]
    return _update(
        state,
        _entry(action, f"Product {action.id} edited in store"),
        store=_drop_empty(store),
    )


def _adjust_warehouse_qty(state: AppState, action: AdjustWarehouseQty) -> AppState:
    warehouse = [
        row.with_qty(row.qty + action.delta) if row.id == action.id else row
        for row in state.warehouse
    ]
    return _update(
        state,
        _entry(action, f"Warehouse quantity of {action.id} adjusted by {action.delta}"),
        warehouse=_drop_empty(warehouse),
    )


def _add_credit(state: AppState, action: AddCredit) -> AppState:
    return _update(
        state,
        _entry(action, f"Credit {action.credit.id} added"),
        credits=[*state.credits, action.credit],
    )


def _edit_credit(state: AppState, action: EditCredit) -> AppState:
    credits = [
        credit.merged(action.updates) if credit.id == action.id else credit
        for credit in state.credits
    ]
    return _update(
        state,
        _entry(action, f"Credit {action.id} edited"),
        credits=credits,
    )


def _delete_credit(state: AppState, action: DeleteCredit) -> AppState:
    return _update(
        state,
        _entry(action, f"Credit {action.id} deleted"),
        credits=[credit for credit in state.credits if credit.id != action.id],
    )


def _set_exchange_rate(state: AppState, action: SetExchangeRate) -> AppState:
    rate = action.rate if action.rate and action.rate > 0 else None
    if rate == state.exchange_rate:
        return state
    return _update(state, exchange_rate=rate)


def _add_account(state: AppState, action: AddAccount) -> AppState:
    return _update(
        state,
        _entry(action, f"Account {action.account.username} added"),
        accounts=[*state.accounts, action.account],
    )


def _edit_account(state: AppState, action: EditAccount) -> AppState:
    if is_protected(action.username):
        return state
    key = action.username.lower()
    accounts = [
        account.merged(action.updates) if account.key == key else account
        for account in state.accounts
    ]
    return _update(
        state,
        _entry(action, f"Account {action.username} edited"),
        accounts=accounts,
    )


def _delete_account(state: AppState, action: DeleteAccount) -> AppState:
    if is_protected(action.username):
        return state
    key = action.username.lower()
    return _update(
        state,
        _entry(action, f"Account {action.username} deleted"),
        accounts=[account for account in state.accounts if account.key != key],
    )


def _delete_logs_for_date(state: AppState, action: DeleteLogsForDate) -> AppState:
    if not is_protected(action.user):
        return state
    remaining = [
        entry for entry in state.logs
        if (entry.date or "")[:10] != action.date
    ]
    entry = action.log or LogEntryBuilder.logs_purged(action.date, action.user)
    return state.model_copy(update={"logs": [*remaining, entry]})


def _set_ui(state: AppState, action: SetUI) -> AppState:
    next_ui = {**state.ui, **action.updates}
    if _same_json(next_ui, state.ui):
        return state
    return _update(state, ui=next_ui)


def _set_draft(state: AppState, action: SetDraft) -> AppState:
    if not action.key:
        return state
    if action.key in state.drafts and _same_json(state.drafts[action.key], action.value):
        return state
    return _update(state, drafts={**state.drafts, action.key: action.value})


def _clear_draft(state: AppState, action: ClearDraft) -> AppState:
    if not action.key or action.key not in state.drafts:
        return state
    drafts = {key: value for key, value in state.drafts.items() if key != action.key}
    return _update(state, drafts=drafts)


_HANDLERS: dict[type, Callable[[AppState, BaseAction], AppState]] = {
    Init: _init,
    AddWarehouse: _add_warehouse,
    AddStore: _add_store,
    MoveToStore: _move_to_store,
    SellStore: _sell_store,
    SellWarehouse: _sell_warehouse,
    DeleteStore: _delete_store,
    DeleteWarehouse: _delete_warehouse,
    EditWarehouse: _edit_warehouse,
    EditStore: _edit_store,
    AdjustWarehouseQty: _adjust_warehouse_qty,
    AddCredit: _add_credit,
    EditCredit: _edit_credit,
    DeleteCredit: _delete_credit,
    SetExchangeRate: _set_exchange_rate,
    AddAccount: _add_account,
    EditAccount: _edit_account,
    DeleteAccount: _delete_account,
    DeleteLogsForDate: _delete_logs_for_date,
    SetUI: _set_ui,
    SetDraft: _set_draft,
    ClearDraft: _clear_draft,
}


def reduce(state: AppState, action: BaseAction) -> AppState:
    """
    Apply one action to the state.

    Unknown action classes and actions whose updates fail validation
    return `state` itself.
    """
    handler = _HANDLERS.get(type(action))
    if handler is None:
        logger.warning("unknown_action", action_type=type(action).__name__)
        return state
    try:
        return handler(state, action)
    except ValidationError as e:
        logger.warning(
            "action_not_applied",
            action_type=getattr(action, "type", None),
            error=str(e),
        )
        return state


def apply_raw(state: AppState, raw: dict) -> AppState:
    """
    Parse a wire-format action and apply it.

    Malformed or unknown actions are logged and ignored.
    """
    try:
        action = parse_action(raw)
    except ValidationError as e:
        logger.warning(
            "action_rejected",
            action_type=raw.get("type") if isinstance(raw, dict) else None,
            error=str(e),
        )
        return state
    return reduce(state, action)
