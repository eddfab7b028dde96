"""
Tests for the ledger reducer

Test strategy:
1. One test class per family of actions
2. Invariants checked across sequences (no empty rows, one log per mutation)
3. Refused actions must return the very same state object
"""

import pytest

from shop_ledger.ledger import apply_raw, reduce
from shop_ledger.models import (
    Account,
    AddAccount,
    AddCredit,
    AddStore,
    AddWarehouse,
    AdjustWarehouseQty,
    AppState,
    ClearDraft,
    CreditEntry,
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
    LogEntryBuilder,
    MoveToStore,
    Pool,
    SaleLogEntry,
    SellStore,
    SellWarehouse,
    SetDraft,
    SetExchangeRate,
    SetUI,
)


def qty_of(state, pool, item_id):
    item = state.find_item(pool, item_id)
    return item.qty if item else 0


class TestInventoryActions:
    """Adding, selling, deleting and editing products."""

    def test_add_warehouse_appends_item_and_log(self, make_item):
        item = make_item("n1", qty=4)
        log = LogEntryBuilder.product_added(item, "habibjon", Pool.WAREHOUSE)
        state = reduce(AppState(), AddWarehouse(item=item, log=log))
        assert state.warehouse == [item]
        assert state.logs == [log]

    def test_add_store(self, make_item):
        state = reduce(AppState(), AddStore(item=make_item("n1")))
        assert [i.id for i in state.store] == ["n1"]

    def test_sell_store_decrements(self, stocked_state):
        state = reduce(stocked_state, SellStore(id="s1", qty=2))
        assert qty_of(state, Pool.STORE, "s1") == 1

    def test_sell_removes_row_at_zero(self, stocked_state):
        state = reduce(stocked_state, SellStore(id="s1", qty=3))
        assert state.find_item(Pool.STORE, "s1") is None

    def test_oversell_removes_row(self, stocked_state):
        state = reduce(stocked_state, SellWarehouse(id="w2", qty=50))
        assert state.find_item(Pool.WAREHOUSE, "w2") is None

    def test_sell_unknown_id_still_logs(self, stocked_state):
        state = reduce(stocked_state, SellStore(id="missing", qty=1))
        assert state.store == stocked_state.store
        assert len(state.logs) == 1

    def test_no_empty_rows_after_sale_sequence(self, stocked_state):
        state = stocked_state
        for item_id, qty in [("w1", 7), ("w1", 7), ("w2", 5), ("w1", 6), ("w1", 1)]:
            state = reduce(state, SellWarehouse(id=item_id, qty=qty))
        for item_id, qty in [("s1", 1), ("w2", 2), ("s1", 5)]:
            state = reduce(state, SellStore(id=item_id, qty=qty))
        assert all(item.qty > 0 for item in state.warehouse + state.store)
        assert state.warehouse == [] and state.store == []

    def test_delete_store(self, stocked_state):
        state = reduce(stocked_state, DeleteStore(id="s1"))
        assert [i.id for i in state.store] == ["w2"]

    def test_delete_warehouse(self, stocked_state):
        state = reduce(stocked_state, DeleteWarehouse(id="w1"))
        assert [i.id for i in state.warehouse] == ["w2"]

    def test_edit_warehouse_merges(self, stocked_state):
        state = reduce(stocked_state, EditWarehouse(id="w1", updates={"price": 17000, "name": "Green tea"}))
        item = state.find_item(Pool.WAREHOUSE, "w1")
        assert item.unit_price == 17000
        assert item.name == "Green tea"
        assert item.qty == 20

    def test_edit_store_to_zero_drops_row(self, stocked_state):
        state = reduce(stocked_state, EditStore(id="s1", updates={"qty": 0}))
        assert state.find_item(Pool.STORE, "s1") is None

    def test_adjust_warehouse_qty(self, stocked_state):
        state = reduce(stocked_state, AdjustWarehouseQty(id="w1", delta=-5))
        assert qty_of(state, Pool.WAREHOUSE, "w1") == 15
        state = reduce(state, AdjustWarehouseQty(id="w1", delta=3))
        assert qty_of(state, Pool.WAREHOUSE, "w1") == 18

    def test_invalid_edit_returns_same_state(self, stocked_state):
        state = reduce(stocked_state, EditWarehouse(id="w1", updates={"id": ""}))
        assert state is stocked_state

    def test_input_state_untouched(self, stocked_state):
        before = stocked_state.to_document()
        reduce(stocked_state, SellStore(id="s1", qty=1))
        assert stocked_state.to_document() == before


class TestMoveToStore:
    """The only transfer between pools."""

    def test_existing_store_row_incremented(self, stocked_state):
        item = stocked_state.find_item(Pool.WAREHOUSE, "w2")
        state = reduce(stocked_state, MoveToStore(id="w2", qty=3, item=item.with_qty(3)))
        assert qty_of(state, Pool.WAREHOUSE, "w2") == 2
        assert qty_of(state, Pool.STORE, "w2") == 5

    def test_new_store_row_inserted(self, stocked_state):
        item = stocked_state.find_item(Pool.WAREHOUSE, "w1")
        state = reduce(stocked_state, MoveToStore(id="w1", qty=4, item=item.with_qty(4)))
        assert qty_of(state, Pool.WAREHOUSE, "w1") == 16
        assert qty_of(state, Pool.STORE, "w1") == 4
        assert state.store[-1].id == "w1"

    @pytest.mark.parametrize("item_id,qty", [("w1", 1), ("w1", 20), ("w2", 2), ("w2", 5)])
    def test_total_quantity_preserved(self, stocked_state, item_id, qty):
        item = stocked_state.find_item(Pool.WAREHOUSE, item_id)
        wh_before = qty_of(stocked_state, Pool.WAREHOUSE, item_id)
        st_before = qty_of(stocked_state, Pool.STORE, item_id)
        state = reduce(stocked_state, MoveToStore(id=item_id, qty=qty, item=item.with_qty(qty)))
        assert qty_of(state, Pool.WAREHOUSE, item_id) == wh_before - qty
        assert qty_of(state, Pool.STORE, item_id) == st_before + qty

    def test_moving_everything_removes_warehouse_row(self, stocked_state):
        item = stocked_state.find_item(Pool.WAREHOUSE, "w1")
        state = reduce(stocked_state, MoveToStore(id="w1", qty=20, item=item))
        assert state.find_item(Pool.WAREHOUSE, "w1") is None

    def test_single_log_entry(self, stocked_state):
        item = stocked_state.find_item(Pool.WAREHOUSE, "w1")
        log = LogEntryBuilder.moved_to_store(item, 2, "habibjon")
        state = reduce(stocked_state, MoveToStore(id="w1", qty=2, item=item.with_qty(2), log=log))
        assert state.logs == [log]


class TestLogging:
    """Every mutation appends exactly one entry at the end."""

    def test_one_entry_per_mutation(self, stocked_state, make_item):
        credit = CreditEntry(id="c1", amount=10)
        actions = [
            AddWarehouse(item=make_item("n1")),
            AddStore(item=make_item("n2")),
            SellStore(id="s1", qty=1),
            SellWarehouse(id="w1", qty=1),
            EditWarehouse(id="w1", updates={"name": "x"}),
            EditStore(id="s1", updates={"name": "y"}),
            AdjustWarehouseQty(id="w1", delta=1),
            DeleteStore(id="n2"),
            DeleteWarehouse(id="n1"),
            AddCredit(credit=credit),
            EditCredit(id="c1", updates={"completed": True}),
            DeleteCredit(id="c1"),
            AddAccount(account=Account(username="kassir")),
            EditAccount(username="kassir", updates={"label": "Kassir"}),
            DeleteAccount(username="kassir"),
        ]
        state = stocked_state
        for action in actions:
            before = len(state.logs)
            state = reduce(state, action)
            assert len(state.logs) == before + 1, action.type

    def test_supplied_entry_goes_last(self, stocked_state):
        first = SaleLogEntry(ts=1, action="first")
        second = SaleLogEntry(ts=2, action="second")
        state = reduce(stocked_state, SellStore(id="s1", qty=1, log=first))
        state = reduce(state, SellStore(id="s1", qty=1, log=second))
        assert [e.action for e in state.logs] == ["first", "second"]

    def test_missing_entry_is_synthesized(self, stocked_state):
        state = reduce(stocked_state, DeleteStore(id="s1"))
        assert state.logs[-1].action
        assert state.logs[-1].ts > 0


class TestCredits:
    """Credit ledger actions."""

    def test_add_edit_delete(self):
        state = reduce(AppState(), AddCredit(credit=CreditEntry(id="c1", name="Ali", amount=100)))
        state = reduce(state, EditCredit(id="c1", updates={"amount": 150, "completed": True}))
        assert state.credits[0].amount == 150
        assert state.credits[0].completed is True
        state = reduce(state, DeleteCredit(id="c1"))
        assert state.credits == []


class TestAccounts:
    """Account actions and protected admins."""

    @pytest.mark.parametrize("username", ["hamdamjon", "habibjon", "HabibJon"])
    def test_protected_edit_is_identity(self, username):
        state = AppState()
        action = EditAccount(username=username, updates={"permissions": {"manage_accounts": False}})
        assert reduce(state, action) is state

    @pytest.mark.parametrize("username", ["hamdamjon", "HAMDAMJON", "habibjon"])
    def test_protected_delete_is_identity(self, username):
        state = AppState()
        assert reduce(state, DeleteAccount(username=username)) is state

    def test_add_account_does_not_deduplicate(self):
        state = reduce(AppState(), AddAccount(account=Account(username="Shogirt")))
        assert [a.key for a in state.accounts].count("shogirt") == 2

    def test_edit_matches_case_insensitively(self):
        state = reduce(AppState(), EditAccount(username="SHOGIRT", updates={"permissions": {"add_products": True}}))
        shogirt = next(a for a in state.accounts if a.key == "shogirt")
        assert shogirt.permissions.add_products is True
        assert shogirt.permissions.manage_accounts is False

    def test_delete_account(self):
        state = reduce(AppState(), DeleteAccount(username="shogirt"))
        assert "shogirt" not in [a.key for a in state.accounts]


class TestPreferences:
    """UI, drafts and the manual exchange rate."""

    def test_set_ui_is_idempotent(self):
        once = reduce(AppState(), SetUI(updates={"dark": True}))
        twice = reduce(once, SetUI(updates={"dark": True}))
        assert once.ui["dark"] is True
        assert twice is once

    def test_set_ui_same_as_default_is_identity(self):
        state = AppState()
        assert reduce(state, SetUI(updates={"displayCurrency": "UZS"})) is state

    def test_ui_changes_do_not_log(self):
        state = reduce(AppState(), SetUI(updates={"displayCurrency": "USD"}))
        assert state.logs == []

    def test_set_ui_falsy_value_is_a_change(self):
        """0 and False are different stored values."""
        state = AppState()
        changed = reduce(state, SetUI(updates={"dark": 0}))
        assert changed is not state
        assert changed.ui["dark"] == 0
        assert changed.to_document()["ui"]["dark"] is not False

    def test_set_draft_falsy_value_is_a_change(self):
        state = reduce(AppState(), SetDraft(key="sale", value=False))
        changed = reduce(state, SetDraft(key="sale", value=0))
        assert changed is not state
        assert reduce(changed, SetDraft(key="sale", value=0)) is changed

    def test_set_draft_none_on_missing_key_is_stored(self):
        state = AppState()
        changed = reduce(state, SetDraft(key="sale", value=None))
        assert changed.drafts == {"sale": None}

    def test_drafts(self):
        state = reduce(AppState(), SetDraft(key="sale", value={"qty": 2}))
        assert state.drafts == {"sale": {"qty": 2}}
        assert reduce(state, SetDraft(key="sale", value={"qty": 2})) is state
        cleared = reduce(state, ClearDraft(key="sale"))
        assert cleared.drafts == {}
        assert reduce(cleared, ClearDraft(key="sale")) is cleared

    def test_draft_without_key_is_identity(self):
        state = AppState()
        assert reduce(state, SetDraft(key=None, value=1)) is state

    def test_exchange_rate(self):
        state = reduce(AppState(), SetExchangeRate(rate=12650))
        assert state.exchange_rate == 12650
        assert state.logs == []
        assert reduce(state, SetExchangeRate(rate=12650)) is state
        assert reduce(state, SetExchangeRate(rate=0)).exchange_rate is None


class TestDeleteLogsForDate:
    """Purging one day of the log."""

    def _state_with_logs(self):
        return AppState(logs=[
            SaleLogEntry(ts=1, action="a", date="2024-03-14"),
            SaleLogEntry(ts=2, action="b", date="2024-03-15"),
            SaleLogEntry(ts=3, action="c", date="2024-03-15T09:00:00"),
        ])

    def test_protected_user_purges_day(self):
        state = reduce(self._state_with_logs(), DeleteLogsForDate(date="2024-03-15", user="hamdamjon"))
        assert [e.action for e in state.logs[:-1]] == ["a"]
        assert "2024-03-15" in state.logs[-1].action

    def test_other_user_refused(self):
        state = self._state_with_logs()
        assert reduce(state, DeleteLogsForDate(date="2024-03-15", user="shogirt")) is state


class TestLifecycle:
    """INIT and wire-format dispatch."""

    def test_init_merges_over_defaults(self):
        state = reduce(AppState(), Init(document={"exchangeRate": 12000, "store": [{"id": "p1", "qty": 2}]}))
        assert state.exchange_rate == 12000
        assert state.store[0].id == "p1"
        assert len(state.accounts) == 3

    def test_init_with_bad_document_keeps_state(self):
        state = AppState()
        assert reduce(state, Init(document={"store": [{"qty": 2}]})) is state

    def test_apply_raw(self, stocked_state):
        state = apply_raw(stocked_state, {"type": "SELL_STORE", "payload": {"id": "s1", "qty": 1}})
        assert qty_of(state, Pool.STORE, "s1") == 2

    def test_init_with_legacy_document_keeps_data(self, legacy_document):
        """Logs without ts and with kinds like MOVE or CREDIT must not reset the shop."""
        state = reduce(AppState(), Init(document=legacy_document))
        assert [item.id for item in state.store] == ["s1"]
        assert [credit.id for credit in state.credits] == ["c1"]
        assert len(state.logs) == 4
        assert [entry.kind for entry in state.logs] == ["SELL", "MOVE", "CREDIT", "CREDIT_EDIT"]
        assert all(entry.ts is not None for entry in state.logs)
        assert state.logs[2].total_uzs == 632500
        assert state.ui["dark"] is True

    def test_apply_raw_with_legacy_log(self, stocked_state):
        """A wire action whose log has no ts is applied, not rejected."""
        state = apply_raw(stocked_state, {
            "type": "SELL_STORE",
            "payload": {"id": "s1", "qty": 1},
            "log": {
                "date": "2024-03-15",
                "time": "10:30:00",
                "user_name": "habibjon",
                "action": "product_sold",
                "kind": "SELL",
            },
        })
        assert qty_of(state, Pool.STORE, "s1") == 2
        assert state.logs[-1].user == "habibjon"
        assert state.logs[-1].kind == "SELL"

    def test_apply_raw_unknown_type(self, stocked_state):
        assert apply_raw(stocked_state, {"type": "LAUNCH_ROCKET"}) is stocked_state

    def test_apply_raw_malformed_payload(self, stocked_state):
        assert apply_raw(stocked_state, {"type": "SELL_STORE", "payload": {"qty": "many"}}) is stocked_state

    def test_unknown_action_class(self, stocked_state):
        class Custom(SellStore):
            pass

        assert reduce(stocked_state, Custom(id="s1", qty=1)) is stocked_state


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
