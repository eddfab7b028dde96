"""
Tests for wholesale checkout

Test strategy:
1. Subtotals in both currencies, with and without a rate
2. Checkout guard (empty cart, over stock, permission)
3. Produced actions applied through the reducer
"""

from datetime import datetime

import pytest
from pydantic import ValidationError

from shop_ledger.checkout import CheckoutError, WholesaleCart
from shop_ledger.ledger import reduce
from shop_ledger.models import AppState, Pool, SellStore, SellWarehouse


@pytest.fixture
def cart(stocked_state):
    return WholesaleCart.from_pool(stocked_state, Pool.WAREHOUSE, rate=12500)


class TestCartTotals:
    """Tests for subtotal calculation."""

    def test_lines_start_empty_at_list_price(self, cart):
        line = cart.line("w1")
        assert line.qty == 0
        assert line.unit_price == 15000
        assert line.available == 20
        assert cart.selected == []

    def test_mixed_currency_subtotals(self, cart):
        cart.set_qty("w1", 5)   # 75 000 UZS
        cart.set_qty("w2", 2)   # 24 USD
        assert cart.subtotal_uzs == 75000 + 300000
        assert cart.subtotal_usd == 30.0

    def test_price_override(self, cart):
        cart.set_qty("w1", 2)
        cart.set_price("w1", 14000)
        assert cart.subtotal_uzs == 28000

    def test_without_rate(self, stocked_state):
        cart = WholesaleCart.from_pool(stocked_state, Pool.WAREHOUSE, rate=None)
        cart.set_qty("w1", 5)
        cart.set_qty("w2", 2)
        # UZS line skipped in USD, USD line counts 0 in UZS
        assert cart.subtotal_usd == 24.0
        assert cart.subtotal_uzs == 75000

    def test_usd_subtotal_rounded_to_cents(self, stocked_state):
        cart = WholesaleCart.from_pool(stocked_state, Pool.WAREHOUSE, rate=12345)
        cart.set_qty("w1", 1)
        assert cart.subtotal_usd == 1.22

    def test_negative_qty_rejected(self, cart):
        with pytest.raises(ValidationError):
            cart.set_qty("w1", -1)

    def test_unknown_line(self, cart):
        with pytest.raises(KeyError):
            cart.set_qty("nope", 1)


class TestCheckout:
    """Tests for turning a cart into sell actions."""

    def test_can_checkout(self, cart):
        assert not cart.can_checkout
        cart.set_qty("w1", 20)
        assert cart.can_checkout
        cart.set_qty("w2", 6)
        assert not cart.can_checkout

    def test_empty_cart(self, cart):
        with pytest.raises(CheckoutError):
            cart.checkout("habibjon")

    def test_over_stock(self, cart):
        cart.set_qty("w2", 6)
        with pytest.raises(CheckoutError, match="exceeds"):
            cart.checkout("habibjon")

    def test_actions_share_timestamp(self, cart):
        cart.set_qty("w1", 5)
        cart.set_qty("w2", 2)
        now = datetime(2024, 3, 15, 12, 0, 0)
        actions = cart.checkout("habibjon", now=now)

        assert [type(a) for a in actions] == [SellWarehouse, SellWarehouse]
        assert len({a.log.ts for a in actions}) == 1
        assert all(a.log.action == "wholesale_sale" for a in actions)
        assert actions[1].log.total_uzs == 300000
        assert actions[1].log.user == "habibjon"

    def test_store_pool(self, stocked_state):
        cart = WholesaleCart.from_pool(stocked_state, Pool.STORE, rate=12500)
        cart.set_qty("s1", 1)
        assert isinstance(cart.checkout("habibjon")[0], SellStore)

    def test_reducer_applies_checkout(self, stocked_state, cart):
        cart.set_qty("w1", 5)
        cart.set_qty("w2", 5)
        state = stocked_state
        for action in cart.checkout("habibjon"):
            state = reduce(state, action)
        assert state.find_item(Pool.WAREHOUSE, "w1").qty == 15
        assert state.find_item(Pool.WAREHOUSE, "w2") is None
        assert len(state.logs) == 2

    def test_permission_required(self, cart):
        accounts = AppState().accounts
        cart.set_qty("w1", 1)
        with pytest.raises(CheckoutError, match="wholesale"):
            cart.checkout("shogirt", accounts=accounts)
        assert len(cart.checkout("hamdamjon", accounts=accounts)) == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
