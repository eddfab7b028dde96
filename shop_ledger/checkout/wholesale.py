"""
Wholesale Checkout

A cart built from one inventory pool. Each line starts at qty 0 with
the item's list price; the seller sets quantities and may override
prices, then checks out. Checkout produces one SELL_* action per line,
each carrying its own log entry, all stamped with the same time.

SUBTOTALS:
- subtotal_usd: USD lines at face value, UZS lines divided by the rate.
  UZS lines are skipped when there is no rate. Rounded to cents.
- subtotal_uzs: each line rounded to whole sum first. USD lines count
  as 0 when there is no rate.
"""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from shop_ledger.accounts import has_permission
from shop_ledger.currency.money import round_foreign, round_local
from shop_ledger.models.accounts import Account, Permission
from shop_ledger.models.actions import SellStore, SellWarehouse
from shop_ledger.models.inventory import Currency, InventoryItem, Number, Pool
from shop_ledger.models.logs import LogEntryBuilder


class CheckoutError(Exception):
    """The cart cannot be checked out."""
    pass


class WholesaleLine(BaseModel):
    """One product row in the cart."""
    model_config = ConfigDict(validate_assignment=True)

    item: InventoryItem
    available: float = Field(..., description="Quantity on hand when the cart was built")
    qty: float = Field(default=0, ge=0)
    unit_price: float = Field(default=0, ge=0)

    @property
    def id(self) -> str:
        return self.item.id

    @property
    def currency(self) -> Currency:
        return self.item.currency

    @property
    def amount(self) -> float:
        return self.qty * self.unit_price

    @property
    def within_stock(self) -> bool:
        return 0 < self.qty <= self.available


class WholesaleCart:
    """
    Cart over a snapshot of one pool.

    Usage:
        cart = WholesaleCart.from_pool(state, Pool.STORE, rate=12650)
        cart.set_qty("p1", 10)
        actions = cart.checkout(user="habibjon")
    """

    def __init__(
        self,
        lines: list[WholesaleLine],
        pool: Pool,
        rate: Optional[float] = None,
    ):
        self.lines = lines
        self.pool = pool
        self.rate = rate if rate and rate > 0 else None

    @classmethod
    def from_items(
        cls,
        items: list[InventoryItem],
        pool: Pool,
        rate: Optional[float] = None,
    ) -> "WholesaleCart":
        lines = [
            WholesaleLine(
                item=item,
                available=float(item.qty or 0),
                unit_price=float(item.unit_price or 0),
            )
            for item in items
        ]
        return cls(lines, pool, rate)

    @classmethod
    def from_pool(cls, state, pool: Pool, rate: Optional[float] = None) -> "WholesaleCart":
        return cls.from_items(state.pool(pool), pool, rate)

    # =========================================================================
    # EDITING
    # =========================================================================

    def line(self, item_id: str) -> WholesaleLine:
        for line in self.lines:
            if line.id == item_id:
                return line
        raise KeyError(item_id)

    def set_qty(self, item_id: str, qty: Number) -> None:
        self.line(item_id).qty = qty

    def set_price(self, item_id: str, price: Number) -> None:
        self.line(item_id).unit_price = price

    # =========================================================================
    # TOTALS
    # =========================================================================

    @property
    def selected(self) -> list[WholesaleLine]:
        """Lines with a positive quantity."""
        return [line for line in self.lines if line.qty > 0]

    @property
    def subtotal_usd(self) -> float:
        total = 0.0
        for line in self.selected:
            if line.currency == Currency.USD:
                total += line.amount
            elif self.rate:
                total += line.amount / self.rate
        return round_foreign(total)

    @property
    def subtotal_uzs(self) -> int:
        total = 0
        for line in self.selected:
            if line.currency == Currency.USD:
                total += round_local(line.amount * (self.rate or 0))
            else:
                total += round_local(line.amount)
        return total

    @property
    def can_checkout(self) -> bool:
        selected = self.selected
        return bool(selected) and all(line.within_stock for line in selected)

    # =========================================================================
    # CHECKOUT
    # =========================================================================

    def checkout(
        self,
        user: Optional[str],
        accounts: Optional[list[Account]] = None,
        now: Optional[datetime] = None,
    ) -> list[Union[SellStore, SellWarehouse]]:
        """
        Build the sell actions for every selected line.

        Args:
            user: Seller's username, recorded in each log entry
            accounts: When given, the seller must hold wholesale_allowed
            now: Shared timestamp for every entry (defaults to now)

        Raises:
            CheckoutError: empty cart, a quantity above stock, or a
                seller without the wholesale permission
        """
        if accounts is not None and not has_permission(accounts, user, Permission.WHOLESALE_ALLOWED):
            raise CheckoutError(f"User {user!r} may not sell wholesale")
        if not self.selected:
            raise CheckoutError("Cart is empty")
        for line in self.selected:
            if not line.within_stock:
                raise CheckoutError(
                    f"Quantity {line.qty} of {line.id} exceeds available {line.available}"
                )

        now = now or datetime.now()
        action_cls = SellWarehouse if self.pool == Pool.WAREHOUSE else SellStore
        actions = []
        for line in self.selected:
            log = LogEntryBuilder.product_sold(
                line.item,
                line.qty,
                user,
                self.pool,
                rate=self.rate,
                unit_price=line.unit_price,
                wholesale=True,
                now=now,
            )
            actions.append(action_cls(id=line.id, qty=line.qty, log=log))
        return actions
