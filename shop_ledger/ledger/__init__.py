"""State reducer package."""

from shop_ledger.ledger.reducer import apply_raw, reduce

__all__ = ["apply_raw", "reduce"]
