"""Wholesale checkout package."""

from shop_ledger.checkout.wholesale import CheckoutError, WholesaleCart, WholesaleLine

__all__ = ["CheckoutError", "WholesaleCart", "WholesaleLine"]
