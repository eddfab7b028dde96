"""
Shop Ledger - Source Package

Core of a small shop-management application: warehouse and store
inventory, sales log, wholesale checkout, credit ledger, two-currency
totals and per-account permissions.

DESIGN PRINCIPLES:
1. One state document, changed only through the reducer
2. Amounts stay in their native currency until display time
3. Never approximate a total with a made-up exchange rate
4. Every inventory change leaves a log entry
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Shop Ledger Team"
