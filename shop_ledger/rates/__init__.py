"""Exchange rate package."""

from shop_ledger.rates.provider import (
    ExchangeRateClient,
    ExchangeRateError,
    ExchangeRateProvider,
    clear_manual_rate,
    set_manual_rate,
)

__all__ = [
    "ExchangeRateClient",
    "ExchangeRateError",
    "ExchangeRateProvider",
    "clear_manual_rate",
    "set_manual_rate",
]
