"""
Exchange Rate Provider

Supplies the USD -> UZS multiplier used for every conversion.

RULES:
1. A manual rate stored in the shop state always wins. No request is made.
2. Without one, the rate is fetched from the remote endpoint.
3. A failed fetch sets `error` and leaves `rate` as it was (stale or None).
   It never falls back to a default rate.
4. Fetched rates are kept in memory only. They are not written into the
   state document, so the next start fetches again.
5. If a manual rate shows up while a fetch is in flight, the fetch
   result is dropped.
"""

import asyncio
from typing import Callable, Optional

import requests

from shop_ledger.audit import get_logger
from shop_ledger.config import get_settings
from shop_ledger.models.actions import SetExchangeRate


logger = get_logger(__name__)


class ExchangeRateError(Exception):
    """Remote rate could not be obtained."""
    pass


class ExchangeRateClient:
    """
    HTTP client for the remote rate endpoint.

    Expects JSON of the form {"rates": {"UZS": 12650.5}} for
    GET {api_url}?base=USD&symbols=UZS.
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_settings().exchange_rate
        self.api_url = api_url or settings.api_url
        self.timeout = timeout or settings.timeout_seconds

    def fetch_usd_to_uzs(self) -> float:
        """
        Fetch the current rate.

        Raises:
            ExchangeRateError: network failure or unusable response
        """
        try:
            response = requests.get(
                self.api_url,
                params={"base": "USD", "symbols": "UZS"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise ExchangeRateError(f"Network error: {e}")
        except ValueError as e:
            raise ExchangeRateError(f"Invalid JSON from rate endpoint: {e}")

        try:
            rate = float(data["rates"]["UZS"])
        except (KeyError, TypeError, ValueError):
            raise ExchangeRateError("No rate")

        if rate <= 0:
            raise ExchangeRateError("No rate")
        return rate


class ExchangeRateProvider:
    """
    Current rate plus loading/error flags.

    `override` is a callable returning the manual rate from the live
    shop state, so the provider always sees the latest value without
    holding a copy of the state.
    """

    def __init__(
        self,
        override: Callable[[], Optional[float]],
        client: Optional[ExchangeRateClient] = None,
    ):
        self._override = override
        self._client = client or ExchangeRateClient()
        self._fetched: Optional[float] = None
        self.loading = False
        self.error: Optional[str] = None

    def _manual_rate(self) -> Optional[float]:
        value = self._override()
        return value if value and value > 0 else None

    @property
    def rate(self) -> Optional[float]:
        """Manual rate if set, else the last fetched rate (may be None)."""
        manual = self._manual_rate()
        if manual is not None:
            return manual
        return self._fetched

    @property
    def is_manual(self) -> bool:
        return self._manual_rate() is not None

    async def refresh(self) -> Optional[float]:
        """
        Fetch a new rate unless a manual one is set.

        Returns the rate in effect afterwards.
        """
        if self.is_manual:
            return self.rate

        self.loading = True
        self.error = None
        try:
            fetched = await asyncio.to_thread(self._client.fetch_usd_to_uzs)
        except ExchangeRateError as e:
            self.error = str(e)
            logger.warning("exchange_rate_fetch_failed", error=self.error)
            return self.rate
        finally:
            self.loading = False

        if self.is_manual:
            logger.info("exchange_rate_fetch_superseded", fetched=fetched)
            return self.rate

        self._fetched = fetched
        logger.info("exchange_rate_fetched", rate=fetched)
        return self.rate

    async def ensure_rate(self) -> Optional[float]:
        """Fetch only when there is neither a manual nor a fetched rate."""
        if self.rate is None:
            return await self.refresh()
        return self.rate


def set_manual_rate(rate: float) -> SetExchangeRate:
    """Action that stores a manual rate in the shop state."""
    return SetExchangeRate(rate=float(rate))


def clear_manual_rate() -> SetExchangeRate:
    """Action that removes the manual rate so the provider fetches again."""
    return SetExchangeRate(rate=None)
