"""
Debounced Saver

Rapid successive changes are coalesced into one write after an idle
window. A write in flight does not block new changes; whichever state
is written last wins, since each write replaces the whole document.
"""

import asyncio
from enum import Enum
from typing import Awaitable, Callable, Optional

from shop_ledger.audit import get_logger
from shop_ledger.config import get_settings
from shop_ledger.models.state import AppState


logger = get_logger(__name__)


class SyncStatus(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    SYNCED = "synced"
    ERROR = "error"


SaveFunc = Callable[[AppState], Awaitable[bool]]


class DebouncedSaver:
    """
    Timer plus coalescing around an async save function.

    schedule() must be called with a running event loop to start the
    timer. Without one the state stays pending until flush().
    """

    def __init__(
        self,
        save: SaveFunc,
        delay: Optional[float] = None,
        on_status: Optional[Callable[[SyncStatus], None]] = None,
    ):
        self._save = save
        self.delay = get_settings().app.save_debounce_seconds if delay is None else delay
        self._on_status = on_status
        self._pending: Optional[AppState] = None
        self._timer: Optional[asyncio.Task] = None
        self._inflight: Optional[asyncio.Task] = None
        self._status = SyncStatus.IDLE

    @property
    def status(self) -> SyncStatus:
        return self._status

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def _set_status(self, status: SyncStatus) -> None:
        if status == self._status:
            return
        self._status = status
        if self._on_status is not None:
            self._on_status(status)

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    def schedule(self, state: AppState) -> None:
        """Remember `state` and restart the idle timer."""
        self._pending = state
        self._set_status(SyncStatus.PENDING)
        self._cancel_timer()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._timer = loop.create_task(self._wait_then_write())

    async def _wait_then_write(self) -> None:
        await asyncio.sleep(self.delay)
        self._inflight = asyncio.ensure_future(self._write())
        # The write itself survives a later schedule() cancelling this timer.
        await asyncio.shield(self._inflight)

    async def _write(self) -> None:
        state, self._pending = self._pending, None
        if state is None:
            return
        try:
            ok = await self._save(state)
        except Exception as e:
            logger.error("debounced_save_failed", error=str(e))
            ok = False

        if self._pending is not None:
            # A newer state arrived while writing and has its own timer.
            return
        self._set_status(SyncStatus.SYNCED if ok else SyncStatus.ERROR)

    async def flush(self) -> SyncStatus:
        """Write any pending state now and wait for writes in flight."""
        self._cancel_timer()
        if self._inflight is not None and not self._inflight.done():
            await self._inflight
        await self._write()
        return self._status
