"""
Shop Session

Ties the pieces together for one signed-in user:
1. Hydrate: load the stored document and merge it over defaults (INIT)
2. Dispatch: run the reducer, audit, notify subscribers
3. Persist: debounce a save whenever the state actually changed

DESIGN DECISION: The session is the single owner of the AppState.
There is no module-level store. Two sessions for two users are two
independent objects that share nothing but the storage backend.

Saving is keyed on identity: the reducer returns the same object for
no-op actions, so those never reach storage.
"""

from typing import Any, Callable, Optional, Union

from pydantic import ValidationError

from shop_ledger.accounts import permissions_for
from shop_ledger.audit import ActionAuditor, get_logger
from shop_ledger.ledger import reduce
from shop_ledger.models.accounts import Permission
from shop_ledger.models.actions import BaseAction, Init, parse_action
from shop_ledger.models.state import AppState
from shop_ledger.persistence import (
    DebouncedSaver,
    PersistenceBridge,
    SyncStatus,
    create_storage,
)
from shop_ledger.rates import ExchangeRateClient, ExchangeRateProvider


logger = get_logger(__name__)

Subscriber = Callable[[AppState], None]


class ShopSession:
    """
    Owner of one user's shop state.

    Usage:
        session = ShopSession(PersistenceBridge(JsonFileStorage()), username="habibjon")
        await session.start()
        session.dispatch(AddStore(item=item, log=entry))
        await session.close()
    """

    def __init__(
        self,
        bridge: Optional[PersistenceBridge] = None,
        username: Optional[str] = None,
        save_delay: Optional[float] = None,
        rate_client: Optional[ExchangeRateClient] = None,
    ):
        self._bridge = bridge or PersistenceBridge(create_storage())
        self.username = username
        self._state = AppState()
        self._subscribers: list[Subscriber] = []
        self._auditor = ActionAuditor(username)
        self._saver = DebouncedSaver(self._save, delay=save_delay)
        self._rate_client = rate_client
        self._rates: Optional[ExchangeRateProvider] = None
        self._started = False

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def sync_status(self) -> SyncStatus:
        return self._saver.status

    @property
    def started(self) -> bool:
        return self._started

    def can(self, permission: Permission) -> bool:
        """Does the session user hold `permission`?"""
        return permissions_for(self._state.accounts, self.username).allows(permission)

    async def start(self) -> AppState:
        """
        Load the stored document and merge it into the default state.

        A missing or unreadable document leaves the defaults in place.
        Hydration is not saved back.
        """
        document = await self._bridge.load_document(self.username)
        if document:
            self._state = reduce(self._state, Init(document=document))
        self._started = True
        logger.info(
            "session_started",
            user=self.username,
            hydrated=bool(document),
            logs=len(self._state.logs),
        )
        self._notify()
        return self._state

    # =========================================================================
    # DISPATCH
    # =========================================================================

    def dispatch(self, action: Union[BaseAction, dict[str, Any]]) -> AppState:
        """
        Apply an action (typed, or in wire format) and return the new state.

        Unparseable wire actions are audited and ignored.
        """
        if isinstance(action, dict):
            try:
                action = parse_action(action)
            except ValidationError as e:
                self._auditor.rejected(action.get("type"), str(e))
                return self._state

        before = self._state
        after = reduce(before, action)
        self._auditor.record(action, before, after)

        if after is before:
            return before

        self._state = after
        self._saver.schedule(after)
        self._notify()
        return after

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Call `callback` with every new state. Returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            try:
                callback(self._state)
            except Exception as e:
                logger.error("subscriber_failed", error=str(e))

    # =========================================================================
    # RATES AND PERSISTENCE
    # =========================================================================

    def exchange_rate_provider(self) -> ExchangeRateProvider:
        """Rate provider that always sees this session's manual override."""
        if self._rates is None:
            self._rates = ExchangeRateProvider(
                lambda: self._state.exchange_rate,
                client=self._rate_client,
            )
        return self._rates

    async def _save(self, state: AppState) -> bool:
        return await self._bridge.save_state(state, self.username)

    async def flush(self) -> SyncStatus:
        """Write any pending change now."""
        return await self._saver.flush()

    async def close(self) -> SyncStatus:
        """Flush pending writes. The session stays usable afterwards."""
        status = await self.flush()
        logger.info("session_closed", user=self.username, sync_status=status.value)
        return status
