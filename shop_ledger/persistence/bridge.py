"""
Persistence Bridge

Loads and saves the shop state as one JSON document per user, plus a
global backup copy that every save refreshes.

FAILURE POLICY:
- Load failures are logged and read as "no data" (None).
- Save failures are logged and read as "not saved" (False).
Neither raises. The shop keeps running on its in-memory state.
"""

from typing import Any, Optional

from pydantic import ValidationError

from shop_ledger.audit import get_logger
from shop_ledger.config import get_settings
from shop_ledger.models.state import AppState
from shop_ledger.persistence.interface import StateStorageInterface, StorageError
from shop_ledger.persistence.migrations import migrate_document


logger = get_logger(__name__)


class PersistenceBridge:
    """Maps usernames to storage keys and applies load-time migrations."""

    def __init__(self, storage: StateStorageInterface):
        self.storage = storage
        self._settings = get_settings().storage

    @property
    def backup_key(self) -> str:
        return self._settings.backup_key

    def user_key(self, username: Optional[str]) -> str:
        """Per-user key, or the shared key when nobody is signed in."""
        name = (username or "").strip()
        if not name:
            return self._settings.shared_key
        return f"{self._settings.user_key_prefix}{name}"

    async def _load_key(self, key: str) -> Optional[dict[str, Any]]:
        try:
            return await self.storage.load(key)
        except StorageError as e:
            logger.warning("state_load_failed", key=key, error=str(e))
            return None

    async def load_document(self, username: Optional[str] = None) -> Optional[dict[str, Any]]:
        """
        Raw migrated document for `username`, falling back to the backup.

        Returns:
            The document, or None when neither key yields one
        """
        for key in (self.user_key(username), self.backup_key):
            document = await self._load_key(key)
            if document:
                logger.info("state_loaded", key=key)
                return migrate_document(document)
        return None

    async def load_state(self, username: Optional[str] = None) -> Optional[AppState]:
        """Loaded document validated into an AppState, or None."""
        document = await self.load_document(username)
        if document is None:
            return None
        try:
            return AppState.from_document(document)
        except ValidationError as e:
            logger.warning("state_document_invalid", username=username, error=str(e))
            return None

    async def save_state(self, state: AppState, username: Optional[str] = None) -> bool:
        """Write the user's document and refresh the backup copy."""
        document = state.to_document()
        key = self.user_key(username)
        try:
            await self.storage.save(key, document)
            await self.storage.save(self.backup_key, document)
        except StorageError as e:
            logger.error("state_save_failed", key=key, error=str(e))
            return False
        logger.debug("state_saved", key=key, logs=len(state.logs))
        return True

    async def clear(self, username: Optional[str] = None) -> bool:
        """Delete the user's document. The backup copy is left alone."""
        key = self.user_key(username)
        try:
            return await self.storage.delete(key)
        except StorageError as e:
            logger.error("state_delete_failed", key=key, error=str(e))
            return False


def create_storage(backend: Optional[str] = None) -> StateStorageInterface:
    """
    Build the storage backend named in settings.

    Raises:
        ValueError: unknown backend name
    """
    name = (backend or get_settings().storage.backend).strip().lower()
    if name == "local":
        from shop_ledger.persistence.local import JsonFileStorage
        return JsonFileStorage()
    if name == "google_sheets":
        from shop_ledger.persistence.google_sheets import GoogleSheetsStateStorage
        return GoogleSheetsStateStorage()
    if name == "memory":
        from shop_ledger.persistence.local import InMemoryStorage
        return InMemoryStorage()
    raise ValueError(f"Unknown storage backend: {backend or name}")
