"""
Persistence Package

Storage backends for the shop state document, the bridge that maps
users to keys, and the debounced saver that coalesces writes.
"""

from shop_ledger.persistence.interface import (
    ConnectionError,
    StateStorageInterface,
    StorageError,
)
from shop_ledger.persistence.local import InMemoryStorage, JsonFileStorage
from shop_ledger.persistence.migrations import drop_usd_copies, migrate_document
from shop_ledger.persistence.bridge import PersistenceBridge, create_storage
from shop_ledger.persistence.debounce import DebouncedSaver, SyncStatus

__all__ = [
    # Interface
    "StateStorageInterface",
    # Exceptions
    "ConnectionError",
    "StorageError",
    # Backends
    "InMemoryStorage",
    "JsonFileStorage",
    # Bridge
    "PersistenceBridge",
    "create_storage",
    "drop_usd_copies",
    "migrate_document",
    # Saving
    "DebouncedSaver",
    "SyncStatus",
]
