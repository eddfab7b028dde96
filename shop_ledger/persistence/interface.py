"""
Abstract State Storage Interface

DESIGN DECISION: The whole shop state is stored as one JSON document per key.
Backends only need three operations, so the interface stays tiny:
1. load(key)   -> document or None
2. save(key, document)
3. delete(key)

Local JSON files are the default. Google Sheets acts as a remote mirror
that the owner can open directly. In-memory storage serves tests.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class StateStorageInterface(ABC):
    """
    Key-value store for serialized shop state documents.

    Any backend (local files, Google Sheets, a database later) must
    implement these methods.
    """

    @abstractmethod
    async def load(self, key: str) -> Optional[dict[str, Any]]:
        """
        Read the document stored under `key`.

        Args:
            key: Storage key, e.g. "shop_state_user_hamdamjon"

        Returns:
            The decoded document, or None when nothing is stored

        Raises:
            StorageError: If the backend cannot be read or the payload
                is not a JSON object
        """
        pass

    @abstractmethod
    async def save(self, key: str, document: dict[str, Any]) -> bool:
        """
        Write `document` under `key`, replacing any previous value.

        Args:
            key: Storage key
            document: JSON-serializable state document

        Returns:
            True if saved successfully

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """
        Remove the document under `key`.

        Returns:
            True if something was deleted, False if the key was absent
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
