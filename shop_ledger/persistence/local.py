"""
Local Storage Implementations

JsonFileStorage keeps one `<key>.json` file per key inside a data
directory. Writes go to a temporary file that is then renamed over the
target, so a crash mid-write never leaves a truncated document.

InMemoryStorage keeps deep copies of documents in a dict. Used by tests
and when the ledger is embedded in another process.
"""

import asyncio
import copy
import json
import os
from pathlib import Path
from typing import Any, Optional

from shop_ledger.config import get_settings
from shop_ledger.persistence.interface import StateStorageInterface, StorageError


class JsonFileStorage(StateStorageInterface):
    """File-per-key JSON storage."""

    def __init__(self, data_dir: Optional[str] = None):
        self.data_dir = Path(data_dir or get_settings().storage.data_dir)

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise StorageError(f"Invalid storage key: {key!r}")
        return self.data_dir / f"{key}.json"

    def _read(self, key: str) -> Optional[dict[str, Any]]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            with path.open("r", encoding="utf-8") as f:
                document = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read {path}: {e}")
        if not isinstance(document, dict):
            raise StorageError(f"Stored value under {key!r} is not an object")
        return document

    def _write(self, key: str, document: dict[str, Any]) -> bool:
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with tmp.open("w", encoding="utf-8") as f:
                json.dump(document, f, ensure_ascii=False)
            os.replace(tmp, path)
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to write {path}: {e}")
        return True

    def _remove(self, key: str) -> bool:
        path = self._path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete {path}: {e}")
        return True

    async def load(self, key: str) -> Optional[dict[str, Any]]:
        return await asyncio.to_thread(self._read, key)

    async def save(self, key: str, document: dict[str, Any]) -> bool:
        return await asyncio.to_thread(self._write, key, document)

    async def delete(self, key: str) -> bool:
        return await asyncio.to_thread(self._remove, key)


class InMemoryStorage(StateStorageInterface):
    """Dict-backed storage. Documents are copied in and out."""

    def __init__(self, initial: Optional[dict[str, dict[str, Any]]] = None):
        self._data: dict[str, dict[str, Any]] = copy.deepcopy(initial or {})
        self.save_count = 0

    async def load(self, key: str) -> Optional[dict[str, Any]]:
        document = self._data.get(key)
        return copy.deepcopy(document) if document is not None else None

    async def save(self, key: str, document: dict[str, Any]) -> bool:
        try:
            # Stored copies are plain JSON values.
            self._data[key] = json.loads(json.dumps(document))
        except (TypeError, ValueError) as e:
            raise StorageError(f"Document under {key!r} is not JSON-serializable: {e}")
        self.save_count += 1
        return True

    async def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self) -> list[str]:
        return sorted(self._data)
