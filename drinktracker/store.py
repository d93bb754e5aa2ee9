#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Persistence for the drink tracker.

Two layers:
- KeyValueStore: string keys to string values, localStorage semantics.
  FileKeyValueStore keeps them in one JSON file; MemoryKeyValueStore is
  used by tests.
- Store: the two logical documents on top of a KeyValueStore, the user
  mapping under "alcoholTracker" and the waiting minutes under
  "waitingTime". Documents are always read and written whole.
"""

import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

from drinktracker.errors import CorruptedStoreError, StorageReadError, StorageWriteError
from drinktracker.models import (
    DEFAULT_WAITING_MINUTES,
    USERS_KEY,
    WAITING_TIME_KEY,
    Document,
    Record,
    parse_int_prefix,
)
from drinktracker.paths import PathResolver


# =============================================================================
# Key-value backends
# =============================================================================


class KeyValueStore(ABC):
    """Minimal string key-value interface."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the stored string, or None if the key is absent."""
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store a string value under key, replacing any previous value."""
        pass


class MemoryKeyValueStore(KeyValueStore):
    """In-memory backend."""

    def __init__(self, items: Optional[Dict[str, str]] = None):
        self.items: Dict[str, str] = dict(items or {})

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value


class FileKeyValueStore(KeyValueStore):
    """All keys in a single JSON object file, rewritten atomically on set."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else PathResolver.storage_file()

    def _read_items(self) -> Dict[str, Any]:
        """
        Read the whole key-value object.

        Raises:
            CorruptedStoreError: If the content is not a UTF-8 JSON object
            StorageReadError: If the file exists but cannot be opened or read
        """
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise CorruptedStoreError(f"{self.path} is not valid JSON: {e}") from e
        except OSError as e:
            raise StorageReadError(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise CorruptedStoreError(f"{self.path} must contain a JSON object")
        return data

    def get_item(self, key: str) -> Optional[str]:
        value = self._read_items().get(key)
        if value is not None and not isinstance(value, str):
            raise CorruptedStoreError(
                f"{self.path}: value for {key!r} must be a string, got {type(value).__name__}"
            )
        return value

    def set_item(self, key: str, value: str) -> None:
        try:
            items = self._read_items()
        except CorruptedStoreError:
            # Unparseable content is replaced; Store.load already surfaced it
            items = {}
        except StorageReadError as e:
            # Never overwrite data that could not be read
            raise StorageWriteError(f"Refusing to write {self.path}: {e}") from e
        items[key] = value

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=str(self.path.parent), prefix=".storage-", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(items, f, indent=2)
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StorageWriteError(f"Cannot write {self.path}: {e}") from e


# =============================================================================
# Document store
# =============================================================================


class Store:
    """Reads and writes the user mapping and the waiting-time setting."""

    def __init__(self, backend: Optional[KeyValueStore] = None):
        self.backend = backend if backend is not None else FileKeyValueStore()

    def load(self) -> Document:
        """Load the whole user mapping.

        Returns:
            Mapping of user ID to records, in stored order. Empty if absent.

        Raises:
            CorruptedStoreError: If the stored JSON is malformed or mis-shaped
            StorageReadError: If the backing file cannot be read
        """
        raw = self.backend.get_item(USERS_KEY)
        if raw is None:
            return {}

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptedStoreError(f"Stored users are not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise CorruptedStoreError("Stored users must be a JSON object")

        document: Document = {}
        for user_id, entries in data.items():
            if not isinstance(entries, list):
                raise CorruptedStoreError(f"Records for {user_id!r} must be a list")
            records: List[Record] = []
            for idx, entry in enumerate(entries):
                try:
                    records.append(Record.from_dict(entry))
                except ValueError as e:
                    raise CorruptedStoreError(
                        f"Record {idx} for {user_id!r} is invalid: {e}"
                    ) from e
            document[user_id] = records
        return document

    def save(self, document: Document) -> None:
        """Persist the whole user mapping.

        Raises:
            StorageWriteError: If the backend cannot be written
        """
        payload = {
            user_id: [record.to_dict() for record in records]
            for user_id, records in document.items()
        }
        self.backend.set_item(USERS_KEY, json.dumps(payload, separators=(",", ":")))

    def load_waiting_minutes(self) -> int:
        """Stored waiting minutes, or the default when absent or unusable."""
        raw = self.backend.get_item(WAITING_TIME_KEY)
        if raw is None:
            return DEFAULT_WAITING_MINUTES
        minutes = parse_int_prefix(raw)
        if minutes is None or minutes <= 0:
            return DEFAULT_WAITING_MINUTES
        return minutes

    def save_waiting_minutes(self, minutes: int) -> None:
        self.backend.set_item(WAITING_TIME_KEY, str(minutes))
