"""
Storage backends for whole-collection persistence.

A backend stores each named collection as one JSON array of records, the
way the browser build kept ``loans`` and ``users`` in local storage. Loads
report their outcome through ``LoadResult`` instead of silently defaulting.
"""

import json
import logging
import os
import sqlite3
import tempfile
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..exceptions import StorageError

logger = logging.getLogger(__name__)


class LoadStatus(str, Enum):
    OK = "ok"
    MISSING = "missing"
    CORRUPT = "corrupt"


@dataclass
class LoadResult:
    """Outcome of loading a collection."""

    status: LoadStatus
    records: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def is_corrupt(self) -> bool:
        return self.status == LoadStatus.CORRUPT

    @property
    def is_missing(self) -> bool:
        return self.status == LoadStatus.MISSING

    @classmethod
    def loaded(cls, records: List[Dict[str, Any]]) -> "LoadResult":
        return cls(status=LoadStatus.OK, records=records)

    @classmethod
    def missing(cls) -> "LoadResult":
        return cls(status=LoadStatus.MISSING)

    @classmethod
    def corrupt(cls, error: str) -> "LoadResult":
        return cls(status=LoadStatus.CORRUPT, error=error)


def parse_payload(raw: Optional[str]) -> LoadResult:
    """Parse a serialized collection; anything but a list of objects is corrupt."""
    if raw is None or raw == "":
        return LoadResult.missing()
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        return LoadResult.corrupt(f"invalid JSON: {e}")
    if not isinstance(data, list):
        return LoadResult.corrupt(f"expected a list, got {type(data).__name__}")
    if not all(isinstance(item, dict) for item in data):
        return LoadResult.corrupt("collection contains non-object entries")
    return LoadResult.loaded(data)


def serialize_payload(records: List[Dict[str, Any]]) -> str:
    return json.dumps(records, ensure_ascii=False, default=str)


class StorageBackend(ABC):
    """Key/value store of named record collections.

    Each collection has one re-entrant lock per backend instance, shared by
    every repository built on it.
    """

    def __init__(self):
        self._collection_locks: Dict[str, threading.RLock] = {}
        self._collection_locks_guard = threading.Lock()

    def lock_for(self, collection: str) -> threading.RLock:
        """Return the lock serializing writes to ``collection``."""
        with self._collection_locks_guard:
            if collection not in self._collection_locks:
                self._collection_locks[collection] = threading.RLock()
            return self._collection_locks[collection]

    @abstractmethod
    def load(self, collection: str) -> LoadResult:
        """Load every record of a collection."""

    @abstractmethod
    def save(self, collection: str, records: List[Dict[str, Any]]) -> None:
        """Replace a collection with ``records``."""

    def close(self) -> None:
        """Release backend resources."""


class MemoryStorage(StorageBackend):
    """In-process storage holding serialized payloads, like browser local storage."""

    def __init__(self):
        super().__init__()
        self._items: Dict[str, str] = {}

    def load(self, collection: str) -> LoadResult:
        return parse_payload(self._items.get(collection))

    def save(self, collection: str, records: List[Dict[str, Any]]) -> None:
        self._items[collection] = serialize_payload(records)

    def get_raw(self, collection: str) -> Optional[str]:
        return self._items.get(collection)

    def set_raw(self, collection: str, raw: str) -> None:
        """Store a raw payload as-is, bypassing serialization."""
        self._items[collection] = raw

    def clear(self) -> None:
        self._items.clear()


class JsonFileStorage(StorageBackend):
    """One ``<collection>.json`` file per collection inside a directory."""

    def __init__(self, directory: str):
        super().__init__()
        self.directory = Path(directory)

    def _path(self, collection: str) -> Path:
        return self.directory / f"{collection}.json"

    def load(self, collection: str) -> LoadResult:
        path = self._path(collection)
        if not path.exists():
            return LoadResult.missing()
        try:
            raw = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            return LoadResult.corrupt(f"cannot read {path}: {e}")
        return parse_payload(raw)

    def save(self, collection: str, records: List[Dict[str, Any]]) -> None:
        path = self._path(collection)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix=f".{collection}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(serialize_payload(records))
            os.replace(tmp_path, path)
        except OSError as e:
            logger.error(f"Failed to write collection {collection} to {path}: {e}")
            raise StorageError(f"Cannot save collection '{collection}': {e}", collection) from e


class SqliteStorage(StorageBackend):
    """Collections stored as JSON payloads in a single sqlite table."""

    _SCHEMA = """
        CREATE TABLE IF NOT EXISTS collections (
            name TEXT PRIMARY KEY,
            payload TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """

    def __init__(self, db_path: str = "loansys.db", timeout: float = 30.0):
        super().__init__()
        self.db_path = db_path
        self.timeout = timeout
        self._connections: Dict[int, sqlite3.Connection] = {}
        self._lock = threading.Lock()
        with self.get_connection() as conn:
            conn.execute(self._SCHEMA)

    @contextmanager
    def get_connection(self):
        """Get a database connection for the current thread."""
        thread_id = threading.get_ident()
        with self._lock:
            if thread_id not in self._connections:
                self._connections[thread_id] = sqlite3.connect(
                    self.db_path, check_same_thread=False, timeout=self.timeout
                )
        conn = self._connections[thread_id]
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Database error: {e}")
            raise StorageError(f"Database error: {e}") from e

    def load(self, collection: str) -> LoadResult:
        with self.get_connection() as conn:
            row = conn.execute(
                "SELECT payload FROM collections WHERE name = ?", (collection,)
            ).fetchone()
        return parse_payload(row[0] if row else None)

    def save(self, collection: str, records: List[Dict[str, Any]]) -> None:
        with self.get_connection() as conn:
            conn.execute(
                "INSERT INTO collections (name, payload, updated_at) VALUES (?, ?, ?) "
                "ON CONFLICT(name) DO UPDATE SET payload = excluded.payload, updated_at = excluded.updated_at",
                (collection, serialize_payload(records), datetime.now(timezone.utc).isoformat()),
            )

    def close(self) -> None:
        """Close all database connections."""
        with self._lock:
            for conn in self._connections.values():
                conn.close()
            self._connections.clear()
