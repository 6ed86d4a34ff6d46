# src/cache/sqlite_store.py - v2
"""SQLite-based cache store (CACHE_BACKEND=sqlite).

Uses stdlib sqlite3, no external dependency. ``INSERT OR REPLACE`` inside a
single transaction makes every put atomic per key.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from pathlib import Path

from pydantic import ValidationError

from docthumb.cache.base_cache_store import BaseCacheStore, CacheStoreUnavailableError
from docthumb.cache.models import CacheEntry

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS thumbnail_cache (
    key TEXT PRIMARY KEY,
    data TEXT NOT NULL,
    artifact_id TEXT NOT NULL,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);
CREATE INDEX IF NOT EXISTS idx_artifact_id ON thumbnail_cache(artifact_id);
"""


class SqliteCacheStore(BaseCacheStore):
    """SQLite-backed cache store."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._lock = threading.Lock()
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.executescript(_SCHEMA)
        except (OSError, sqlite3.Error) as e:
            raise CacheStoreUnavailableError(
                f"Cannot open cache database {self._db_path}: {e}"
            ) from e

    async def get(self, key: str) -> CacheEntry | None:
        """Retrieve cache entry by key."""
        try:
            with self._lock:
                row = self._conn.execute(
                    "SELECT data FROM thumbnail_cache WHERE key = ?", (key,)
                ).fetchone()
        except sqlite3.Error as e:
            raise CacheStoreUnavailableError(f"Cannot read cache entry {key}: {e}") from e
        if row is None:
            return None
        try:
            return CacheEntry(**json.loads(row[0]))
        except (json.JSONDecodeError, ValidationError, TypeError) as e:
            logger.warning("Discarding unreadable cache entry %s: %s", key, e)
            return None

    async def put(self, key: str, entry: CacheEntry) -> None:
        """Store a cache entry (upsert)."""
        try:
            with self._lock, self._conn:
                self._conn.execute(
                    """INSERT OR REPLACE INTO thumbnail_cache
                       (key, data, artifact_id, updated_at)
                       VALUES (?, ?, ?, CURRENT_TIMESTAMP)""",
                    (key, entry.model_dump_json(), entry.artifact_id),
                )
        except sqlite3.Error as e:
            raise CacheStoreUnavailableError(f"Cannot write cache entry {key}: {e}") from e

    async def delete(self, key: str) -> None:
        """Remove a cache entry."""
        try:
            with self._lock, self._conn:
                self._conn.execute("DELETE FROM thumbnail_cache WHERE key = ?", (key,))
        except sqlite3.Error as e:
            raise CacheStoreUnavailableError(f"Cannot delete cache entry {key}: {e}") from e

    async def list_keys(self) -> list[str]:
        """List all cached keys."""
        try:
            with self._lock:
                rows = self._conn.execute(
                    "SELECT key FROM thumbnail_cache ORDER BY key"
                ).fetchall()
        except sqlite3.Error as e:
            raise CacheStoreUnavailableError(f"Cannot list cache keys: {e}") from e
        return [row[0] for row in rows]

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
