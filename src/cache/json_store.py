# src/cache/json_store.py - v3
"""JSON file-based cache store (default CACHE_BACKEND=json).

Stores each cache entry as an individual JSON file under CACHE_ROOT, named
after the SHA-256 of its key. The key itself is kept inside the entry.
Writes go to a temporary file in the same directory and are moved into
place with ``os.replace`` so readers never observe a partial entry.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from docthumb.cache.base_cache_store import BaseCacheStore, CacheStoreUnavailableError
from docthumb.cache.models import CacheEntry

logger = logging.getLogger(__name__)


class JsonCacheStore(BaseCacheStore):
    """File-based cache store using JSON files."""

    def __init__(self, cache_root: Path | str) -> None:
        self._root = Path(cache_root).expanduser()
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheStoreUnavailableError(
                f"Cannot create cache directory {self._root}: {e}"
            ) from e

    @property
    def root(self) -> Path:
        return self._root

    async def get(self, key: str) -> CacheEntry | None:
        """Retrieve cache entry by key."""
        path = self._entry_path(key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise CacheStoreUnavailableError(f"Cannot read cache entry {key}: {e}") from e
        try:
            entry = CacheEntry(**json.loads(raw))
        except (json.JSONDecodeError, ValidationError, TypeError) as e:
            logger.warning("Discarding unreadable cache entry %s: %s", key, e)
            return None
        if entry.key != key:
            logger.warning("Cache file for %s holds entry %s, ignoring", key, entry.key)
            return None
        return entry

    async def put(self, key: str, entry: CacheEntry) -> None:
        """Store a cache entry atomically."""
        path = self._entry_path(key)
        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=str(self._root), prefix=".tmp-", suffix=".json"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(entry.model_dump_json(indent=2))
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise CacheStoreUnavailableError(f"Cannot write cache entry {key}: {e}") from e

    async def delete(self, key: str) -> None:
        """Remove a cache entry."""
        try:
            self._entry_path(key).unlink(missing_ok=True)
        except OSError as e:
            raise CacheStoreUnavailableError(f"Cannot delete cache entry {key}: {e}") from e

    async def list_keys(self) -> list[str]:
        """List all cached keys (read from the entries, not the file names)."""
        keys: list[str] = []
        for path in sorted(self._root.glob("*.json")):
            if path.name.startswith(".tmp-"):
                continue
            try:
                keys.append(json.loads(path.read_text(encoding="utf-8"))["key"])
            except (OSError, json.JSONDecodeError, KeyError, TypeError):
                logger.debug("Skipping unreadable cache file %s", path)
        return keys

    def _entry_path(self, key: str) -> Path:
        """Return file path for a cache key."""
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self._root / f"{digest}.json"
