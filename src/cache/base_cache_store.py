# src/cache/base_cache_store.py - v2
"""Abstract durable cache store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from docthumb.cache.models import CacheEntry


class CacheStoreUnavailableError(Exception):
    """Raised when the cache backend cannot be read or written."""


class BaseCacheStore(ABC):
    """Unified interface for durable key/value cache backends.

    Entries must survive process restarts. ``put`` must replace an existing
    entry atomically: a concurrent reader sees the old entry or the new one,
    never a partial write. Backend failures raise CacheStoreUnavailableError.
    """

    @abstractmethod
    async def get(self, key: str) -> CacheEntry | None:
        """Retrieve cache entry by key, or None when absent."""

    @abstractmethod
    async def put(self, key: str, entry: CacheEntry) -> None:
        """Store (or overwrite) a cache entry."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove a cache entry. Missing keys are ignored."""

    @abstractmethod
    async def list_keys(self) -> list[str]:
        """List all cached keys."""

    def close(self) -> None:
        """Release backend resources."""
