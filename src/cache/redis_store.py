# src/cache/redis_store.py - v2
"""Redis-based cache store (CACHE_BACKEND=redis).

Requires 'redis' package: pip install redis.
Suitable when several build machines share one thumbnail cache.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from docthumb.cache.base_cache_store import BaseCacheStore, CacheStoreUnavailableError
from docthumb.cache.models import CacheEntry

logger = logging.getLogger(__name__)

_KEY_PREFIX = "docthumb:cache:"
_INDEX_KEY = "docthumb:cache:__index__"


class RedisCacheStore(BaseCacheStore):
    """Redis-backed cache store for shared deployments."""

    def __init__(self, redis_url: str) -> None:
        try:
            import redis
        except ImportError as e:
            raise ImportError(
                "redis package required: pip install redis"
            ) from e

        self._redis_error: type[Exception] = redis.RedisError
        self._client = redis.Redis.from_url(redis_url, decode_responses=True)

    async def get(self, key: str) -> CacheEntry | None:
        """Retrieve cache entry by key."""
        try:
            data = self._client.get(f"{_KEY_PREFIX}{key}")
        except self._redis_error as e:
            raise CacheStoreUnavailableError(f"Cannot read cache entry {key}: {e}") from e
        if data is None:
            return None
        try:
            return CacheEntry.model_validate_json(data)
        except ValidationError as e:
            logger.warning("Discarding unreadable cache entry %s: %s", key, e)
            return None

    async def put(self, key: str, entry: CacheEntry) -> None:
        """Store a cache entry. A single SET is atomic per key."""
        try:
            self._client.set(f"{_KEY_PREFIX}{key}", entry.model_dump_json())
            self._client.sadd(_INDEX_KEY, key)
        except self._redis_error as e:
            raise CacheStoreUnavailableError(f"Cannot write cache entry {key}: {e}") from e

    async def delete(self, key: str) -> None:
        """Remove a cache entry."""
        try:
            self._client.delete(f"{_KEY_PREFIX}{key}")
            self._client.srem(_INDEX_KEY, key)
        except self._redis_error as e:
            raise CacheStoreUnavailableError(f"Cannot delete cache entry {key}: {e}") from e

    async def list_keys(self) -> list[str]:
        """List all cached keys."""
        try:
            return sorted(self._client.smembers(_INDEX_KEY))
        except self._redis_error as e:
            raise CacheStoreUnavailableError(f"Cannot list cache keys: {e}") from e

    def close(self) -> None:
        """Close the Redis connection."""
        self._client.close()
