# src/cache/artifact_cache.py - v1
"""Thumbnail key -> artifact reference cache with keep-alive on hit."""

from __future__ import annotations

import logging

from docthumb.cache.base_cache_store import BaseCacheStore
from docthumb.cache.models import CacheEntry
from docthumb.core.models import ArtifactRef
from docthumb.graph.base_entity_store import BaseEntityStore

logger = logging.getLogger(__name__)


class ArtifactCache:
    """Durable mapping from cache key to artifact id.

    A hit touches the referenced artifact so the entity store keeps it for
    the current build pass. Hits are not validated: a reference whose
    artifact has been removed is still returned. Backend failures propagate
    as CacheStoreUnavailableError.
    """

    def __init__(self, store: BaseCacheStore, entity_store: BaseEntityStore) -> None:
        self._store = store
        self._entity_store = entity_store

    @property
    def store(self) -> BaseCacheStore:
        return self._store

    async def get(self, key: str) -> ArtifactRef | None:
        entry = await self._store.get(key)
        if entry is None:
            return None
        node = await self._entity_store.get_node(entry.artifact_id)
        if node is None:
            logger.debug(
                "Cache entry %s points at missing artifact %s", key, entry.artifact_id
            )
        else:
            await self._entity_store.touch(entry.artifact_id)
        return entry.artifact_id

    async def set(self, key: str, ref: ArtifactRef) -> None:
        await self._store.put(key, CacheEntry(key=key, artifact_id=ref))
