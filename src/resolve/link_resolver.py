# src/resolve/link_resolver.py - v1
"""Query-time resolution of a document's thumbnail reference."""

from __future__ import annotations

import logging
from typing import Any

from docthumb.core.models import THUMBNAIL_FIELD, Artifact, ArtifactRef, SourceDocument
from docthumb.graph.base_entity_store import BaseEntityStore, EntityStoreError

logger = logging.getLogger(__name__)


class LinkResolver:
    """Join a document's ``thumbnail`` field back to the artifact entity.

    Read-only and stateless: safe to call concurrently and repeatedly.
    A missing field or a dangling reference resolves to None.
    """

    def __init__(self, entity_store: BaseEntityStore) -> None:
        self._entity_store = entity_store

    async def resolve(self, document: SourceDocument) -> Artifact | None:
        return await self._lookup(document.thumbnail_ref, document.node_id)

    async def resolve_field(
        self, source: dict[str, Any], context: dict[str, Any] | None = None
    ) -> Artifact | None:
        """Resolver callback form: ``source`` is the raw node being queried."""
        ref = (source.get("fields") or {}).get(THUMBNAIL_FIELD)
        return await self._lookup(ref, source.get("id"))

    async def _lookup(self, ref: ArtifactRef | None, owner_id: str | None) -> Artifact | None:
        if not ref:
            return None
        try:
            node = await self._entity_store.get_node(ref)
        except EntityStoreError as e:
            logger.warning("Cannot resolve thumbnail %s on %s: %s", ref, owner_id, e)
            return None
        if node is None:
            logger.debug("Dangling thumbnail reference %s on %s", ref, owner_id)
            return None
        return Artifact.from_node(node)
