# src/pipeline/decision.py - v1
"""Per-document decision: reuse, recover, generate, or give up.

``ThumbnailDecider.decide`` only reads from the cache and the entity store
and may create a new artifact. It never writes the cache or the document's
field; the pipeline driver applies those effects from the returned outcome.
"""

from __future__ import annotations

import logging

from docthumb.artifacts.base_materializer import BaseArtifactMaterializer
from docthumb.artifacts.file_materializer import thumbnail_name
from docthumb.cache.artifact_cache import ArtifactCache
from docthumb.cache.base_cache_store import CacheStoreUnavailableError
from docthumb.core.models import ItemOutcome, RenderOptions, SourceAbsent, SourceDocument
from docthumb.graph.base_entity_store import BaseEntityStore
from docthumb.logging.context import set_step
from docthumb.rendering.base_rasterizer import BaseRasterizer
from docthumb.sources.local_source import resolve_local_source

logger = logging.getLogger(__name__)


class ThumbnailDecider:
    """Decide the outcome for one candidate document."""

    def __init__(
        self,
        cache: ArtifactCache,
        entity_store: BaseEntityStore,
        rasterizer: BaseRasterizer,
        materializer: BaseArtifactMaterializer,
        render_options: RenderOptions | None = None,
    ) -> None:
        self._cache = cache
        self._entity_store = entity_store
        self._rasterizer = rasterizer
        self._materializer = materializer
        self._render_options = render_options or RenderOptions()

    async def decide(self, document: SourceDocument, key: str) -> ItemOutcome:
        cache_writable = True

        set_step("cache_lookup")
        try:
            ref = await self._cache.get(key)
        except CacheStoreUnavailableError as e:
            logger.warning("Cache lookup failed for %s, treating as miss: %s", key, e)
            ref = None
            cache_writable = False

        if ref is not None:
            return ItemOutcome(
                status="hit", document_id=document.node_id, cache_key=key, artifact_id=ref
            )

        # Field survived but the cache entry did not (e.g. cache wiped).
        if document.thumbnail_ref:
            if await self._entity_store.get_node(document.thumbnail_ref) is not None:
                await self._entity_store.touch(document.thumbnail_ref)
                return ItemOutcome(
                    status="recovered",
                    document_id=document.node_id,
                    cache_key=key,
                    artifact_id=document.thumbnail_ref,
                    cache_writable=cache_writable,
                )

        set_step("resolve_source")
        source = await resolve_local_source(document, self._entity_store)
        if isinstance(source, SourceAbsent):
            return ItemOutcome(
                status="source_unavailable",
                document_id=document.node_id,
                cache_key=key,
                detail=source.reason,
                cache_writable=cache_writable,
            )

        set_step("render")
        try:
            pages = await self._rasterizer.render(source.path, self._render_options)
            if not pages or not pages[0].content:
                return self._failed(document, key, "rasterizer returned no page", cache_writable)

            set_step("materialize")
            ref = await self._materializer.create_artifact(
                pages[0].content, thumbnail_name(document.display_name)
            )
        except Exception as e:
            logger.debug("Thumbnail generation raised for %s", document.node_id, exc_info=True)
            return self._failed(document, key, f"{type(e).__name__}: {e}", cache_writable)

        if ref is None:
            return self._failed(document, key, "materializer returned no artifact", cache_writable)

        return ItemOutcome(
            status="generated",
            document_id=document.node_id,
            cache_key=key,
            artifact_id=ref,
            cache_writable=cache_writable,
        )

    @staticmethod
    def _failed(
        document: SourceDocument, key: str, detail: str, cache_writable: bool
    ) -> ItemOutcome:
        return ItemOutcome(
            status="generation_failed",
            document_id=document.node_id,
            cache_key=key,
            detail=detail,
            cache_writable=cache_writable,
        )
