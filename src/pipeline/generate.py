# src/pipeline/generate.py - v2
"""Generate-or-reuse thumbnail pipeline over one build pass.

Workflow:
    1. Filter documents by declared media type (once, up front)
    2. For each candidate: derive key, decide outcome (ThumbnailDecider)
    3. Apply effects from the outcome tag: cache write, field write
    4. Tick progress; per-item failures never abort the batch
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Sequence
from typing import TYPE_CHECKING

from docthumb.cache.artifact_cache import ArtifactCache
from docthumb.cache.base_cache_store import CacheStoreUnavailableError
from docthumb.core.keys import DEFAULT_NAMESPACE, derive_cache_key
from docthumb.core.models import (
    THUMBNAIL_FIELD,
    GenerationReport,
    ItemOutcome,
    RenderOptions,
    SourceDocument,
)
from docthumb.graph.base_entity_store import NodeNotFoundError
from docthumb.logging.context import set_document_context, set_run_context, set_step
from docthumb.pipeline.decision import ThumbnailDecider
from docthumb.tracking.progress import ProgressReporter

if TYPE_CHECKING:
    from docthumb.artifacts.base_materializer import BaseArtifactMaterializer
    from docthumb.config.settings import Settings
    from docthumb.graph.base_entity_store import BaseEntityStore
    from docthumb.rendering.base_rasterizer import BaseRasterizer

logger = logging.getLogger(__name__)


async def collect_documents(
    entity_store: BaseEntityStore, node_type: str
) -> list[SourceDocument]:
    """Read all nodes of ``node_type`` as SourceDocument views."""
    nodes = await entity_store.get_nodes_by_type(node_type)
    return [SourceDocument.from_node(node) for node in nodes]


class GeneratePipeline:
    """Run the thumbnail sweep over a set of source documents."""

    def __init__(
        self,
        entity_store: BaseEntityStore,
        cache: ArtifactCache,
        rasterizer: BaseRasterizer,
        materializer: BaseArtifactMaterializer,
        media_type: str = "application/pdf",
        namespace: str = DEFAULT_NAMESPACE,
        render_options: RenderOptions | None = None,
        max_concurrency: int = 1,
        progress: ProgressReporter | None = None,
    ) -> None:
        self._entity_store = entity_store
        self._cache = cache
        self._media_type = media_type
        self._namespace = namespace
        self._max_concurrency = max(1, max_concurrency)
        self._progress = progress or ProgressReporter()
        self._decider = ThumbnailDecider(
            cache=cache,
            entity_store=entity_store,
            rasterizer=rasterizer,
            materializer=materializer,
            render_options=render_options,
        )
        self._key_locks: dict[str, asyncio.Lock] = {}

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        entity_store: BaseEntityStore,
        cache: ArtifactCache,
        rasterizer: BaseRasterizer,
        materializer: BaseArtifactMaterializer,
        progress: ProgressReporter | None = None,
    ) -> GeneratePipeline:
        return cls(
            entity_store=entity_store,
            cache=cache,
            rasterizer=rasterizer,
            materializer=materializer,
            media_type=settings.source_media_type,
            namespace=settings.thumbnail_namespace,
            render_options=RenderOptions(
                embed_fonts_only=settings.thumbnail_embed_fonts_only,
                scale=settings.thumbnail_scale,
                pages=[1],
            ),
            max_concurrency=settings.max_concurrency,
            progress=progress,
        )

    def select_candidates(
        self, documents: Sequence[SourceDocument]
    ) -> list[SourceDocument]:
        return [d for d in documents if d.media_type == self._media_type]

    async def run(self, documents: Sequence[SourceDocument]) -> GenerationReport:
        """Process every eligible document and return the run report."""
        run_id = uuid.uuid4().hex[:12]
        set_run_context(run_id)
        t0 = time.perf_counter()

        candidates = self.select_candidates(documents)
        report = GenerationReport(
            run_id=run_id,
            total_documents=len(documents),
            skipped_wrong_type=len(documents) - len(candidates),
        )

        if not candidates:
            logger.info(
                "No %s documents found, skipping thumbnail generation", self._media_type
            )
            return report

        self._progress.start(len(candidates))
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def _guarded(document: SourceDocument) -> ItemOutcome:
            async with semaphore:
                return await self._process(document)

        outcomes = await asyncio.gather(*(_guarded(d) for d in candidates))
        for outcome in outcomes:
            report.record(outcome)
            if outcome.has_artifact and outcome.status != "hit" and not outcome.cache_written:
                report.cache_write_failed += 1

        report.duration_seconds = round(time.perf_counter() - t0, 3)
        self._progress.finish(report)
        return report

    async def _process(self, document: SourceDocument) -> ItemOutcome:
        set_document_context(document.node_id)
        key = derive_cache_key(document, namespace=self._namespace)
        lock = self._key_locks.setdefault(key, asyncio.Lock())
        try:
            async with lock:
                outcome = await self._decider.decide(document, key)
                return await self._apply(document, outcome)
        finally:
            set_step(None)
            self._progress.tick()

    async def _apply(self, document: SourceDocument, outcome: ItemOutcome) -> ItemOutcome:
        """Write-through for new references, then annotate the document."""
        set_step("apply")
        if outcome.status in ("source_unavailable", "generation_failed"):
            label = (
                "Source unavailable" if outcome.status == "source_unavailable"
                else "Thumbnail generation failed"
            )
            logger.warning("%s for %s: %s", label, document.display_name, outcome.detail)
            return outcome

        if outcome.artifact_id is None:
            return outcome

        if outcome.status in ("generated", "recovered") and outcome.cache_writable:
            try:
                await self._cache.set(outcome.cache_key, outcome.artifact_id)
                outcome = outcome.model_copy(update={"cache_written": True})
            except CacheStoreUnavailableError as e:
                logger.warning(
                    "Could not persist cache entry %s: %s", outcome.cache_key, e
                )

        if document.thumbnail_ref != outcome.artifact_id:
            try:
                await self._entity_store.create_field(
                    document.node_id, THUMBNAIL_FIELD, outcome.artifact_id
                )
            except NodeNotFoundError:
                logger.warning(
                    "Source unavailable for %s: document node removed during the run",
                    document.display_name,
                )
                return outcome.model_copy(
                    update={
                        "status": "source_unavailable",
                        "detail": f"document node {document.node_id} no longer exists",
                    }
                )
        logger.debug(
            "%s thumbnail for %s -> %s",
            outcome.status, document.display_name, outcome.artifact_id,
        )
        return outcome
