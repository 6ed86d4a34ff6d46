# src/api/facade.py - v3
"""Public API facade: one build pass, or one thumbnail lookup.

Usage:
    from docthumb.api.facade import generate_thumbnails
    report = await generate_thumbnails(settings)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from docthumb.artifacts.file_materializer import ARTIFACT_OWNER, FileArtifactMaterializer
from docthumb.cache.artifact_cache import ArtifactCache
from docthumb.cache.cache_factory import create_cache_store
from docthumb.config.settings import Settings
from docthumb.core.models import Artifact, GenerationReport, SourceDocument
from docthumb.graph.networkx_store import NetworkxEntityStore
from docthumb.logging.context import clear_context
from docthumb.pipeline.generate import GeneratePipeline, collect_documents
from docthumb.resolve.link_resolver import LinkResolver
from docthumb.resolve.schema import ResolverRegistry, build_thumbnail_resolvers

if TYPE_CHECKING:
    from docthumb.artifacts.base_materializer import BaseArtifactMaterializer
    from docthumb.cache.base_cache_store import BaseCacheStore
    from docthumb.graph.base_entity_store import BaseEntityStore
    from docthumb.rendering.base_rasterizer import BaseRasterizer

logger = logging.getLogger(__name__)


async def generate_thumbnails(
    settings: Settings | None = None,
    entity_store: BaseEntityStore | None = None,
    cache_store: BaseCacheStore | None = None,
    rasterizer: BaseRasterizer | None = None,
    materializer: BaseArtifactMaterializer | None = None,
) -> GenerationReport:
    """Run one build pass over the content graph.

    Steps:
      1. Load the graph from ``settings.graph_path`` unless a store is given
      2. Start a build pass (networkx store only)
      3. Run the pipeline over every ``settings.source_node_type`` node
      4. Garbage-collect artifacts nobody touched, with their files, if enabled
      5. Save the graph if it was loaded here

    Args:
        settings: Global settings. Loaded from .env if None.
        entity_store: Content graph. None = load from ``graph_path``.
        cache_store: Durable cache backend. None = from settings.
        rasterizer: Page renderer. None = PyMuPDF.
        materializer: Artifact writer. None = files under ``artifact_root``.

    Returns:
        GenerationReport for the pass.
    """
    settings = settings or Settings()
    owns_graph = entity_store is None
    store = entity_store or NetworkxEntityStore.load(settings.graph_path)
    owns_cache = cache_store is None
    cache_backend = cache_store or create_cache_store(settings)

    if rasterizer is None:
        from docthumb.rendering.pymupdf_rasterizer import PyMuPdfRasterizer
        rasterizer = PyMuPdfRasterizer()
    if materializer is None:
        materializer = FileArtifactMaterializer(
            root=settings.artifact_root,
            entity_store=store,
            node_type=settings.artifact_node_type,
        )

    if isinstance(store, NetworkxEntityStore):
        build_pass = store.begin_pass()
        logger.debug("Starting build pass %d", build_pass)

    pipeline = GeneratePipeline.from_settings(
        settings,
        entity_store=store,
        cache=ArtifactCache(cache_backend, store),
        rasterizer=rasterizer,
        materializer=materializer,
    )

    try:
        documents = await collect_documents(store, settings.source_node_type)
        report = await pipeline.run(documents)

        if settings.artifact_gc_enabled and isinstance(store, NetworkxEntityStore):
            removed = store.collect_garbage(ARTIFACT_OWNER)
            for node in removed:
                await materializer.delete_artifact(node)
            report.garbage_collected = len(removed)

        if owns_graph and isinstance(store, NetworkxEntityStore):
            store.save(settings.graph_path)
    finally:
        if owns_cache:
            cache_backend.close()
        clear_context()

    return report


async def resolve_thumbnail(
    node_id: str,
    settings: Settings | None = None,
    entity_store: BaseEntityStore | None = None,
) -> Artifact | None:
    """Resolve the thumbnail artifact of one source node, or None."""
    settings = settings or Settings()
    store = entity_store or NetworkxEntityStore.load(settings.graph_path)
    node = await store.get_node(node_id)
    if node is None:
        return None
    return await LinkResolver(store).resolve(SourceDocument.from_node(node))


def build_resolver_registry(
    settings: Settings, entity_store: BaseEntityStore
) -> ResolverRegistry:
    """Register the lazily resolved ``thumbnail`` field for source nodes."""
    registry = ResolverRegistry()
    registry.register(
        build_thumbnail_resolvers(
            LinkResolver(entity_store),
            source_type=settings.source_node_type,
            artifact_type=settings.artifact_node_type,
        )
    )
    return registry
