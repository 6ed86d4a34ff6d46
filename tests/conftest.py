# tests/conftest.py - v2
"""Shared test fixtures for unit and integration tests.

Provides an in-memory content graph, a recording fake rasterizer, a real
file materializer under tmp_path, and the A/B/C sample documents:
A (pdf, local file present), B (pdf, no local file), C (png).

Graph builders and the fake rasterizer class are exposed as fixtures
(``add_document``, ``add_file_node``, ``make_rasterizer``).
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from docthumb.artifacts.file_materializer import FileArtifactMaterializer
from docthumb.cache.artifact_cache import ArtifactCache
from docthumb.cache.json_store import JsonCacheStore
from docthumb.core.models import LOCAL_FILE_FIELD, RenderedPage, RenderOptions
from docthumb.graph.networkx_store import NetworkxEntityStore
from docthumb.pipeline.generate import GeneratePipeline
from docthumb.rendering.base_rasterizer import BaseRasterizer

FAKE_PNG = b"\x89PNG\r\n\x1a\n" + b"fake-thumbnail-bytes"


class FakeRasterizer(BaseRasterizer):
    """Records render calls; returns one fixed page unless told otherwise."""

    def __init__(
        self,
        pages: list[RenderedPage] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.calls: list[tuple[Path, RenderOptions]] = []
        self._pages = pages
        self._error = error

    @property
    def supported_media_types(self) -> list[str]:
        return ["application/pdf"]

    async def render(self, path: Path, options: RenderOptions) -> list[RenderedPage]:
        self.calls.append((path, options))
        if self._error is not None:
            raise self._error
        if self._pages is not None:
            return self._pages
        # Content varies per file so distinct documents get distinct artifacts.
        return [RenderedPage(page_number=1, content=FAKE_PNG + path.name.encode())]


def _add_file_node(store: NetworkxEntityStore, node_id: str, path: Path) -> None:
    store.graph.add_node(
        node_id,
        internal={"type": "LocalFile", "owner": "source", "last_seen_pass": 0},
        absolute_path=str(path),
        fields={},
    )


def _add_document(
    store: NetworkxEntityStore,
    node_id: str,
    external_id: str,
    *,
    locale: str = "en",
    content_type: str = "application/pdf",
    file_name: str | None = None,
    local_path: Path | None = None,
    fields: dict[str, Any] | None = None,
) -> None:
    """Add an Asset node, plus a LocalFile node when ``local_path`` is given."""
    node_fields = dict(fields or {})
    if local_path is not None:
        file_node_id = f"{node_id}-file"
        _add_file_node(store, file_node_id, local_path)
        node_fields[LOCAL_FILE_FIELD] = file_node_id
    store.graph.add_node(
        node_id,
        internal={"type": "Asset", "owner": "source", "last_seen_pass": 0},
        external_id=external_id,
        locale=locale,
        file={
            "file_name": file_name or f"{external_id.lower()}.pdf",
            "content_type": content_type,
        },
        fields=node_fields,
    )


@pytest.fixture
def add_document():
    """Builder: add_document(store, node_id, external_id, **options)."""
    return _add_document


@pytest.fixture
def add_file_node():
    """Builder: add_file_node(store, node_id, path)."""
    return _add_file_node


@pytest.fixture
def make_rasterizer():
    """Factory for FakeRasterizer with custom pages or a raised error."""
    return FakeRasterizer


@pytest.fixture
def entity_store() -> NetworkxEntityStore:
    return NetworkxEntityStore()


@pytest.fixture
def pdf_file(tmp_path: Path) -> Path:
    path = tmp_path / "downloads" / "report.v2.pdf"
    path.parent.mkdir(parents=True)
    path.write_bytes(b"%PDF-1.4 not really a pdf")
    return path


@pytest.fixture
def scenario_store(entity_store: NetworkxEntityStore, pdf_file: Path) -> NetworkxEntityStore:
    """A: pdf with local file, B: pdf without, C: png."""
    _add_document(entity_store, "node-a", "A", file_name="report.v2.pdf", local_path=pdf_file)
    _add_document(entity_store, "node-b", "B", file_name="missing.pdf")
    _add_document(
        entity_store, "node-c", "C", content_type="image/png", file_name="logo.png"
    )
    return entity_store


@pytest.fixture
def cache_store(tmp_path: Path) -> JsonCacheStore:
    return JsonCacheStore(cache_root=tmp_path / "cache")


@pytest.fixture
def rasterizer() -> FakeRasterizer:
    return FakeRasterizer()


@pytest.fixture
def materializer(tmp_path: Path, entity_store: NetworkxEntityStore) -> FileArtifactMaterializer:
    return FileArtifactMaterializer(root=tmp_path / "artifacts", entity_store=entity_store)


@pytest.fixture
def artifact_cache(
    cache_store: JsonCacheStore, entity_store: NetworkxEntityStore
) -> ArtifactCache:
    return ArtifactCache(cache_store, entity_store)


@pytest.fixture
def pipeline(
    entity_store: NetworkxEntityStore,
    artifact_cache: ArtifactCache,
    rasterizer: FakeRasterizer,
    materializer: FileArtifactMaterializer,
) -> GeneratePipeline:
    return GeneratePipeline(
        entity_store=entity_store,
        cache=artifact_cache,
        rasterizer=rasterizer,
        materializer=materializer,
    )
