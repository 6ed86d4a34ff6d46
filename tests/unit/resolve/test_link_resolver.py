# tests/unit/resolve/test_link_resolver.py - v2
"""Tests for resolve/link_resolver.py."""

from __future__ import annotations

import asyncio

import pytest
import pytest_asyncio

from docthumb.core.models import SourceDocument
from docthumb.graph.base_entity_store import EntityStoreError
from docthumb.graph.networkx_store import NetworkxEntityStore
from docthumb.resolve.link_resolver import LinkResolver


class FailingEntityStore(NetworkxEntityStore):
    async def get_node(self, node_id):
        raise EntityStoreError("graph offline")


@pytest_asyncio.fixture
async def linked_store(entity_store, materializer, add_document):
    ref = await materializer.create_artifact(b"png", "a_pdf-thumbnail")
    add_document(entity_store, "node-a", "A", fields={"thumbnail": ref})
    add_document(entity_store, "node-b", "B")
    return entity_store


async def _doc(store, node_id: str) -> SourceDocument:
    return SourceDocument.from_node(await store.get_node(node_id))


class TestLinkResolver:
    @pytest.mark.asyncio
    async def test_resolves_artifact(self, linked_store):
        artifact = await LinkResolver(linked_store).resolve(await _doc(linked_store, "node-a"))
        assert artifact is not None
        assert artifact.name == "a_pdf-thumbnail"
        assert artifact.media_type == "image/png"
        assert artifact.size_bytes == 3

    @pytest.mark.asyncio
    async def test_no_field(self, linked_store):
        assert await LinkResolver(linked_store).resolve(await _doc(linked_store, "node-b")) is None

    @pytest.mark.asyncio
    async def test_dangling_reference(self, linked_store):
        doc = await _doc(linked_store, "node-a")
        await linked_store.delete_node(doc.thumbnail_ref)
        assert await LinkResolver(linked_store).resolve(doc) is None

    @pytest.mark.asyncio
    async def test_store_error_resolves_to_none(self):
        store = FailingEntityStore()
        doc = SourceDocument(node_id="n", node_type="Asset", external_id="X", thumbnail_ref="t")
        assert await LinkResolver(store).resolve(doc) is None

    @pytest.mark.asyncio
    async def test_resolve_field_reads_raw_node(self, linked_store):
        node = await linked_store.get_node("node-a")
        artifact = await LinkResolver(linked_store).resolve_field(node, {})
        assert artifact is not None
        assert artifact.id == node["fields"]["thumbnail"]

    @pytest.mark.asyncio
    async def test_concurrent_reads_agree(self, linked_store):
        resolver = LinkResolver(linked_store)
        doc = await _doc(linked_store, "node-a")
        results = await asyncio.gather(*(resolver.resolve(doc) for _ in range(5)))
        assert len({r.id for r in results}) == 1

    @pytest.mark.asyncio
    async def test_resolution_is_read_only(self, linked_store):
        before = await linked_store.get_node("node-a")
        await LinkResolver(linked_store).resolve(await _doc(linked_store, "node-a"))
        assert await linked_store.get_node("node-a") == before
