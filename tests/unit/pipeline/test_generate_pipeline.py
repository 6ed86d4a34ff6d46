# tests/unit/pipeline/test_generate_pipeline.py - v2
"""Tests for pipeline/generate.py over the A/B/C sample graph."""

from __future__ import annotations

import logging

import pytest

from docthumb.artifacts.base_materializer import BaseArtifactMaterializer
from docthumb.artifacts.file_materializer import ARTIFACT_OWNER
from docthumb.cache.artifact_cache import ArtifactCache
from docthumb.cache.base_cache_store import BaseCacheStore, CacheStoreUnavailableError
from docthumb.cache.json_store import JsonCacheStore
from docthumb.config.settings import Settings
from docthumb.core.models import SourceDocument
from docthumb.pipeline.generate import GeneratePipeline, collect_documents
from docthumb.resolve.link_resolver import LinkResolver

KEY_A = "thumb-A-en-thumbnail"


class WriteFailingCacheStore(JsonCacheStore):
    async def put(self, key, entry):
        raise CacheStoreUnavailableError("read-only")


class DownCacheStore(BaseCacheStore):
    def __init__(self) -> None:
        self.put_calls = 0

    async def get(self, key):
        raise CacheStoreUnavailableError("down")

    async def put(self, key, entry):
        self.put_calls += 1
        raise CacheStoreUnavailableError("down")

    async def delete(self, key):
        raise CacheStoreUnavailableError("down")

    async def list_keys(self):
        raise CacheStoreUnavailableError("down")


class NullMaterializer(BaseArtifactMaterializer):
    async def create_artifact(self, content, name, extension=".png"):
        return None


async def _thumbnail_field(store, node_id: str) -> str | None:
    return (await store.get_node(node_id))["fields"].get("thumbnail")


def _pipeline(store, cache_store, rasterizer, materializer, **kwargs) -> GeneratePipeline:
    return GeneratePipeline(
        entity_store=store,
        cache=ArtifactCache(cache_store, store),
        rasterizer=rasterizer,
        materializer=materializer,
        **kwargs,
    )


class TestScenario:
    @pytest.mark.asyncio
    async def test_first_run(self, pipeline, scenario_store, cache_store, rasterizer):
        report = await pipeline.run(await collect_documents(scenario_store, "Asset"))

        assert report.total_documents == 3
        assert report.skipped_wrong_type == 1
        assert report.candidates == 2
        assert report.generated == 1
        assert report.source_unavailable == 1
        assert report.cache_write_failed == 0
        assert len(rasterizer.calls) == 1

        entry = await cache_store.get(KEY_A)
        assert entry is not None
        assert entry.artifact_id == await _thumbnail_field(scenario_store, "node-a")
        assert await _thumbnail_field(scenario_store, "node-b") is None
        assert await _thumbnail_field(scenario_store, "node-c") is None
        assert await cache_store.list_keys() == [KEY_A]

    @pytest.mark.asyncio
    async def test_second_run_reuses(self, pipeline, scenario_store, rasterizer):
        await pipeline.run(await collect_documents(scenario_store, "Asset"))
        first_ref = await _thumbnail_field(scenario_store, "node-a")

        report = await pipeline.run(await collect_documents(scenario_store, "Asset"))

        assert report.cache_hit == 1
        assert report.generated == 0
        assert report.source_unavailable == 1
        assert len(rasterizer.calls) == 1
        assert await _thumbnail_field(scenario_store, "node-a") == first_ref

    @pytest.mark.asyncio
    async def test_fresh_process_reuses_durable_cache(
        self, pipeline, scenario_store, tmp_path, materializer, make_rasterizer
    ):
        await pipeline.run(await collect_documents(scenario_store, "Asset"))

        rasterizer = make_rasterizer()
        fresh = _pipeline(
            scenario_store, JsonCacheStore(tmp_path / "cache"), rasterizer, materializer
        )
        report = await fresh.run(await collect_documents(scenario_store, "Asset"))

        assert report.cache_hit == 1
        assert rasterizer.calls == []

    @pytest.mark.asyncio
    async def test_failures_are_logged(self, pipeline, scenario_store, caplog):
        caplog.set_level(logging.WARNING, logger="docthumb")
        await pipeline.run(await collect_documents(scenario_store, "Asset"))
        assert any(
            "Source unavailable for missing.pdf" in r.getMessage() for r in caplog.records
        )


class TestKeepAlive:
    @pytest.mark.asyncio
    async def test_hit_keeps_artifact_alive(self, pipeline, scenario_store):
        scenario_store.begin_pass()
        await pipeline.run(await collect_documents(scenario_store, "Asset"))
        ref = await _thumbnail_field(scenario_store, "node-a")

        scenario_store.begin_pass()
        report = await pipeline.run(await collect_documents(scenario_store, "Asset"))

        assert report.cache_hit == 1
        assert scenario_store.collect_garbage(ARTIFACT_OWNER) == []
        assert await scenario_store.get_node(ref) is not None

    @pytest.mark.asyncio
    async def test_untouched_artifact_is_collected(self, pipeline, scenario_store):
        scenario_store.begin_pass()
        await pipeline.run(await collect_documents(scenario_store, "Asset"))
        ref = await _thumbnail_field(scenario_store, "node-a")

        scenario_store.begin_pass()
        removed = scenario_store.collect_garbage(ARTIFACT_OWNER)
        assert [node["id"] for node in removed] == [ref]


class TestDanglingReference:
    @pytest.mark.asyncio
    async def test_hit_on_deleted_artifact_is_not_regenerated(
        self, pipeline, scenario_store, rasterizer
    ):
        await pipeline.run(await collect_documents(scenario_store, "Asset"))
        ref = await _thumbnail_field(scenario_store, "node-a")
        await scenario_store.delete_node(ref)

        report = await pipeline.run(await collect_documents(scenario_store, "Asset"))

        assert report.cache_hit == 1
        assert len(rasterizer.calls) == 1
        assert await _thumbnail_field(scenario_store, "node-a") == ref
        doc = SourceDocument.from_node(await scenario_store.get_node("node-a"))
        assert await LinkResolver(scenario_store).resolve(doc) is None


class TestRecovery:
    @pytest.mark.asyncio
    async def test_wiped_cache_is_rebuilt_from_field(
        self, pipeline, scenario_store, tmp_path, materializer, make_rasterizer
    ):
        await pipeline.run(await collect_documents(scenario_store, "Asset"))
        ref = await _thumbnail_field(scenario_store, "node-a")

        empty_cache = JsonCacheStore(tmp_path / "other-cache")
        rasterizer = make_rasterizer()
        report = await _pipeline(
            scenario_store, empty_cache, rasterizer, materializer
        ).run(await collect_documents(scenario_store, "Asset"))

        assert report.recovered == 1
        assert rasterizer.calls == []
        assert (await empty_cache.get(KEY_A)).artifact_id == ref


class TestCacheFailures:
    @pytest.mark.asyncio
    async def test_write_failure_still_sets_field(
        self, scenario_store, tmp_path, rasterizer, materializer
    ):
        store = WriteFailingCacheStore(tmp_path / "ro-cache")
        report = await _pipeline(scenario_store, store, rasterizer, materializer).run(
            await collect_documents(scenario_store, "Asset")
        )

        assert report.generated == 1
        assert report.cache_write_failed == 1
        assert await _thumbnail_field(scenario_store, "node-a") is not None
        assert await store.list_keys() == []

    @pytest.mark.asyncio
    async def test_lookup_failure_skips_write(self, scenario_store, rasterizer, materializer):
        store = DownCacheStore()
        report = await _pipeline(scenario_store, store, rasterizer, materializer).run(
            await collect_documents(scenario_store, "Asset")
        )

        assert report.generated == 1
        assert report.cache_write_failed == 1
        assert store.put_calls == 0
        assert await _thumbnail_field(scenario_store, "node-a") is not None


class TestGenerationFailure:
    @pytest.mark.asyncio
    async def test_rasterizer_error_is_isolated(
        self, scenario_store, cache_store, materializer, pdf_file,
        add_document, make_rasterizer,
    ):
        add_document(scenario_store, "node-d", "D", local_path=pdf_file)
        rasterizer = make_rasterizer(error=RuntimeError("corrupt"))

        report = await _pipeline(scenario_store, cache_store, rasterizer, materializer).run(
            await collect_documents(scenario_store, "Asset")
        )

        assert report.generation_failed == 2
        assert report.source_unavailable == 1
        assert await cache_store.list_keys() == []
        assert await _thumbnail_field(scenario_store, "node-a") is None

    @pytest.mark.asyncio
    async def test_null_artifact(self, scenario_store, cache_store, rasterizer):
        report = await _pipeline(
            scenario_store, cache_store, rasterizer, NullMaterializer()
        ).run(await collect_documents(scenario_store, "Asset"))

        assert report.generation_failed == 1
        assert report.outcomes[0].detail == "materializer returned no artifact"
        assert await cache_store.list_keys() == []


class TestDocumentRemovedDuringRun:
    @pytest.mark.asyncio
    async def test_vanished_node_does_not_abort_batch(
        self, pipeline, scenario_store, pdf_file, add_document
    ):
        add_document(scenario_store, "node-d", "D", local_path=pdf_file)
        documents = await collect_documents(scenario_store, "Asset")
        await scenario_store.delete_node("node-a")

        report = await pipeline.run(documents)

        assert report.generated == 1
        assert report.source_unavailable == 2
        assert report.cache_write_failed == 0
        vanished = next(o for o in report.outcomes if o.document_id == "node-a")
        assert vanished.status == "source_unavailable"
        assert "node-a" in vanished.detail
        assert await _thumbnail_field(scenario_store, "node-d") is not None


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_shared_key_generated_once(
        self, entity_store, cache_store, rasterizer, materializer, pdf_file, add_document
    ):
        add_document(entity_store, "node-a", "A", local_path=pdf_file)
        add_document(entity_store, "node-a2", "A", local_path=pdf_file)

        report = await _pipeline(
            entity_store, cache_store, rasterizer, materializer, max_concurrency=4
        ).run(await collect_documents(entity_store, "Asset"))

        assert len(rasterizer.calls) == 1
        assert report.generated == 1
        assert report.cache_hit == 1
        assert await _thumbnail_field(entity_store, "node-a") == await _thumbnail_field(
            entity_store, "node-a2"
        )

    @pytest.mark.asyncio
    async def test_many_documents_in_parallel(
        self, entity_store, cache_store, rasterizer, materializer, tmp_path, add_document
    ):
        for i in range(6):
            path = tmp_path / f"doc{i}.pdf"
            path.write_bytes(b"%PDF")
            add_document(entity_store, f"node-{i}", f"E{i}", local_path=path)

        report = await _pipeline(
            entity_store, cache_store, rasterizer, materializer, max_concurrency=3
        ).run(await collect_documents(entity_store, "Asset"))

        assert report.generated == 6
        assert len(await cache_store.list_keys()) == 6


class TestNoCandidates:
    @pytest.mark.asyncio
    async def test_only_wrong_type(
        self, pipeline, entity_store, rasterizer, caplog, add_document
    ):
        caplog.set_level(logging.INFO, logger="docthumb")
        add_document(entity_store, "node-c", "C", content_type="image/png")

        report = await pipeline.run(await collect_documents(entity_store, "Asset"))

        assert report.total_documents == 1
        assert report.skipped_wrong_type == 1
        assert report.outcomes == []
        assert rasterizer.calls == []
        assert any("No application/pdf documents found" in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_empty_input(self, pipeline):
        report = await pipeline.run([])
        assert report.total_documents == 0
        assert report.counts()["generated"] == 0


class TestFromSettings:
    @pytest.mark.asyncio
    async def test_namespace_and_media_type(
        self, entity_store, cache_store, rasterizer, materializer, pdf_file, add_document
    ):
        add_document(
            entity_store, "node-a", "A", locale="de",
            content_type="application/x-pdf", local_path=pdf_file,
        )
        settings = Settings(
            _env_file=None,
            thumbnail_namespace="preview",
            source_media_type="application/x-pdf",
            thumbnail_scale=0.5,
        )
        pipeline = GeneratePipeline.from_settings(
            settings,
            entity_store=entity_store,
            cache=ArtifactCache(cache_store, entity_store),
            rasterizer=rasterizer,
            materializer=materializer,
        )

        report = await pipeline.run(await collect_documents(entity_store, "Asset"))

        assert report.generated == 1
        assert await cache_store.list_keys() == ["preview-A-de-thumbnail"]
        assert rasterizer.calls[0][1].scale == 0.5
