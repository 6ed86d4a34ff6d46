# tests/unit/test_main.py - v2
"""Tests for the docthumb CLI (main.py)."""

from __future__ import annotations

import logging

import pytest

from docthumb import main as cli_main
from docthumb.core.models import GenerationReport
from docthumb.graph.networkx_store import NetworkxEntityStore
from docthumb.logging.logger import ROOT_LOGGER


@pytest.fixture(autouse=True)
def _reset_logging(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    yield
    root = logging.getLogger(ROOT_LOGGER)
    root.handlers.clear()
    root.setLevel(logging.NOTSET)


class TestMain:
    def test_no_command_prints_help(self, capsys):
        assert cli_main.main([]) == 1
        assert "usage: docthumb" in capsys.readouterr().out

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            cli_main.main(["--version"])
        assert exc.value.code == 0
        assert "docthumb 0.1.0" in capsys.readouterr().out

    def test_invalid_concurrency(self, capsys):
        assert cli_main.main(["generate", "--concurrency", "0"]) == 2
        assert "Invalid configuration" in capsys.readouterr().err

    def test_generate_prints_report(self, monkeypatch, capsys, tmp_path):
        seen = {}

        async def fake_generate(settings):
            seen["settings"] = settings
            return GenerationReport(generated=2, cache_hit=1, garbage_collected=3)

        monkeypatch.setattr("docthumb.api.facade.generate_thumbnails", fake_generate)

        code = cli_main.main([
            "--graph", str(tmp_path / "g.json"),
            "generate", "--cache-backend", "sqlite", "--concurrency", "4", "--no-gc",
        ])

        assert code == 0
        out = capsys.readouterr().out
        assert "Generated:           2" in out
        assert "Cache hits:          1" in out
        assert "Garbage collected:   3" in out
        assert "Cache write failed" not in out
        settings = seen["settings"]
        assert settings.graph_path == tmp_path / "g.json"
        assert settings.cache_backend == "sqlite"
        assert settings.max_concurrency == 4
        assert settings.artifact_gc_enabled is False

    def test_generate_failure_exit_code(self, monkeypatch):
        async def boom(settings):
            raise RuntimeError("disk full")

        monkeypatch.setattr("docthumb.api.facade.generate_thumbnails", boom)
        assert cli_main.main(["generate"]) == 1

    def test_show_without_thumbnail(self, capsys, tmp_path, add_document):
        graph = tmp_path / "g.json"
        store = NetworkxEntityStore()
        add_document(store, "node-a", "A")
        store.save(graph)

        assert cli_main.main(["--graph", str(graph), "show", "node-a"]) == 1
        assert "No thumbnail for node-a" in capsys.readouterr().out

    def test_show_with_thumbnail(self, capsys, tmp_path, add_document):
        graph = tmp_path / "g.json"
        store = NetworkxEntityStore()
        store.graph.add_node(
            "t1", internal={"type": "File"}, name="a_pdf-thumbnail",
            absolute_path="/x/a.png", size_bytes=42, fields={},
        )
        add_document(store, "node-a", "A", fields={"thumbnail": "t1"})
        store.save(graph)

        assert cli_main.main(["--graph", str(graph), "show", "node-a"]) == 0
        out = capsys.readouterr().out
        assert "a_pdf-thumbnail" in out
        assert "42 bytes" in out
