# src/core/models.py - v1
"""Core domain models: source documents, artifacts, render options, outcomes.

Graph nodes are plain dicts owned by the entity store. The models here are
read-only views built from them, plus the values the pipeline passes around.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

# Opaque artifact identifier (an entity store node id). Non-owning.
ArtifactRef = str

# Field names written to / read from graph nodes.
LOCAL_FILE_FIELD = "local_file"
THUMBNAIL_FIELD = "thumbnail"


class SourceDocument(BaseModel):
    """Read-only view of a source document node."""

    model_config = ConfigDict(frozen=True)

    node_id: str
    node_type: str
    external_id: str
    locale: str = ""
    media_type: str | None = None
    file_name: str = ""
    local_file_id: str | None = None
    thumbnail_ref: ArtifactRef | None = None

    @classmethod
    def from_node(cls, node: dict[str, Any]) -> SourceDocument:
        """Build a view from an entity store node.

        Expected node shape::

            {
                "id": "...",
                "internal": {"type": "Asset"},
                "external_id": "A",
                "locale": "en",
                "file": {"file_name": "a.pdf", "content_type": "application/pdf"},
                "fields": {"local_file": "<file node id>", "thumbnail": "<id>"},
            }
        """
        file_info = node.get("file") or {}
        fields = node.get("fields") or {}
        return cls(
            node_id=node["id"],
            node_type=(node.get("internal") or {}).get("type", ""),
            external_id=str(node.get("external_id") or node["id"]),
            locale=str(node.get("locale") or ""),
            media_type=file_info.get("content_type"),
            file_name=file_info.get("file_name") or "",
            local_file_id=fields.get(LOCAL_FILE_FIELD),
            thumbnail_ref=fields.get(THUMBNAIL_FIELD),
        )

    @property
    def display_name(self) -> str:
        return self.file_name or self.external_id


class SourcePresent(BaseModel):
    """Local bytes for a document are available at ``path``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["present"] = "present"
    path: Path


class SourceAbsent(BaseModel):
    """No local bytes could be resolved for a document."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["absent"] = "absent"
    reason: str


LocalSource = Union[SourcePresent, SourceAbsent]


class RenderOptions(BaseModel):
    """Rasterizer request: which pages, at what scale."""

    embed_fonts_only: bool = True
    scale: float = Field(default=0.33, gt=0, le=1)
    pages: list[int] = Field(default_factory=lambda: [1])


class RenderedPage(BaseModel):
    """One rasterized page as encoded image bytes."""

    page_number: int
    content: bytes
    width: int = 0
    height: int = 0
    media_type: str = "image/png"


class Artifact(BaseModel):
    """A materialized thumbnail entity, as resolved from the entity store."""

    id: ArtifactRef
    name: str
    absolute_path: str
    extension: str = ".png"
    media_type: str = "image/png"
    size_bytes: int = 0
    content_digest: str = ""

    @classmethod
    def from_node(cls, node: dict[str, Any]) -> Artifact:
        return cls(
            id=node["id"],
            name=node.get("name", ""),
            absolute_path=node.get("absolute_path", ""),
            extension=node.get("extension", ".png"),
            media_type=node.get("media_type", "image/png"),
            size_bytes=int(node.get("size_bytes", 0)),
            content_digest=node.get("content_digest", ""),
        )


OutcomeStatus = Literal[
    "hit", "recovered", "generated", "source_unavailable", "generation_failed"
]


class ItemOutcome(BaseModel):
    """Tagged result of deciding what to do for one candidate.

    ``hit``: cache entry found. ``recovered``: cache missed but the document's
    own field still resolves. ``generated``: a new artifact was materialized.
    The two failure tags carry a human-readable ``detail``.
    """

    status: OutcomeStatus
    document_id: str
    cache_key: str
    artifact_id: ArtifactRef | None = None
    detail: str | None = None
    # False when the cache store failed on lookup; skip the write-through.
    cache_writable: bool = True
    cache_written: bool = False

    @property
    def has_artifact(self) -> bool:
        return self.artifact_id is not None and self.status in (
            "hit", "recovered", "generated",
        )


class GenerationReport(BaseModel):
    """Summary of one build pass."""

    run_id: str = ""
    total_documents: int = 0
    skipped_wrong_type: int = 0
    cache_hit: int = 0
    recovered: int = 0
    generated: int = 0
    source_unavailable: int = 0
    generation_failed: int = 0
    cache_write_failed: int = 0
    garbage_collected: int = 0
    outcomes: list[ItemOutcome] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    duration_seconds: float = 0.0

    @property
    def candidates(self) -> int:
        return len(self.outcomes)

    def record(self, outcome: ItemOutcome) -> None:
        """Append an outcome and bump the matching counter."""
        self.outcomes.append(outcome)
        counter = {
            "hit": "cache_hit",
            "recovered": "recovered",
            "generated": "generated",
            "source_unavailable": "source_unavailable",
            "generation_failed": "generation_failed",
        }[outcome.status]
        setattr(self, counter, getattr(self, counter) + 1)

    def counts(self) -> dict[str, int]:
        return {
            "skipped_wrong_type": self.skipped_wrong_type,
            "cache_hit": self.cache_hit,
            "recovered": self.recovered,
            "generated": self.generated,
            "source_unavailable": self.source_unavailable,
            "generation_failed": self.generation_failed,
            "cache_write_failed": self.cache_write_failed,
        }
