# src/cache/models.py - v2
"""Cache domain model: CacheEntry."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from docthumb.version import __version__


class CacheEntry(BaseModel):
    """Single cache entry linking a thumbnail key to a materialized artifact."""

    key: str
    artifact_id: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    package_version: str = __version__
