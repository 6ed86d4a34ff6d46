# src/artifacts/base_materializer.py - v2
"""Abstract artifact materializer interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from docthumb.core.models import ArtifactRef


class BaseArtifactMaterializer(ABC):
    """Persists a byte buffer as a first-class artifact entity."""

    @abstractmethod
    async def create_artifact(
        self, content: bytes, name: str, extension: str = ".png"
    ) -> ArtifactRef | None:
        """Persist ``content`` and return the new artifact's id.

        Returns None when nothing could be materialized (e.g. empty content).
        """

    async def delete_artifact(self, node: dict[str, Any]) -> bool:
        """Release the storage behind an artifact node the graph has dropped.

        Returns True when something was deleted. The base implementation
        holds no storage of its own.
        """
        return False
