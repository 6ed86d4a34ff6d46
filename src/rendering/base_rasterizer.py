# src/rendering/base_rasterizer.py - v1
"""Abstract rasterizer interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from docthumb.core.models import RenderedPage, RenderOptions


class BaseRasterizer(ABC):
    """Turns a document on disk into encoded page images."""

    @property
    @abstractmethod
    def supported_media_types(self) -> list[str]:
        """Media types this rasterizer can open."""

    @abstractmethod
    async def render(self, path: Path, options: RenderOptions) -> list[RenderedPage]:
        """Render the requested pages.

        Pages past the end of the document are skipped, so the result may be
        shorter than ``options.pages`` (or empty).
        """
