# src/rendering/pymupdf_rasterizer.py - v1
"""PDF rasterizer using PyMuPDF (fitz).

Requires the 'pymupdf' package. Rendering runs in a worker thread so the
event loop stays responsive while a page is drawn.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from docthumb.core.models import RenderedPage, RenderOptions
from docthumb.rendering.base_rasterizer import BaseRasterizer

logger = logging.getLogger(__name__)


class PyMuPdfRasterizer(BaseRasterizer):
    """Rasterize PDF pages to PNG with PyMuPDF."""

    @property
    def supported_media_types(self) -> list[str]:
        return ["application/pdf"]

    async def render(self, path: Path, options: RenderOptions) -> list[RenderedPage]:
        try:
            import fitz  # PyMuPDF
        except ImportError as e:
            raise ImportError(
                "pymupdf package required for PDF rendering: pip install pymupdf"
            ) from e

        return await asyncio.to_thread(self._render_sync, fitz, Path(path), options)

    @staticmethod
    def _render_sync(fitz: Any, path: Path, options: RenderOptions) -> list[RenderedPage]:
        # PyMuPDF only draws embedded or built-in base-14 fonts; it never
        # falls back to system fonts, so embed_fonts_only needs no switch.
        matrix = fitz.Matrix(options.scale, options.scale)
        pages: list[RenderedPage] = []

        doc = fitz.open(str(path))
        try:
            for page_number in options.pages:
                if not 1 <= page_number <= doc.page_count:
                    logger.debug(
                        "Page %d out of range for %s (%d pages)",
                        page_number, path.name, doc.page_count,
                    )
                    continue
                page = doc.load_page(page_number - 1)
                pix = page.get_pixmap(matrix=matrix, alpha=False)
                pages.append(
                    RenderedPage(
                        page_number=page_number,
                        content=pix.tobytes("png"),
                        width=pix.width,
                        height=pix.height,
                    )
                )
        finally:
            doc.close()

        return pages
