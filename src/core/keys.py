# src/core/keys.py - v1
"""Deterministic cache keys for document thumbnails.

A key is ``<namespace>-<external id>-<locale>-<purpose>``. It depends only on
immutable identity fields, so the same document maps to the same key in every
process and every run.
"""

from __future__ import annotations

from docthumb.core.models import SourceDocument

DEFAULT_NAMESPACE = "thumb"
THUMBNAIL_PURPOSE = "thumbnail"
SEPARATOR = "-"


def derive_cache_key(
    document: SourceDocument,
    namespace: str = DEFAULT_NAMESPACE,
    purpose: str = THUMBNAIL_PURPOSE,
) -> str:
    """Return the cache key for ``document``'s thumbnail.

    External ids are unique per locale upstream, so plain concatenation is
    enough to keep keys distinct.
    """
    return SEPARATOR.join((namespace, document.external_id, document.locale, purpose))
