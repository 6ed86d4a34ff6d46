# src/sources/local_source.py - v1
"""Resolve a document's locally downloaded bytes.

Documents link to a file node through their ``local_file`` field; the file
node carries the ``absolute_path`` of the downloaded copy.
"""

from __future__ import annotations

import logging
from pathlib import Path

from docthumb.core.models import LocalSource, SourceAbsent, SourceDocument, SourcePresent
from docthumb.graph.base_entity_store import BaseEntityStore

logger = logging.getLogger(__name__)


async def resolve_local_source(
    document: SourceDocument, entity_store: BaseEntityStore
) -> LocalSource:
    """Follow ``document``'s local-file link to a readable path.

    Returns SourceAbsent when the link is missing, the linked node is gone,
    the node has no path, or the file is no longer on disk.
    """
    if not document.local_file_id:
        return SourceAbsent(reason="document has no local file link")

    file_node = await entity_store.get_node(document.local_file_id)
    if file_node is None:
        return SourceAbsent(reason=f"local file node {document.local_file_id} not found")

    absolute_path = file_node.get("absolute_path")
    if not absolute_path:
        return SourceAbsent(
            reason=f"local file node {document.local_file_id} has no absolute_path"
        )

    path = Path(absolute_path)
    if not path.is_file():
        return SourceAbsent(reason=f"local file {path} does not exist")

    return SourcePresent(path=path)
