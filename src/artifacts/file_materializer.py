# src/artifacts/file_materializer.py - v2
"""Write artifact bytes to disk and register them as File nodes.

Files are content-addressed under the artifact root::

    <root>/<digest[:2]>/<name>-<digest[:12]><extension>

The node id is derived from name and digest, so re-materializing identical
bytes replaces the same node instead of creating a duplicate. Files of
garbage-collected nodes are removed with ``delete_artifact``.
"""

from __future__ import annotations

import hashlib
import logging
import mimetypes
import uuid
from pathlib import Path
from typing import Any

from docthumb.artifacts.base_materializer import BaseArtifactMaterializer
from docthumb.core.models import ArtifactRef
from docthumb.graph.base_entity_store import BaseEntityStore

logger = logging.getLogger(__name__)

ARTIFACT_OWNER = "docthumb"
_NODE_ID_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "https://docthumb/artifact")


def thumbnail_name(file_name: str) -> str:
    """Artifact name for a document's thumbnail: dots become underscores."""
    return f"{file_name.replace('.', '_')}-thumbnail"


class FileArtifactMaterializer(BaseArtifactMaterializer):
    """Materialize artifacts as files plus entity store nodes."""

    def __init__(
        self,
        root: Path | str,
        entity_store: BaseEntityStore,
        node_type: str = "File",
        owner: str = ARTIFACT_OWNER,
    ) -> None:
        self._root = Path(root).expanduser()
        self._entity_store = entity_store
        self._node_type = node_type
        self._owner = owner

    @property
    def root(self) -> Path:
        return self._root

    async def create_artifact(
        self, content: bytes, name: str, extension: str = ".png"
    ) -> ArtifactRef | None:
        if not content:
            logger.warning("Refusing to materialize empty artifact %s", name)
            return None

        digest = hashlib.sha256(content).hexdigest()
        path = self._root / digest[:2] / f"{name}-{digest[:12]}{extension}"
        if not path.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(f"{extension}.part")
            tmp.write_bytes(content)
            tmp.replace(path)

        node_id = str(uuid.uuid5(_NODE_ID_NAMESPACE, f"{name}:{digest}"))
        media_type = mimetypes.types_map.get(extension, "application/octet-stream")
        await self._entity_store.create_node(
            node_id,
            self._node_type,
            {
                "name": name,
                "absolute_path": str(path.resolve()),
                "extension": extension,
                "media_type": media_type,
                "size_bytes": len(content),
                "content_digest": digest,
            },
            owner=self._owner,
        )
        logger.debug("Materialized %s (%d bytes) as %s", name, len(content), node_id)
        return node_id

    async def delete_artifact(self, node: dict[str, Any]) -> bool:
        """Unlink the file behind ``node`` if it lives under the artifact root."""
        absolute_path = node.get("absolute_path")
        if not absolute_path:
            return False

        path = Path(absolute_path).resolve()
        root = self._root.resolve()
        if not path.is_relative_to(root):
            logger.warning("Not deleting %s: outside artifact root %s", path, root)
            return False

        try:
            path.unlink(missing_ok=True)
            parent = path.parent
            if parent != root and parent.is_dir() and not any(parent.iterdir()):
                parent.rmdir()
        except OSError as e:
            logger.warning("Could not delete artifact file %s: %s", path, e)
            return False

        logger.debug("Deleted artifact file %s for %s", path.name, node.get("id"))
        return True
