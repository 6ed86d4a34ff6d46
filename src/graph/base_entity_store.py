# src/graph/base_entity_store.py - v2
"""Abstract entity store interface.

Nodes are dicts with at least ``id``, ``internal.type`` and ``fields``.
Stores return copies; callers mutate nodes only through ``create_field``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class EntityStoreError(Exception):
    """Raised when the entity store as a whole is unusable."""


class NodeNotFoundError(EntityStoreError, KeyError):
    """Raised when an operation targets a node that does not exist."""


class BaseEntityStore(ABC):
    """Unified interface for content graph backends."""

    @abstractmethod
    async def get_nodes_by_type(self, node_type: str) -> list[dict[str, Any]]:
        """Return all nodes of the given type."""

    @abstractmethod
    async def get_node(self, node_id: str) -> dict[str, Any] | None:
        """Retrieve a node by ID, or None."""

    @abstractmethod
    async def create_node(
        self,
        node_id: str,
        node_type: str,
        properties: dict[str, Any],
        owner: str | None = None,
    ) -> dict[str, Any]:
        """Insert or replace a node and return it."""

    @abstractmethod
    async def create_field(self, node_id: str, name: str, value: Any) -> None:
        """Add or overwrite a derived field on an existing node.

        Raises NodeNotFoundError when the node does not exist.
        """

    @abstractmethod
    async def touch(self, node_id: str) -> None:
        """Mark a node as still in use for the current build pass."""

    @abstractmethod
    async def delete_node(self, node_id: str) -> None:
        """Delete a node and its edges. Missing nodes are ignored."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier."""
