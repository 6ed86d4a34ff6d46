# src/graph/networkx_store.py - v1
"""In-process entity store backed by a NetworkX DiGraph.

The graph is persisted as NetworkX node-link JSON. Every node records the
build pass in which it was last created or touched; ``collect_garbage``
drops owned nodes that were not seen during the current pass.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import networkx as nx

from docthumb.graph.base_entity_store import (
    BaseEntityStore,
    EntityStoreError,
    NodeNotFoundError,
)

logger = logging.getLogger(__name__)

_GRAPH_FORMAT_VERSION = 1


class NetworkxEntityStore(BaseEntityStore):
    """Entity store over ``nx.DiGraph``.

    Node attributes hold the node dict minus its ``id``. A field whose value
    is the id of another node is mirrored as an edge labelled with the field
    name, so the content graph can be traversed and exported.
    """

    def __init__(self, graph: nx.DiGraph | None = None, build_pass: int = 0) -> None:
        self._graph = graph if graph is not None else nx.DiGraph()
        self._pass = build_pass

    @property
    def provider_name(self) -> str:
        return "networkx"

    @property
    def graph(self) -> nx.DiGraph:
        return self._graph

    @property
    def build_pass(self) -> int:
        return self._pass

    # --- Persistence ---

    @classmethod
    def load(cls, path: Path | str) -> NetworkxEntityStore:
        """Load a graph file. A missing file yields an empty store."""
        path = Path(path).expanduser()
        if not path.exists():
            logger.info("Graph file %s not found, starting with an empty graph", path)
            return cls()
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            graph = nx.node_link_graph(
                data.get("graph_data", data), directed=True, edges="links"
            )
        except (OSError, json.JSONDecodeError, nx.NetworkXError, KeyError) as e:
            raise EntityStoreError(f"Cannot load graph from {path}: {e}") from e
        store = cls(nx.DiGraph(graph), build_pass=int(data.get("build_pass", 0)))
        logger.debug(
            "Loaded graph %s: %d nodes, %d edges",
            path, store._graph.number_of_nodes(), store._graph.number_of_edges(),
        )
        return store

    def save(self, path: Path | str) -> Path:
        """Write the graph atomically as node-link JSON."""
        path = Path(path).expanduser()
        payload = {
            "format_version": _GRAPH_FORMAT_VERSION,
            "build_pass": self._pass,
            "graph_data": nx.node_link_data(self._graph, edges="links"),
        }
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(payload, fh, ensure_ascii=False, indent=2, default=str)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise EntityStoreError(f"Cannot save graph to {path}: {e}") from e
        return path

    # --- Build pass lifecycle ---

    def begin_pass(self) -> int:
        """Start a new build pass; nodes must be created or touched to survive it."""
        self._pass += 1
        return self._pass

    def collect_garbage(self, owner: str) -> list[dict[str, Any]]:
        """Delete nodes owned by ``owner`` that were not seen this pass.

        Returns the removed nodes so the caller can release what they point at.
        """
        stale = [
            self._as_node(node_id, attrs)
            for node_id, attrs in self._graph.nodes(data=True)
            if attrs.get("internal", {}).get("owner") == owner
            and attrs.get("internal", {}).get("last_seen_pass", -1) < self._pass
        ]
        self._graph.remove_nodes_from([node["id"] for node in stale])
        if stale:
            logger.info("Garbage-collected %d stale %s node(s)", len(stale), owner)
        return stale

    # --- BaseEntityStore ---

    async def get_nodes_by_type(self, node_type: str) -> list[dict[str, Any]]:
        return [
            self._as_node(node_id, attrs)
            for node_id, attrs in self._graph.nodes(data=True)
            if attrs.get("internal", {}).get("type") == node_type
        ]

    async def get_node(self, node_id: str) -> dict[str, Any] | None:
        if node_id not in self._graph:
            return None
        return self._as_node(node_id, self._graph.nodes[node_id])

    async def create_node(
        self,
        node_id: str,
        node_type: str,
        properties: dict[str, Any],
        owner: str | None = None,
    ) -> dict[str, Any]:
        attrs = copy.deepcopy(properties)
        attrs.pop("id", None)
        attrs["internal"] = {
            **attrs.get("internal", {}),
            "type": node_type,
            "owner": owner,
            "last_seen_pass": self._pass,
        }
        attrs.setdefault("fields", {})
        if node_id in self._graph:
            self._graph.remove_edges_from(list(self._graph.out_edges(node_id)))
        self._graph.add_node(node_id)
        self._graph.nodes[node_id].clear()
        self._graph.nodes[node_id].update(attrs)
        for name, value in attrs["fields"].items():
            self._link(node_id, name, value)
        return self._as_node(node_id, attrs)

    async def create_field(self, node_id: str, name: str, value: Any) -> None:
        if node_id not in self._graph:
            raise NodeNotFoundError(f"Unknown node: {node_id}")
        attrs = self._graph.nodes[node_id]
        fields = attrs.setdefault("fields", {})
        fields[name] = value
        stale_edges = [
            (u, v) for u, v, label in self._graph.out_edges(node_id, data="field")
            if label == name
        ]
        self._graph.remove_edges_from(stale_edges)
        self._link(node_id, name, value)

    async def touch(self, node_id: str) -> None:
        if node_id in self._graph:
            self._graph.nodes[node_id].setdefault("internal", {})["last_seen_pass"] = self._pass

    async def delete_node(self, node_id: str) -> None:
        if node_id in self._graph:
            self._graph.remove_node(node_id)

    # --- Helpers ---

    def _link(self, node_id: str, name: str, value: Any) -> None:
        if isinstance(value, str) and value != node_id and value in self._graph:
            self._graph.add_edge(node_id, value, field=name)

    @staticmethod
    def _as_node(node_id: str, attrs: dict[str, Any]) -> dict[str, Any]:
        node = copy.deepcopy(dict(attrs))
        node["id"] = node_id
        return node
