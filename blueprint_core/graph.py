"""
Graph Model - Indexed, read-only view over a Blueprint aggregate.

BlueprintGraph answers the structural queries the canvas and properties
panel need (lookup by id, connections touching a node, candidate targets).
It exposes no public mutation methods; the index maintenance hooks are
driven exclusively by MutationPipeline.
"""

from typing import Optional

from .errors import NotFoundError
from .models import Blueprint, BlueprintConnection, BlueprintNode


class BlueprintGraph:
    """
    Query interface over a single blueprint.

    Lookups by id are O(1) via index dictionaries. Dictionaries keep
    insertion order, which is the iteration order used everywhere.
    """

    def __init__(self, blueprint: Blueprint):
        self._blueprint = blueprint
        self._node_index: dict[str, BlueprintNode] = {}
        self._connection_index: dict[str, BlueprintConnection] = {}
        self._rebuild_indexes()

    # --- Index Management (MutationPipeline only) ---

    def _rebuild_indexes(self):
        """Rebuild all indexes from the current blueprint state."""
        self._node_index = {node.id: node for node in self._blueprint.nodes}
        self._connection_index = {conn.id: conn for conn in self._blueprint.connections}

    def _index_node(self, node: BlueprintNode):
        self._node_index[node.id] = node

    def _unindex_node(self, node_id: str):
        self._node_index.pop(node_id, None)

    def _index_connection(self, connection: BlueprintConnection):
        self._connection_index[connection.id] = connection

    def _unindex_connection(self, connection_id: str):
        self._connection_index.pop(connection_id, None)

    # --- Properties ---

    @property
    def blueprint(self) -> Blueprint:
        return self._blueprint

    @property
    def nodes(self) -> list[BlueprintNode]:
        return list(self._blueprint.nodes)

    @property
    def connections(self) -> list[BlueprintConnection]:
        return list(self._blueprint.connections)

    # --- Lookups ---

    def get_node(self, node_id: Optional[str]) -> Optional[BlueprintNode]:
        """Get a node by ID, or None."""
        if node_id is None:
            return None
        return self._node_index.get(node_id)

    def require_node(self, node_id: str) -> BlueprintNode:
        """Get a node by ID or raise NotFoundError."""
        node = self._node_index.get(node_id)
        if node is None:
            raise NotFoundError("node", node_id)
        return node

    def has_node(self, node_id: str) -> bool:
        return node_id in self._node_index

    def get_connection(self, connection_id: str) -> Optional[BlueprintConnection]:
        return self._connection_index.get(connection_id)

    def require_connection(self, connection_id: str) -> BlueprintConnection:
        """Get a connection by ID or raise NotFoundError."""
        connection = self._connection_index.get(connection_id)
        if connection is None:
            raise NotFoundError("connection", connection_id)
        return connection

    # --- Structural Queries ---

    def connections_of(self, node_id: str) -> list[BlueprintConnection]:
        """Connections with the node as source or target, in insertion order."""
        return [c for c in self._blueprint.connections if c.touches(node_id)]

    def outgoing(self, node_id: str) -> list[BlueprintConnection]:
        return [c for c in self._blueprint.connections if c.source_id == node_id]

    def incoming(self, node_id: str) -> list[BlueprintConnection]:
        return [c for c in self._blueprint.connections if c.target_id == node_id]

    def has_connection(self, source_id: str, target_id: str) -> bool:
        """Check whether a same-direction connection source -> target exists."""
        return any(
            c.source_id == source_id and c.target_id == target_id
            for c in self._blueprint.connections
        )

    def candidate_targets(self, node_id: str) -> list[BlueprintNode]:
        """
        Nodes the given node may still form a new connection to.

        Excludes the node itself and every node it already points at.
        Nodes that point at it remain candidates (the reverse edge is a
        distinct connection).
        """
        already_targeted = {c.target_id for c in self.outgoing(node_id)}
        return [
            node for node in self._blueprint.nodes
            if node.id != node_id and node.id not in already_targeted
        ]

    def resolve_endpoints(
        self, connection: BlueprintConnection
    ) -> Optional[tuple[BlueprintNode, BlueprintNode]]:
        """Return (source, target) nodes, or None if either is missing."""
        source = self._node_index.get(connection.source_id)
        target = self._node_index.get(connection.target_id)
        if source is None or target is None:
            return None
        return source, target
