"""
Blueprint analysis - Structure statistics and summarization.

Feeds the editor footer (totals and per-type counts) and the host
server's summary endpoint.
"""

from collections import defaultdict, deque
from dataclasses import dataclass, field

from .models import Blueprint


@dataclass
class ConnectedComponent:
    """A connected component in the blueprint graph."""
    node_ids: list[str] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.node_ids)


@dataclass
class NodeConnectionInfo:
    """Connection information for a single node."""
    node_id: str
    title: str
    incoming: int = 0   # Connections pointing to this node
    outgoing: int = 0   # Connections pointing from this node

    @property
    def total(self) -> int:
        return self.incoming + self.outgoing


@dataclass
class BlueprintSummary:
    """Complete summary of a blueprint's structure."""
    title: str
    version: int
    total_nodes: int
    total_connections: int
    nodes_by_type: dict[str, int]
    connections_by_type: dict[str, int]
    technologies_in_use: list[str]
    connected_components: int
    most_connected_nodes: list[NodeConnectionInfo]
    orphan_count: int

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "title": self.title,
            "version": self.version,
            "total_nodes": self.total_nodes,
            "total_connections": self.total_connections,
            "nodes_by_type": self.nodes_by_type,
            "connections_by_type": self.connections_by_type,
            "technologies_in_use": self.technologies_in_use,
            "connected_components": self.connected_components,
            "most_connected_nodes": [
                {
                    "id": n.node_id,
                    "title": n.title,
                    "connections": n.total,
                    "incoming": n.incoming,
                    "outgoing": n.outgoing
                }
                for n in self.most_connected_nodes
            ],
            "orphan_count": self.orphan_count
        }


def count_nodes_by_type(blueprint: Blueprint) -> dict[str, int]:
    """Node counts keyed by type value, in first-seen order."""
    counts: dict[str, int] = defaultdict(int)
    for node in blueprint.nodes:
        counts[node.type.value] += 1
    return dict(counts)


def find_connected_components(blueprint: Blueprint) -> list[ConnectedComponent]:
    """
    Find all connected components using BFS, treating connections as undirected.

    Connections with a missing endpoint are ignored.
    """
    node_ids = [n.id for n in blueprint.nodes]
    adjacency: dict[str, set[str]] = {nid: set() for nid in node_ids}

    for connection in blueprint.connections:
        if connection.source_id in adjacency and connection.target_id in adjacency:
            adjacency[connection.source_id].add(connection.target_id)
            adjacency[connection.target_id].add(connection.source_id)

    visited: set[str] = set()
    components: list[ConnectedComponent] = []

    for start in node_ids:
        if start in visited:
            continue
        component = ConnectedComponent()
        queue = deque([start])
        visited.add(start)
        while queue:
            current = queue.popleft()
            component.node_ids.append(current)
            for neighbor in adjacency[current]:
                if neighbor not in visited:
                    visited.add(neighbor)
                    queue.append(neighbor)
        components.append(component)

    return components


def calculate_node_connections(blueprint: Blueprint) -> dict[str, NodeConnectionInfo]:
    """Calculate incoming/outgoing counts for every node."""
    connections: dict[str, NodeConnectionInfo] = {
        node.id: NodeConnectionInfo(node_id=node.id, title=node.title)
        for node in blueprint.nodes
    }
    for connection in blueprint.connections:
        if connection.source_id in connections:
            connections[connection.source_id].outgoing += 1
        if connection.target_id in connections:
            connections[connection.target_id].incoming += 1
    return connections


def summarize_blueprint(blueprint: Blueprint, top_n: int = 5) -> BlueprintSummary:
    """
    Generate a comprehensive summary of a blueprint.

    Args:
        blueprint: The blueprint to summarize
        top_n: Number of top connected nodes to include

    Returns:
        BlueprintSummary object with all analysis results
    """
    connection_types: dict[str, int] = defaultdict(int)
    for connection in blueprint.connections:
        connection_types[connection.type.value] += 1

    technologies: set[str] = set()
    for node in blueprint.nodes:
        technologies.update(node.technologies)

    node_connections = calculate_node_connections(blueprint)
    ranked = sorted(node_connections.values(), key=lambda n: n.total, reverse=True)
    most_connected = [n for n in ranked[:top_n] if n.total > 0]
    orphan_count = sum(1 for n in node_connections.values() if n.total == 0)

    return BlueprintSummary(
        title=blueprint.title,
        version=blueprint.version,
        total_nodes=len(blueprint.nodes),
        total_connections=len(blueprint.connections),
        nodes_by_type=count_nodes_by_type(blueprint),
        connections_by_type=dict(connection_types),
        technologies_in_use=sorted(technologies),
        connected_components=len(find_connected_components(blueprint)),
        most_connected_nodes=most_connected,
        orphan_count=orphan_count
    )
