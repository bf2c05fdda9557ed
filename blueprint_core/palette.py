"""
Palette and presentation metadata.

Static, type-indexed tables the canvas and properties panel draw from:
icon/color per node type, labels per connection type, and technology
suggestions per node type.
"""

from dataclasses import dataclass

from .models import ConnectionType, NodeType, default_title


@dataclass(frozen=True)
class NodeTypeConfig:
    """How a node type is presented in the palette and on the canvas."""
    type: NodeType
    label: str
    icon: str
    color: str

    @property
    def default_title(self) -> str:
        return default_title(self.type)


@dataclass(frozen=True)
class ConnectionTypeConfig:
    type: ConnectionType
    label: str
    color: str


NODE_TYPE_CONFIG: dict[NodeType, NodeTypeConfig] = {
    NodeType.FRONTEND: NodeTypeConfig(NodeType.FRONTEND, "Frontend", "monitor", "#3b82f6"),
    NodeType.BACKEND: NodeTypeConfig(NodeType.BACKEND, "Backend", "server", "#22c55e"),
    NodeType.DATABASE: NodeTypeConfig(NodeType.DATABASE, "Database", "database", "#a855f7"),
    NodeType.API: NodeTypeConfig(NodeType.API, "API", "globe", "#f97316"),
    NodeType.SERVICE: NodeTypeConfig(NodeType.SERVICE, "Service", "cloud", "#06b6d4"),
    NodeType.COMPONENT: NodeTypeConfig(NodeType.COMPONENT, "Component", "package", "#eab308"),
    NodeType.CUSTOM: NodeTypeConfig(NodeType.CUSTOM, "Custom", "settings", "#6b7280"),
}

CONNECTION_TYPE_CONFIG: dict[ConnectionType, ConnectionTypeConfig] = {
    ConnectionType.API: ConnectionTypeConfig(ConnectionType.API, "API Call", "#3b82f6"),
    ConnectionType.DATA: ConnectionTypeConfig(ConnectionType.DATA, "Data Flow", "#22c55e"),
    ConnectionType.DEPENDENCY: ConnectionTypeConfig(ConnectionType.DEPENDENCY, "Dependency", "#f97316"),
    ConnectionType.COMMUNICATION: ConnectionTypeConfig(
        ConnectionType.COMMUNICATION, "Communication", "#a855f7"
    ),
}

COMMON_TECHNOLOGIES: dict[NodeType, list[str]] = {
    NodeType.FRONTEND: ["React", "Vue", "Angular", "Svelte", "Next.js", "Nuxt.js", "Vite", "TypeScript"],
    NodeType.BACKEND: ["Node.js", "Python", "Java", "Go", "Rust", "PHP", "Ruby", "Express", "FastAPI"],
    NodeType.DATABASE: ["PostgreSQL", "MongoDB", "Redis", "MySQL", "SQLite", "Firestore", "DynamoDB"],
    NodeType.API: ["REST", "GraphQL", "gRPC", "WebSocket", "OpenAPI", "Swagger"],
    NodeType.SERVICE: ["Docker", "Kubernetes", "AWS", "GCP", "Azure", "Vercel", "Netlify"],
    NodeType.COMPONENT: ["UI Library", "Chart.js", "D3.js", "Three.js", "Material-UI", "Tailwind"],
    NodeType.CUSTOM: [],
}


def palette_entries() -> list[NodeTypeConfig]:
    """Palette items in display order."""
    return [NODE_TYPE_CONFIG[t] for t in NodeType]


def suggest_technologies(node_type: NodeType, present: list[str], limit: int) -> list[str]:
    """Common technologies for node_type not already in present, capped at limit."""
    return [t for t in COMMON_TECHNOLOGIES[node_type] if t not in present][:limit]
