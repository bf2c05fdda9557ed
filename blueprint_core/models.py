"""
Core data models for blueprints.

These models define the canonical schema for a blueprint:
- Typed, positioned nodes describing architectural components
- Directed, typed connections between nodes
- The Blueprint aggregate carrying metadata, timestamps and a version counter

Field Naming Convention:
- Python attributes are snake_case (source_id, created_at)
- The structured export uses camelCase (sourceId, createdAt); both spellings
  are accepted on input
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


DEFAULT_NODE_WIDTH = 150
DEFAULT_NODE_HEIGHT = 100


class NodeType(str, Enum):
    """Logical types for nodes (drive icon, color and technology suggestions)."""
    FRONTEND = "frontend"
    BACKEND = "backend"
    DATABASE = "database"
    API = "api"
    SERVICE = "service"
    COMPONENT = "component"
    CUSTOM = "custom"

    @property
    def label(self) -> str:
        return _NODE_TYPE_LABELS[self]


_NODE_TYPE_LABELS = {
    NodeType.FRONTEND: "Frontend",
    NodeType.BACKEND: "Backend",
    NodeType.DATABASE: "Database",
    NodeType.API: "API",
    NodeType.SERVICE: "Service",
    NodeType.COMPONENT: "Component",
    NodeType.CUSTOM: "Custom",
}


class ConnectionType(str, Enum):
    """Presentation tags for connections. No semantics are enforced."""
    API = "api"
    DATA = "data"
    DEPENDENCY = "dependency"
    COMMUNICATION = "communication"


def generate_node_id() -> str:
    """Generate a unique node ID."""
    return f"n{uuid.uuid4().hex[:8]}"


def generate_connection_id() -> str:
    """Generate a unique connection ID."""
    return f"c{uuid.uuid4().hex[:8]}"


def generate_blueprint_id() -> str:
    """Generate a unique blueprint ID."""
    return f"bp-{uuid.uuid4().hex[:8]}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def default_title(node_type: NodeType | str) -> str:
    """Title given to a freshly created node of this type."""
    return f"New {NodeType(node_type).label}"


class Position(BaseModel):
    """A point in canvas space. Both axes are required so updates replace the whole point."""
    x: float
    y: float


class Size(BaseModel):
    """A node extent. Both dimensions are required for the same reason as Position."""
    width: float
    height: float


def default_size() -> Size:
    return Size(width=DEFAULT_NODE_WIDTH, height=DEFAULT_NODE_HEIGHT)


class BlueprintNode(BaseModel):
    """A component box on the canvas."""
    id: str = Field(default_factory=generate_node_id, frozen=True)
    type: NodeType = NodeType.COMPONENT
    title: str = ""
    description: Optional[str] = None
    position: Position = Field(default_factory=lambda: Position(x=100, y=100))
    size: Size = Field(default_factory=default_size)
    color: Optional[str] = None
    technologies: list[str] = Field(default_factory=list)
    # Legacy list of connected node ids; carried through exports unchanged
    connections: Optional[list[str]] = None
    properties: Optional[dict[str, Any]] = None

    @model_validator(mode="before")
    @classmethod
    def fill_default_title(cls, data: Any) -> Any:
        """Give untitled nodes the "New <TypeLabel>" title."""
        if isinstance(data, dict) and "title" not in data:
            data = dict(data)
            try:
                data["title"] = default_title(data.get("type", NodeType.COMPONENT))
            except ValueError:
                pass  # Unknown type; the field validator reports it
        return data

    @field_validator("technologies")
    @classmethod
    def reject_duplicate_technologies(cls, value: list[str]) -> list[str]:
        seen: set[str] = set()
        for tech in value:
            if tech in seen:
                raise ValueError(f"duplicate technology: {tech}")
            seen.add(tech)
        return value

    def center(self) -> tuple[float, float]:
        """Get the center point of the node."""
        return (
            self.position.x + self.size.width / 2,
            self.position.y + self.size.height / 2,
        )

    def bounds(self) -> tuple[float, float, float, float]:
        """Get the bounding box (x, y, right, bottom)."""
        return (
            self.position.x,
            self.position.y,
            self.position.x + self.size.width,
            self.position.y + self.size.height,
        )


class BlueprintConnection(BaseModel):
    """A directed connection from source node to target node."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=generate_connection_id, frozen=True)
    source_id: str = Field(alias="sourceId")
    target_id: str = Field(alias="targetId")
    type: ConnectionType = ConnectionType.API
    label: Optional[str] = None

    def touches(self, node_id: str) -> bool:
        return self.source_id == node_id or self.target_id == node_id


class Blueprint(BaseModel):
    """
    The aggregate root: nodes, connections and metadata.
    This is what hosts receive on save/export and what the structured export encodes.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=generate_blueprint_id)
    title: str = "New Blueprint"
    description: Optional[str] = None
    nodes: list[BlueprintNode] = Field(default_factory=list)
    connections: list[BlueprintConnection] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt", frozen=True)
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")
    version: int = Field(default=1, ge=1)

    def to_json_dict(self) -> dict:
        """Convert to a JSON-serializable dict using the export field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def get_node(self, node_id: str) -> Optional[BlueprintNode]:
        """Get a node by ID (O(n) - use BlueprintGraph for indexed access)."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_connection(self, connection_id: str) -> Optional[BlueprintConnection]:
        """Get a connection by ID (O(n) - use BlueprintGraph for indexed access)."""
        for connection in self.connections:
            if connection.id == connection_id:
                return connection
        return None


def new_blueprint(
    title: str = "New Blueprint",
    description: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Blueprint:
    """Create an empty version-1 blueprint whose timestamps agree."""
    now = now or utcnow()
    return Blueprint(
        title=title,
        description=description,
        created_at=now,
        updated_at=now,
    )
