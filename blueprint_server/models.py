"""
Request models for the blueprint host API.

Update requests carry only the fields the client sent; handlers forward
them with exclude_unset so absent fields are left untouched.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from blueprint_core import ConnectionType, NodeType, Position, Size


class CreateNodeRequest(BaseModel):
    """Request to create a new node. Omitted title becomes "New <TypeLabel>"."""
    type: NodeType = NodeType.COMPONENT
    title: Optional[str] = None
    description: Optional[str] = None
    position: Optional[Position] = None
    size: Optional[Size] = None
    color: Optional[str] = None
    technologies: list[str] = Field(default_factory=list)


class UpdateNodeRequest(BaseModel):
    """Request to update an existing node (partial update)."""
    type: Optional[NodeType] = None
    title: Optional[str] = None
    description: Optional[str] = None
    position: Optional[Position] = None  # Full replacement
    size: Optional[Size] = None          # Full replacement
    color: Optional[str] = None
    technologies: Optional[list[str]] = None


class CreateConnectionRequest(BaseModel):
    """Request to create a new connection."""
    model_config = ConfigDict(populate_by_name=True)

    source_id: str = Field(alias="sourceId")
    target_id: str = Field(alias="targetId")
    type: ConnectionType = ConnectionType.API
    label: Optional[str] = None


class BlueprintInfoRequest(BaseModel):
    """Request to update blueprint metadata."""
    title: Optional[str] = None
    description: Optional[str] = None


class OpenBlueprintRequest(BaseModel):
    file_path: str


class SaveBlueprintRequest(BaseModel):
    file_path: Optional[str] = None


class GenerateBlueprintRequest(BaseModel):
    description: str
    title: Optional[str] = None


class SelectionRequest(BaseModel):
    node_id: Optional[str] = None


class PaletteDropRequest(BaseModel):
    """A palette item of `type` dropped on the canvas at (x, y)."""
    type: NodeType
    x: float
    y: float
