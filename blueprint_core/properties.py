"""
Properties Editor - Selection-driven editing of a single node.

The panel reads the current selection from the canvas InteractionState and
routes every edit through the MutationPipeline. Its own rules (trimmed
technology names, hiding the connection form when no target remains) are
panel affordances, not model invariants.
"""

from dataclasses import dataclass, field
import re
from typing import Optional

from .canvas import InteractionState
from .errors import NoSelectionError
from .graph import BlueprintGraph
from .models import (
    DEFAULT_NODE_HEIGHT,
    DEFAULT_NODE_WIDTH,
    BlueprintConnection,
    BlueprintNode,
    ConnectionType,
    NodeType,
    Position,
    Size,
)
from .palette import CONNECTION_TYPE_CONFIG, suggest_technologies
from .pipeline import MutationPipeline

OUTGOING_ARROW = "→"
INCOMING_ARROW = "←"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

# Fallbacks for numeric inputs that do not parse
NUMERIC_FALLBACKS = {
    "x": 0,
    "y": 0,
    "width": DEFAULT_NODE_WIDTH,
    "height": DEFAULT_NODE_HEIGHT,
}


def parse_int_input(text: str, fallback: int) -> int:
    """Parse the leading integer of a numeric text field ("12.7px" -> 12)."""
    match = _LEADING_INT.match(str(text))
    if match is None:
        return fallback
    value = int(match.group(1))
    return value if value != 0 or fallback == 0 else fallback


@dataclass
class ConnectionListing:
    """One row of the node's connection list."""
    id: str
    outgoing: bool
    other_node_id: str
    other_title: str
    type: ConnectionType
    type_label: str
    color: str
    label: Optional[str] = None

    @property
    def arrow(self) -> str:
        return OUTGOING_ARROW if self.outgoing else INCOMING_ARROW

    @property
    def caption(self) -> str:
        return f"{self.arrow} {self.other_title}"


def list_connections(graph: BlueprintGraph, node_id: str) -> list[ConnectionListing]:
    """Connections touching node_id in insertion order, seen from that node."""
    listings = []
    for connection in graph.connections_of(node_id):
        outgoing = connection.source_id == node_id
        other_id = connection.target_id if outgoing else connection.source_id
        other = graph.get_node(other_id)
        config = CONNECTION_TYPE_CONFIG[connection.type]
        listings.append(ConnectionListing(
            id=connection.id,
            outgoing=outgoing,
            other_node_id=other_id,
            other_title=other.title if other is not None else "Unknown",
            type=connection.type,
            type_label=config.label,
            color=config.color,
            label=connection.label,
        ))
    return listings


@dataclass
class PropertiesView:
    node: BlueprintNode
    suggestions: list[str]
    connections: list[ConnectionListing]
    candidate_targets: list[BlueprintNode] = field(default_factory=list)

    @property
    def show_connection_form(self) -> bool:
        """The add-connection form is hidden, not just disabled, when nothing is left to connect."""
        return bool(self.candidate_targets)


class PropertiesEditor:
    """Edits the node currently selected on the canvas."""

    def __init__(
        self,
        pipeline: MutationPipeline,
        state: InteractionState,
        *,
        suggestion_limit: int = 6,
    ):
        self._pipeline = pipeline
        self._state = state
        self._suggestion_limit = suggestion_limit

    @property
    def selected_node(self) -> Optional[BlueprintNode]:
        return self._pipeline.graph.get_node(self._state.selected_node_id)

    def _require_selection(self) -> BlueprintNode:
        node = self.selected_node
        if node is None:
            raise NoSelectionError()
        return node

    def view(self) -> Optional[PropertiesView]:
        """Everything the panel renders, or None when nothing is selected."""
        node = self.selected_node
        if node is None:
            return None
        return PropertiesView(
            node=node,
            suggestions=self.suggested_technologies(),
            connections=self.connections(),
            candidate_targets=self.candidate_targets(),
        )

    # --- Scalar Fields ---

    def update(self, **fields) -> BlueprintNode:
        node = self._require_selection()
        return self._pipeline.update_node(node.id, **fields)

    def set_title(self, title: str) -> BlueprintNode:
        return self.update(title=title)

    def set_type(self, node_type: NodeType | str) -> BlueprintNode:
        return self.update(type=node_type)

    def set_description(self, description: str) -> BlueprintNode:
        return self.update(description=description)

    def set_position(self, x: Optional[float] = None, y: Optional[float] = None) -> BlueprintNode:
        """Replace the position; an omitted axis keeps its current value."""
        node = self._require_selection()
        position = Position(
            x=node.position.x if x is None else x,
            y=node.position.y if y is None else y,
        )
        return self._pipeline.update_node(node.id, position=position)

    def set_size(self, width: Optional[float] = None, height: Optional[float] = None) -> BlueprintNode:
        node = self._require_selection()
        size = Size(
            width=node.size.width if width is None else width,
            height=node.size.height if height is None else height,
        )
        return self._pipeline.update_node(node.id, size=size)

    def set_numeric_text(self, name: str, text: str) -> BlueprintNode:
        """Apply raw text from one of the x/y/width/height inputs."""
        if name not in NUMERIC_FALLBACKS:
            raise ValueError(f"Unknown numeric field: {name}")
        value = parse_int_input(text, NUMERIC_FALLBACKS[name])
        if name in ("x", "y"):
            return self.set_position(**{name: value})
        return self.set_size(**{name: value})

    # --- Technologies ---

    def add_technology(self, text: str) -> bool:
        """Append a trimmed, non-empty, not-yet-present technology. Returns True if added."""
        node = self._require_selection()
        tech = text.strip()
        if not tech or tech in node.technologies:
            return False
        self._pipeline.update_node(node.id, technologies=[*node.technologies, tech])
        return True

    def remove_technology(self, tech: str) -> bool:
        node = self._require_selection()
        if tech not in node.technologies:
            return False
        self._pipeline.update_node(
            node.id, technologies=[t for t in node.technologies if t != tech]
        )
        return True

    def suggested_technologies(self) -> list[str]:
        """Type-indexed suggestions minus what the node already lists, capped for display."""
        node = self._require_selection()
        return suggest_technologies(node.type, node.technologies, self._suggestion_limit)

    # --- Connections ---

    def candidate_targets(self) -> list[BlueprintNode]:
        node = self._require_selection()
        return self._pipeline.graph.candidate_targets(node.id)

    def connections(self) -> list[ConnectionListing]:
        node = self._require_selection()
        return list_connections(self._pipeline.graph, node.id)

    def add_connection(
        self,
        target_id: str,
        type: ConnectionType | str = ConnectionType.API,
        label: str = "",
    ) -> Optional[BlueprintConnection]:
        """Connect the selected node to target_id. An empty target is ignored."""
        node = self._require_selection()
        if not target_id:
            return None
        label = label.strip() if label else ""
        return self._pipeline.add_connection(
            source_id=node.id,
            target_id=target_id,
            type=type,
            label=label or None,
        )

    def delete_connection(self, connection_id: str):
        self._pipeline.delete_connection(connection_id)
