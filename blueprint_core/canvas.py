"""
Canvas Interaction Engine - Pointer gestures to pipeline calls.

This module implements:
- The per-pointer-sequence drag state machine (Idle -> Dragging -> Idle)
- Palette drag-and-drop node creation
- Selection tracking with an on_node_select host callback
- Inline title editing (commit on Enter/blur, revert on Escape)
- Scene rendering: node boxes and center-to-center connection segments

All transient state lives in an explicit InteractionState, never in the
Blueprint. Drag listeners are held by a DragGuard that detaches them on
release, on cancel, and when a move handler raises.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional

from .logging_config import get_logger
from .models import (
    DEFAULT_NODE_HEIGHT,
    DEFAULT_NODE_WIDTH,
    BlueprintNode,
    NodeType,
    Position,
    default_size,
)
from .palette import NODE_TYPE_CONFIG
from .pipeline import MutationPipeline

logger = get_logger(__name__)

POINTER_MOVE = "move"
POINTER_UP = "up"

EMPTY_CANVAS_MESSAGE = "Drag components from the palette to start designing"
EMPTY_READ_ONLY_MESSAGE = "No components in this blueprint yet"


@dataclass(frozen=True)
class Point:
    """A pointer position in canvas space."""
    x: float
    y: float

    @classmethod
    def of(cls, value: "Point | Position | tuple[float, float]") -> "Point":
        if isinstance(value, Point):
            return value
        if isinstance(value, Position):
            return cls(value.x, value.y)
        x, y = value
        return cls(x, y)

    def __sub__(self, other: "Point | Position") -> "Point":
        other = Point.of(other)
        return Point(self.x - other.x, self.y - other.y)

    def to_position(self) -> Position:
        return Position(x=self.x, y=self.y)


# Drops land with the default-sized node centered under the pointer
CENTERING_OFFSET = Point(DEFAULT_NODE_WIDTH / 2, DEFAULT_NODE_HEIGHT / 2)


class PointerEvents:
    """
    Document-level pointer event source.

    The host forwards raw pointer-move/pointer-up events here; handlers
    are only registered while a drag is in progress.
    """

    def __init__(self):
        self._handlers: dict[str, list[Callable[[Point], None]]] = {
            POINTER_MOVE: [],
            POINTER_UP: [],
        }

    def subscribe(self, kind: str, handler: Callable[[Point], None]) -> Callable[[], None]:
        """Register a handler and return a function that removes it."""
        handlers = self._handlers[kind]
        handlers.append(handler)

        def unsubscribe():
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def emit(self, kind: str, point: Point):
        # Copy: an "up" handler detaches itself while we iterate
        for handler in list(self._handlers[kind]):
            handler(point)

    def listener_count(self, kind: Optional[str] = None) -> int:
        if kind is not None:
            return len(self._handlers[kind])
        return sum(len(h) for h in self._handlers.values())


class DragGuard:
    """
    Scoped ownership of the move/up listeners for one drag.

    Listeners are attached on construction and detached by release(),
    which is idempotent. Usable as a context manager.
    """

    def __init__(
        self,
        events: PointerEvents,
        on_move: Callable[[Point], None],
        on_up: Callable[[Point], None],
    ):
        self._unsubscribers = [
            events.subscribe(POINTER_MOVE, on_move),
            events.subscribe(POINTER_UP, on_up),
        ]

    @property
    def active(self) -> bool:
        return bool(self._unsubscribers)

    def release(self):
        while self._unsubscribers:
            self._unsubscribers.pop()()

    def __enter__(self) -> "DragGuard":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False


@dataclass
class DragState:
    """An in-progress drag: which node, and where the pointer grabbed it."""
    node_id: str
    offset: Point


@dataclass
class TitleEdit:
    """Local text buffer for an inline title edit."""
    node_id: str
    buffer: str


@dataclass
class InteractionState:
    """Transient, never-persisted canvas state."""
    selected_node_id: Optional[str] = None
    drag: Optional[DragState] = None
    pending_palette_type: Optional[NodeType] = None
    title_edit: Optional[TitleEdit] = None


# --- Scene (render output) ---

@dataclass
class NodeView:
    id: str
    type: NodeType
    title: str
    description: Optional[str]
    x: float
    y: float
    width: float
    height: float
    color: str
    icon: str
    selected: bool = False
    dragging: bool = False
    editing_title: Optional[str] = None  # Buffer text while being renamed
    technologies: list[str] = field(default_factory=list)
    hidden_technology_count: int = 0


@dataclass
class ConnectionView:
    """A directed segment from source center to target center (arrowhead at end)."""
    id: str
    type: str
    source_id: str
    target_id: str
    start: Point
    end: Point
    label: Optional[str] = None
    label_position: Optional[Point] = None


@dataclass
class CanvasScene:
    nodes: list[NodeView]
    connections: list[ConnectionView]
    empty_message: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.nodes


class CanvasInteractionEngine:
    """
    Translates canvas gestures into MutationPipeline calls.

    The engine reconciles its transient state after every pipeline change,
    so a node deleted elsewhere (properties panel, host server) drops out
    of the selection, the drag and the title edit automatically.
    """

    def __init__(
        self,
        pipeline: MutationPipeline,
        state: Optional[InteractionState] = None,
        *,
        events: Optional[PointerEvents] = None,
        on_node_select: Optional[Callable[[Optional[BlueprintNode]], None]] = None,
        read_only: bool = False,
        technology_limit: int = 3,
    ):
        self._pipeline = pipeline
        self._state = state if state is not None else InteractionState()
        self._events = events if events is not None else PointerEvents()
        self._on_node_select = on_node_select
        self._read_only = read_only
        self._technology_limit = technology_limit
        self._drag_guard: Optional[DragGuard] = None
        pipeline.on_change(lambda _blueprint: self._reconcile())

    # --- Properties ---

    @property
    def state(self) -> InteractionState:
        return self._state

    @property
    def events(self) -> PointerEvents:
        return self._events

    @property
    def read_only(self) -> bool:
        return self._read_only

    @property
    def is_dragging(self) -> bool:
        return self._state.drag is not None

    @property
    def selected_node(self) -> Optional[BlueprintNode]:
        return self._pipeline.graph.get_node(self._state.selected_node_id)

    # --- Selection ---

    def select(self, node_id: Optional[str]):
        """Change the selection, firing on_node_select only when it changes."""
        node = None
        if node_id is not None:
            node = self._pipeline.graph.require_node(node_id)
        if node_id == self._state.selected_node_id:
            return
        self._state.selected_node_id = node_id
        if self._on_node_select is not None:
            self._on_node_select(node)

    def click_canvas(self):
        """A click on empty canvas area clears the selection."""
        self.select(None)

    # --- Dragging ---

    def pointer_down(self, node_id: str, point: "Point | tuple[float, float]") -> bool:
        """Start dragging a node. Returns False when the gesture is ignored."""
        if self._read_only:
            return False
        edit = self._state.title_edit
        if edit is not None and edit.node_id == node_id:
            return False

        node = self._pipeline.graph.require_node(node_id)
        self._end_drag()

        self._state.drag = DragState(node_id=node_id, offset=Point.of(point) - node.position)
        self._drag_guard = DragGuard(self._events, self._on_drag_move, self._on_drag_end)
        self.select(node_id)
        return True

    def pointer_move(self, point: "Point | tuple[float, float]"):
        self._events.emit(POINTER_MOVE, Point.of(point))

    def pointer_up(self, point: "Point | tuple[float, float]"):
        self._events.emit(POINTER_UP, Point.of(point))

    def _on_drag_move(self, point: Point):
        drag = self._state.drag
        if drag is None:
            return
        try:
            self._pipeline.update_node(drag.node_id, position=(point - drag.offset).to_position())
        except Exception:
            self._end_drag()
            raise

    def _on_drag_end(self, point: Point):
        self._end_drag()

    def _end_drag(self):
        if self._drag_guard is not None:
            self._drag_guard.release()
            self._drag_guard = None
        self._state.drag = None

    # --- Palette ---

    def begin_palette_drag(self, node_type: NodeType | str):
        """Remember the palette type being dragged toward the canvas."""
        if self._read_only:
            return
        self._state.pending_palette_type = NodeType(node_type)

    def drop_on_canvas(self, point: "Point | tuple[float, float]") -> Optional[BlueprintNode]:
        """Create a node of the pending palette type centered at the drop point."""
        node_type = self._state.pending_palette_type
        if node_type is None or self._read_only:
            return None
        try:
            return self._pipeline.add_node(
                type=node_type,
                title=NODE_TYPE_CONFIG[node_type].default_title,
                position=(Point.of(point) - CENTERING_OFFSET).to_position(),
                size=default_size(),
                technologies=[],
            )
        finally:
            self._state.pending_palette_type = None

    # --- Node Deletion ---

    def delete_node(self, node_id: str) -> bool:
        """Delete a node through the pipeline; transient state follows via reconcile."""
        if self._read_only:
            return False
        self._pipeline.delete_node(node_id)
        return True

    # --- Inline Title Editing ---

    def start_title_edit(self, node_id: str) -> bool:
        if self._read_only:
            return False
        node = self._pipeline.graph.require_node(node_id)
        self._state.title_edit = TitleEdit(node_id=node_id, buffer=node.title)
        return True

    def set_title_buffer(self, text: str):
        if self._state.title_edit is not None:
            self._state.title_edit.buffer = text

    def commit_title_edit(self) -> Optional[BlueprintNode]:
        """Write the buffer to the node title (Enter or focus loss)."""
        edit = self._state.title_edit
        if edit is None:
            return None
        self._state.title_edit = None
        return self._pipeline.update_node(edit.node_id, title=edit.buffer)

    def cancel_title_edit(self) -> Optional[str]:
        """Discard the buffer. Returns the model's current title."""
        edit = self._state.title_edit
        if edit is None:
            return None
        self._state.title_edit = None
        node = self._pipeline.graph.get_node(edit.node_id)
        return node.title if node is not None else None

    def blur_title_edit(self) -> Optional[BlueprintNode]:
        return self.commit_title_edit()

    # --- Keyboard / Cancellation ---

    def handle_key(self, key: str):
        if key == "Enter":
            self.commit_title_edit()
        elif key == "Escape":
            if self._state.title_edit is not None:
                self.cancel_title_edit()
            else:
                self.cancel_interaction()

    def cancel_interaction(self):
        """End any drag and forget the pending palette type. Committed moves stay."""
        self._end_drag()
        self._state.pending_palette_type = None

    # --- Reconciliation ---

    def _reconcile(self):
        graph = self._pipeline.graph
        drag = self._state.drag
        if drag is not None and not graph.has_node(drag.node_id):
            self._end_drag()
        edit = self._state.title_edit
        if edit is not None and not graph.has_node(edit.node_id):
            self._state.title_edit = None
        selected = self._state.selected_node_id
        if selected is not None and not graph.has_node(selected):
            self.select(None)

    # --- Rendering ---

    def render(self) -> CanvasScene:
        graph = self._pipeline.graph
        state = self._state
        dragging_id = state.drag.node_id if state.drag else None
        edit = state.title_edit

        node_views = []
        for node in graph.nodes:
            config = NODE_TYPE_CONFIG[node.type]
            shown = node.technologies[:self._technology_limit]
            node_views.append(NodeView(
                id=node.id,
                type=node.type,
                title=node.title,
                description=node.description,
                x=node.position.x,
                y=node.position.y,
                width=node.size.width,
                height=node.size.height,
                color=node.color or config.color,
                icon=config.icon,
                selected=node.id == state.selected_node_id,
                dragging=node.id == dragging_id,
                editing_title=edit.buffer if edit and edit.node_id == node.id else None,
                technologies=shown,
                hidden_technology_count=len(node.technologies) - len(shown),
            ))

        connection_views = []
        for connection in graph.connections:
            endpoints = graph.resolve_endpoints(connection)
            if endpoints is None:
                logger.debug("skipping_dangling_connection", connection_id=connection.id)
                continue
            source, target = endpoints
            start = Point(*source.center())
            end = Point(*target.center())
            label_position = None
            if connection.label:
                label_position = Point((start.x + end.x) / 2, (start.y + end.y) / 2)
            connection_views.append(ConnectionView(
                id=connection.id,
                type=connection.type.value,
                source_id=source.id,
                target_id=target.id,
                start=start,
                end=end,
                label=connection.label,
                label_position=label_position,
            ))

        empty_message = None
        if not node_views:
            empty_message = EMPTY_READ_ONLY_MESSAGE if self._read_only else EMPTY_CANVAS_MESSAGE

        return CanvasScene(nodes=node_views, connections=connection_views, empty_message=empty_message)
