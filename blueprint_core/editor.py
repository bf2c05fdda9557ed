"""
Blueprint Editor - Wires the pipeline, canvas and properties panel together.

BlueprintEditor is what a host embeds: it owns one MutationPipeline, one
InteractionState shared by the canvas engine and the properties panel, and
the outbound host callbacks (save, export, generate, node selection).
Callbacks always receive a deep-copied snapshot, never the live aggregate.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from .analysis import count_nodes_by_type
from .canvas import CanvasInteractionEngine, InteractionState
from .config import Settings, get_settings
from .export import render_report
from .models import Blueprint, BlueprintNode, utcnow
from .pipeline import MutationPipeline
from .properties import PropertiesEditor

BlueprintCallback = Callable[[Blueprint], None]


@dataclass
class HostCallbacks:
    """Outbound collaborators supplied by the host application."""
    on_save: Optional[BlueprintCallback] = None
    on_export: Optional[BlueprintCallback] = None
    on_generate: Optional[BlueprintCallback] = None
    on_node_select: Optional[Callable[[Optional[BlueprintNode]], None]] = None


@dataclass
class EditorStats:
    """Footer statistics."""
    version: int
    updated_at: datetime
    total_nodes: int
    total_connections: int
    nodes_by_type: dict[str, int] = field(default_factory=dict)


class BlueprintEditor:
    """An editing session over a single blueprint."""

    def __init__(
        self,
        blueprint: Optional[Blueprint] = None,
        *,
        callbacks: Optional[HostCallbacks] = None,
        read_only: Optional[bool] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        settings = settings or get_settings()
        self._callbacks = callbacks or HostCallbacks()
        self._read_only = settings.read_only if read_only is None else read_only
        self._pipeline = MutationPipeline(
            blueprint, policy=settings.connection_policy, clock=clock
        )
        self._state = InteractionState()
        self._canvas = CanvasInteractionEngine(
            self._pipeline,
            self._state,
            on_node_select=self._callbacks.on_node_select,
            read_only=self._read_only,
            technology_limit=settings.canvas_technology_limit,
        )
        self._properties = PropertiesEditor(
            self._pipeline, self._state, suggestion_limit=settings.suggestion_limit
        )
        self.show_properties = True

    # --- Properties ---

    @property
    def pipeline(self) -> MutationPipeline:
        return self._pipeline

    @property
    def canvas(self) -> CanvasInteractionEngine:
        return self._canvas

    @property
    def properties(self) -> PropertiesEditor:
        return self._properties

    @property
    def state(self) -> InteractionState:
        return self._state

    @property
    def blueprint(self) -> Blueprint:
        return self._pipeline.blueprint

    @property
    def read_only(self) -> bool:
        return self._read_only

    @property
    def selected_node(self) -> Optional[BlueprintNode]:
        return self._canvas.selected_node

    # --- Metadata ---

    def rename(self, title: str):
        self._pipeline.rename_blueprint(title)

    def set_description(self, text: Optional[str]):
        self._pipeline.set_description(text)

    def toggle_properties(self) -> bool:
        self.show_properties = not self.show_properties
        return self.show_properties

    # --- Host Actions ---

    def save(self) -> bool:
        """Hand a snapshot to on_save. Returns False when saving is unavailable."""
        if self._read_only or self._callbacks.on_save is None:
            return False
        self._callbacks.on_save(self._pipeline.snapshot())
        return True

    def export(self) -> bool:
        """Hand a snapshot to on_export. Available in read-only mode too."""
        if self._callbacks.on_export is None:
            return False
        self._callbacks.on_export(self._pipeline.snapshot())
        return True

    def generate(self) -> bool:
        """Hand a snapshot to the code-generation collaborator."""
        if self._callbacks.on_generate is None:
            return False
        self._callbacks.on_generate(self._pipeline.snapshot())
        return True

    # --- Read Models ---

    def stats(self) -> EditorStats:
        blueprint = self._pipeline.blueprint
        return EditorStats(
            version=blueprint.version,
            updated_at=blueprint.updated_at,
            total_nodes=len(blueprint.nodes),
            total_connections=len(blueprint.connections),
            nodes_by_type=count_nodes_by_type(blueprint),
        )

    def report(self) -> str:
        return render_report(self._pipeline.blueprint)
