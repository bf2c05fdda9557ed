"""
Blueprint Core - Graph model, mutation pipeline, canvas interaction,
properties editing and export for architecture blueprints.

This package is the single source of truth for blueprint logic; the host
server and CLI only wire it to HTTP, files and the terminal.
"""

from .models import (
    # Enums
    NodeType,
    ConnectionType,
    # Core models
    Position,
    Size,
    BlueprintNode,
    BlueprintConnection,
    Blueprint,
    new_blueprint,
    default_title,
)
from .errors import (
    BlueprintError,
    NotFoundError,
    InvalidReferenceError,
    ConnectionRejectedError,
    InvalidFieldError,
    NoSelectionError,
    MalformedBlueprintError,
)
from .config import ConnectionPolicy, Settings, get_settings
from .graph import BlueprintGraph
from .pipeline import MutationPipeline
from .canvas import (
    CanvasInteractionEngine,
    InteractionState,
    PointerEvents,
    DragGuard,
    Point,
    CanvasScene,
)
from .properties import PropertiesEditor, PropertiesView, ConnectionListing
from .editor import BlueprintEditor, HostCallbacks, EditorStats
from .export import (
    encode_blueprint,
    dumps_blueprint,
    decode_blueprint,
    render_report,
    report_filename,
)
from .validation import validate_blueprint, validation_summary, ValidationIssue, IssueSeverity
from .analysis import summarize_blueprint, find_connected_components
from .generation import starter_blueprint

__all__ = [
    # Enums
    "NodeType",
    "ConnectionType",
    "ConnectionPolicy",
    # Models
    "Position",
    "Size",
    "BlueprintNode",
    "BlueprintConnection",
    "Blueprint",
    "new_blueprint",
    "default_title",
    # Errors
    "BlueprintError",
    "NotFoundError",
    "InvalidReferenceError",
    "ConnectionRejectedError",
    "InvalidFieldError",
    "NoSelectionError",
    "MalformedBlueprintError",
    # Config
    "Settings",
    "get_settings",
    # Graph and pipeline
    "BlueprintGraph",
    "MutationPipeline",
    # Canvas
    "CanvasInteractionEngine",
    "InteractionState",
    "PointerEvents",
    "DragGuard",
    "Point",
    "CanvasScene",
    # Properties
    "PropertiesEditor",
    "PropertiesView",
    "ConnectionListing",
    # Editor
    "BlueprintEditor",
    "HostCallbacks",
    "EditorStats",
    # Export
    "encode_blueprint",
    "dumps_blueprint",
    "decode_blueprint",
    "render_report",
    "report_filename",
    # Validation
    "validate_blueprint",
    "validation_summary",
    "ValidationIssue",
    "IssueSeverity",
    # Analysis
    "summarize_blueprint",
    "find_connected_components",
    # Generation
    "starter_blueprint",
]
