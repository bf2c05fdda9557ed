"""
Blueprint Session - The host side of one open blueprint.

This module implements:
- Single blueprint state management (one blueprint open at a time)
- The host callbacks the editor core calls out to: JSON persistence on
  save, Markdown report on export, hand-off record on generate
- Change callbacks for real-time sync (WebSocket broadcasts)

The editor core never touches the filesystem; everything durable happens
here, inside the callbacks it hands to BlueprintEditor.
"""

import json
from pathlib import Path
from typing import Any, Callable, Optional

from blueprint_core import (
    Blueprint,
    BlueprintEditor,
    HostCallbacks,
    NotFoundError,
    Settings,
    decode_blueprint,
    dumps_blueprint,
    get_settings,
    new_blueprint,
    render_report,
    report_filename,
    starter_blueprint,
)
from blueprint_core.logging_config import get_logger

logger = get_logger(__name__)


class BlueprintSession:
    """
    Manages the open blueprint's editor, file location and dirty flag.

    Features:
    - Save writes the structured export to a JSON file
    - Export renders the Markdown report (optionally written to disk)
    - Generate records the snapshot handed to the code-generation step
    - Change callbacks fire after every mutation and every load
    """

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings or get_settings()
        self._editor: Optional[BlueprintEditor] = None
        self._file_path: Optional[Path] = None
        self._dirty = False
        self._on_change_callbacks: list[Callable[[], None]] = []

        # Set only while editor.save()/export() run, read by the callbacks
        self._save_target: Optional[Path] = None
        self._export_dir: Optional[Path] = None

        self.last_report: Optional[str] = None
        self.last_generation_request: Optional[Blueprint] = None

    # --- Properties ---

    @property
    def editor(self) -> Optional[BlueprintEditor]:
        return self._editor

    @property
    def file_path(self) -> Optional[Path]:
        return self._file_path

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    def require_editor(self) -> BlueprintEditor:
        """Get the open editor or raise NotFoundError."""
        if self._editor is None:
            raise NotFoundError("blueprint")
        return self._editor

    # --- Change Callbacks ---

    def on_change(self, callback: Callable[[], None]):
        """Register a callback for blueprint changes."""
        self._on_change_callbacks.append(callback)

    def _notify_change(self):
        for callback in self._on_change_callbacks:
            callback()

    def _on_mutation(self, blueprint: Blueprint):
        self._dirty = True
        self._notify_change()

    # --- Host Callbacks (called by the editor core) ---

    def _write_blueprint(self, snapshot: Blueprint):
        path = self._save_target or self._file_path
        if path is None:
            raise ValueError("No file path specified and no current file path")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dumps_blueprint(snapshot), encoding="utf-8")

    def _write_report(self, snapshot: Blueprint):
        self.last_report = render_report(snapshot)
        if self._export_dir is not None:
            self._export_dir.mkdir(parents=True, exist_ok=True)
            (self._export_dir / report_filename(snapshot)).write_text(
                self.last_report, encoding="utf-8"
            )

    def _record_generation(self, snapshot: Blueprint):
        self.last_generation_request = snapshot
        logger.info("generation_requested", blueprint_id=snapshot.id, version=snapshot.version)

    # --- Lifecycle ---

    def _attach(self, blueprint: Blueprint, file_path: Optional[Path] = None) -> BlueprintEditor:
        callbacks = HostCallbacks(
            on_save=self._write_blueprint,
            on_export=self._write_report,
            on_generate=self._record_generation,
        )
        self._editor = BlueprintEditor(blueprint, callbacks=callbacks, settings=self._settings)
        self._editor.pipeline.on_change(self._on_mutation)
        self._file_path = file_path
        self._dirty = False
        self.last_report = None
        self.last_generation_request = None
        self._notify_change()
        return self._editor

    def new_blueprint(self, title: str = "New Blueprint", description: Optional[str] = None) -> Blueprint:
        """Create a new empty blueprint."""
        editor = self._attach(new_blueprint(title=title, description=description))
        logger.info("blueprint_created", blueprint_id=editor.blueprint.id)
        return editor.blueprint

    def generate(self, description: str, title: Optional[str] = None) -> Blueprint:
        """Start a session from the starter architecture for a description."""
        editor = self._attach(starter_blueprint(description, title=title))
        logger.info("blueprint_generated", blueprint_id=editor.blueprint.id)
        return editor.blueprint

    def import_blueprint(self, data: str | bytes | dict) -> Blueprint:
        """Open a blueprint from structured-export data (not bound to a file)."""
        editor = self._attach(decode_blueprint(data))
        logger.info("blueprint_imported", blueprint_id=editor.blueprint.id)
        return editor.blueprint

    def open_blueprint(self, file_path: str | Path) -> Blueprint:
        """Open a blueprint from a JSON file."""
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Blueprint file not found: {path}")

        blueprint = decode_blueprint(path.read_text(encoding="utf-8"))
        editor = self._attach(blueprint, file_path=path)
        logger.info("blueprint_opened", blueprint_id=editor.blueprint.id, path=str(path))
        return editor.blueprint

    def close(self):
        self._editor = None
        self._file_path = None
        self._dirty = False
        self.last_report = None
        self.last_generation_request = None
        self._notify_change()

    def save_blueprint(self, file_path: Optional[str | Path] = None) -> Path:
        """
        Save the blueprint to a JSON file.

        If file_path is provided, save to that path (Save As).
        Otherwise, save to the current file_path.
        """
        editor = self.require_editor()

        if file_path:
            path = Path(file_path)
        elif self._file_path:
            path = self._file_path
        else:
            raise ValueError("No file path specified and no current file path")

        self._save_target = path
        try:
            saved = editor.save()
        finally:
            self._save_target = None
        if not saved:
            raise ValueError("Blueprint is read-only")

        self._file_path = path
        self._dirty = False
        self._notify_change()
        logger.info("blueprint_saved", blueprint_id=editor.blueprint.id, path=str(path))
        return path

    def export_report(self, directory: Optional[str | Path] = None) -> str:
        """Render the Markdown report, writing it into directory when given."""
        editor = self.require_editor()
        self._export_dir = Path(directory) if directory else None
        try:
            editor.export()
        finally:
            self._export_dir = None
        return self.last_report or ""

    def request_generation(self) -> Blueprint:
        editor = self.require_editor()
        editor.generate()
        return self.last_generation_request

    # --- State ---

    def get_state(self) -> dict[str, Any]:
        """Get the full current state for API responses."""
        if self._editor is None:
            return {
                "blueprint": None,
                "file_path": None,
                "is_dirty": False,
                "selected_node_id": None,
                "read_only": self._settings.read_only,
            }

        return {
            "blueprint": self._editor.blueprint.to_json_dict(),
            "file_path": str(self._file_path) if self._file_path else None,
            "is_dirty": self._dirty,
            "selected_node_id": self._editor.state.selected_node_id,
            "read_only": self._editor.read_only,
        }


def list_blueprint_files(directory: Path) -> list[dict[str, Any]]:
    """List blueprint JSON files in a directory with basic counts."""
    if not directory.exists():
        return []

    blueprints = []
    for f in sorted(directory.glob("*.json")):
        try:
            data = json.loads(f.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("unreadable_blueprint_file", path=str(f), error=str(e))
            continue
        if not isinstance(data, dict):
            continue
        blueprints.append({
            "path": str(f),
            "title": data.get("title", f.stem),
            "nodes": len(data.get("nodes", [])),
            "connections": len(data.get("connections", [])),
            "version": data.get("version"),
        })
    return blueprints


# Global instance for the application
session = BlueprintSession()
