"""
Export/Serialization - Pure transforms of a Blueprint snapshot.

- Structured export: lossless JSON (decode(encode(b)) == b), camelCase
  field names matching previously exported data
- Report export: one-way Markdown summary for humans
"""

import json
import re
from typing import Any

from pydantic import ValidationError

from .errors import MalformedBlueprintError
from .models import Blueprint
from .validation import errors_only, validate_blueprint

# (export name, python name) pairs that must be present on input
_REQUIRED_BLUEPRINT_FIELDS = [
    ("id", "id"),
    ("title", "title"),
    ("nodes", "nodes"),
    ("connections", "connections"),
    ("createdAt", "created_at"),
    ("updatedAt", "updated_at"),
    ("version", "version"),
]
_REQUIRED_NODE_FIELDS = [
    ("id", "id"),
    ("type", "type"),
    ("title", "title"),
    ("position", "position"),
    ("size", "size"),
]
_REQUIRED_CONNECTION_FIELDS = [
    ("id", "id"),
    ("sourceId", "source_id"),
    ("targetId", "target_id"),
    ("type", "type"),
]


# --- Structured Export ---

def encode_blueprint(blueprint: Blueprint) -> dict:
    """Encode a blueprint as a JSON-compatible dict. Optional empty fields are omitted."""
    return blueprint.to_json_dict()


def dumps_blueprint(blueprint: Blueprint, indent: int | None = 2) -> str:
    """Encode a blueprint as a JSON string."""
    return json.dumps(encode_blueprint(blueprint), indent=indent, ensure_ascii=False)


def _missing_fields(item: Any, required: list[tuple[str, str]], where: str) -> list[str]:
    if not isinstance(item, dict):
        return [f"{where}: expected an object"]
    return [
        f"{where}: missing field '{export_name}'"
        for export_name, python_name in required
        if export_name not in item and python_name not in item
    ]


def decode_blueprint(data: str | bytes | dict) -> Blueprint:
    """
    Decode the structured export format.

    Raises MalformedBlueprintError when required fields are missing, values
    have the wrong shape, or the graph is structurally invalid (duplicate
    ids, connections to missing nodes). Never returns a partial blueprint.
    """
    if isinstance(data, (str, bytes, bytearray)):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise MalformedBlueprintError(f"Invalid JSON: {e}") from e

    problems = _missing_fields(data, _REQUIRED_BLUEPRINT_FIELDS, "blueprint")
    if problems:
        raise MalformedBlueprintError("Malformed blueprint", problems)

    if isinstance(data["nodes"], list):
        for index, node in enumerate(data["nodes"]):
            problems.extend(_missing_fields(node, _REQUIRED_NODE_FIELDS, f"nodes[{index}]"))
    if isinstance(data["connections"], list):
        for index, connection in enumerate(data["connections"]):
            problems.extend(
                _missing_fields(connection, _REQUIRED_CONNECTION_FIELDS, f"connections[{index}]")
            )
    if problems:
        raise MalformedBlueprintError("Malformed blueprint", problems)

    try:
        blueprint = Blueprint.model_validate(data)
    except ValidationError as e:
        messages = [
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in e.errors()
        ]
        raise MalformedBlueprintError("Malformed blueprint", messages) from e

    structural = errors_only(validate_blueprint(blueprint))
    if structural:
        raise MalformedBlueprintError("Invalid blueprint graph", [i.message for i in structural])

    return blueprint


# --- Report Export ---

def render_report(blueprint: Blueprint) -> str:
    """
    Render a human-readable Markdown report.

    The Connections section appears only when at least one connection
    exists. Ordering follows the blueprint's insertion order.
    """
    lines = [f"# {blueprint.title}", ""]

    if blueprint.description:
        lines += [blueprint.description, ""]

    lines += [f"## Components ({len(blueprint.nodes)})", ""]
    for node in blueprint.nodes:
        lines.append(f"### {node.title}")
        lines.append(f"- **Type**: {node.type.value}")
        if node.description:
            lines.append(f"- **Description**: {node.description}")
        if node.technologies:
            lines.append(f"- **Technologies**: {', '.join(node.technologies)}")
        lines.append("")

    if blueprint.connections:
        titles = {node.id: node.title for node in blueprint.nodes}
        lines += [f"## Connections ({len(blueprint.connections)})", ""]
        for connection in blueprint.connections:
            source = titles.get(connection.source_id, "Unknown")
            target = titles.get(connection.target_id, "Unknown")
            line = f"- **{source}** → **{target}** ({connection.type.value})"
            if connection.label:
                line += f" - {connection.label}"
            lines.append(line)
        lines.append("")

    return "\n".join(lines)


def report_filename(blueprint: Blueprint) -> str:
    """Download name for the report: lowercased title, whitespace runs become dashes."""
    slug = re.sub(r"\s+", "-", blueprint.title).lower()
    return f"{slug}.md"
