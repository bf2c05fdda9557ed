"""Tests for structured and report export."""

import json

import pytest

from blueprint_core import (
    MalformedBlueprintError,
    decode_blueprint,
    dumps_blueprint,
    encode_blueprint,
    new_blueprint,
    render_report,
    report_filename,
)


def _export(editor):
    return encode_blueprint(editor.blueprint)


# ============================================================================
# Structured Export
# ============================================================================

def test_decode_of_encode_is_identity(editor):
    blueprint = editor.blueprint
    editor.pipeline.update_node(blueprint.nodes[0].id, technologies=["React", "Vite"], color="#fff")

    assert decode_blueprint(encode_blueprint(blueprint)) == blueprint
    assert decode_blueprint(dumps_blueprint(blueprint)) == blueprint


def test_encode_field_names(editor):
    data = _export(editor)
    assert set(data) >= {"id", "title", "nodes", "connections", "createdAt", "updatedAt", "version"}
    node = data["nodes"][0]
    assert set(node) >= {"id", "type", "title", "position", "size"}
    connection = data["connections"][0]
    assert set(connection) == {"id", "sourceId", "targetId", "type", "label"}


def test_encode_preserves_order(editor):
    data = _export(editor)
    assert [n["title"] for n in data["nodes"]] == ["Web", "API", "DB"]


def test_legacy_node_fields_survive(editor):
    data = _export(editor)
    data["nodes"][0]["connections"] = [data["nodes"][1]["id"]]
    data["nodes"][0]["properties"] = {"owner": "web-team"}

    decoded = decode_blueprint(data)

    assert encode_blueprint(decoded) == data


def test_decode_accepts_bytes(editor):
    raw = dumps_blueprint(editor.blueprint).encode("utf-8")
    assert decode_blueprint(raw).id == editor.blueprint.id


def test_decode_rejects_invalid_json():
    with pytest.raises(MalformedBlueprintError):
        decode_blueprint("{not json")


def test_decode_rejects_non_object():
    with pytest.raises(MalformedBlueprintError):
        decode_blueprint("[1, 2, 3]")


def test_decode_reports_missing_fields(editor):
    data = _export(editor)
    del data["version"]
    del data["nodes"][0]["position"]
    del data["connections"][0]["sourceId"]

    with pytest.raises(MalformedBlueprintError) as exc_info:
        decode_blueprint(data)

    issues = exc_info.value.issues
    assert "blueprint: missing field 'version'" in issues


def test_decode_reports_nested_missing_fields(editor):
    data = _export(editor)
    del data["nodes"][0]["position"]
    del data["connections"][0]["sourceId"]

    with pytest.raises(MalformedBlueprintError) as exc_info:
        decode_blueprint(data)

    issues = exc_info.value.issues
    assert "nodes[0]: missing field 'position'" in issues
    assert "connections[0]: missing field 'sourceId'" in issues


def test_decode_rejects_ill_typed_values(editor):
    data = _export(editor)
    data["nodes"][0]["type"] = "mainframe"
    with pytest.raises(MalformedBlueprintError):
        decode_blueprint(data)


def test_decode_rejects_dangling_connection(editor):
    data = _export(editor)
    data["connections"][0]["targetId"] = "ghost"
    with pytest.raises(MalformedBlueprintError) as exc_info:
        decode_blueprint(data)
    assert any("ghost" in issue for issue in exc_info.value.issues)


def test_decode_rejects_duplicate_node_ids(editor):
    data = _export(editor)
    data["nodes"][1]["id"] = data["nodes"][0]["id"]
    with pytest.raises(MalformedBlueprintError):
        decode_blueprint(data)


# ============================================================================
# Report Export
# ============================================================================

def test_report_two_nodes_one_connection(pipeline):
    a = pipeline.add_node(type="frontend", title="A")
    b = pipeline.add_node(type="backend", title="B")
    pipeline.add_connection(a.id, b.id, type="api")

    report = render_report(pipeline.blueprint)

    assert "## Components (2)" in report
    assert "## Connections (1)" in report
    lines = [line for line in report.splitlines() if "→" in line]
    assert lines == ["- **A** → **B** (api)"]


def test_report_without_connections_omits_section(pipeline):
    pipeline.add_node(title="Solo")
    report = render_report(pipeline.blueprint)
    assert "## Components (1)" in report
    assert "Connections" not in report


def test_report_node_details(editor):
    editor.set_description("A small shop")
    node = editor.blueprint.nodes[0]
    editor.pipeline.update_node(node.id, description="SPA", technologies=["React", "Vite"])

    report = render_report(editor.blueprint)

    assert report.startswith("# Shop\n\nA small shop\n")
    assert "### Web\n- **Type**: frontend\n- **Description**: SPA\n- **Technologies**: React, Vite\n" in report
    assert "- **Web** → **API** (api) - HTTP" in report
    assert "- **API** → **DB** (data)" in report


def test_report_filename():
    assert report_filename(new_blueprint(title="My  Cool App")) == "my-cool-app.md"


def test_dumps_is_valid_json(editor):
    assert json.loads(dumps_blueprint(editor.blueprint))["title"] == "Shop"
