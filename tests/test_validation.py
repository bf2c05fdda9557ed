"""Tests for structural validation."""

from blueprint_core import (
    Blueprint,
    BlueprintConnection,
    BlueprintNode,
    IssueSeverity,
    validate_blueprint,
    validation_summary,
)


def _messages(issues, severity):
    return [i.message for i in issues if i.severity == severity]


def test_empty_blueprint_is_info_only():
    issues = validate_blueprint(Blueprint())
    assert [i.severity for i in issues] == [IssueSeverity.INFO]
    assert validation_summary(issues)["valid"]


def test_clean_blueprint_has_no_issues(editor):
    assert validate_blueprint(editor.blueprint) == []


def test_dangling_and_duplicate_ids_are_errors():
    node = BlueprintNode(id="n1", title="One")
    blueprint = Blueprint(
        nodes=[node, BlueprintNode(id="n1", title="Again")],
        connections=[
            BlueprintConnection(id="c1", source_id="n1", target_id="ghost"),
            BlueprintConnection(id="c1", source_id="n1", target_id="n1"),
        ],
    )

    errors = _messages(validate_blueprint(blueprint), IssueSeverity.ERROR)

    assert "Duplicate node id: n1" in errors
    assert "Duplicate connection id: c1" in errors
    assert "Connection references non-existent target node: ghost" in errors


def test_warnings_for_loops_duplicates_orphans_and_titles():
    a = BlueprintNode(id="a", title="A")
    b = BlueprintNode(id="b", title="B")
    lonely = BlueprintNode(id="z", type="database")
    blueprint = Blueprint(
        nodes=[a, b, lonely],
        connections=[
            BlueprintConnection(id="c1", source_id="a", target_id="b"),
            BlueprintConnection(id="c2", source_id="a", target_id="b"),
            BlueprintConnection(id="c3", source_id="b", target_id="b"),
        ],
    )

    issues = validate_blueprint(blueprint)
    warnings = _messages(issues, IssueSeverity.WARNING)

    assert "Self-referencing connection (node points to itself)" in warnings
    assert "Duplicate connection from a to b" in warnings
    assert "Orphan nodes (no connections): New Database (z)" in warnings
    assert "Node has default or empty title" in warnings
    assert validation_summary(issues) == {
        "total": 4, "errors": 0, "warnings": 4, "info": 0, "valid": True
    }


def test_single_node_is_not_an_orphan():
    issues = validate_blueprint(Blueprint(nodes=[BlueprintNode(title="Only")]))
    assert issues == []


def test_issue_to_dict():
    blueprint = Blueprint(nodes=[BlueprintNode(id="n1", title="")])
    [issue] = validate_blueprint(blueprint)
    data = issue.to_dict()
    assert data["type"] == "warning"
    assert data["node_id"] == "n1"
