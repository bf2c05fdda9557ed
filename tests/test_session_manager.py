"""Tests for the host-side blueprint session."""

import pytest

from blueprint_server.session_manager import BlueprintSession


@pytest.fixture
def session(settings):
    return BlueprintSession(settings)


# ============================================================================
# Change Tracking
# ============================================================================

def test_mutation_marks_dirty_and_notifies(session):
    notified = []
    session.new_blueprint(title="Dirty")
    session.on_change(lambda: notified.append(session.is_dirty))

    session.require_editor().pipeline.add_node(title="A")

    assert session.is_dirty
    assert notified == [True]


def test_failing_select_callback_still_marks_dirty(session, monkeypatch, tmp_path):
    """A host select handler that raises during delete_node must not hide the change."""
    session.new_blueprint(title="Select")
    editor = session.require_editor()
    node = editor.pipeline.add_node(title="A")
    editor.canvas.select(node.id)
    session.save_blueprint(tmp_path / "select.json")
    assert not session.is_dirty

    def broken_select(_node):
        raise RuntimeError("host select failed")

    monkeypatch.setattr(editor.canvas, "_on_node_select", broken_select)
    notified = []
    session.on_change(lambda: notified.append(True))

    with pytest.raises(RuntimeError, match="host select failed"):
        editor.pipeline.delete_node(node.id)

    assert editor.blueprint.nodes == []
    assert editor.blueprint.version == 3
    assert session.is_dirty
    assert notified == [True]


def test_save_clears_dirty_and_notifies(session, tmp_path):
    notified = []
    session.new_blueprint(title="Saved")
    session.require_editor().pipeline.add_node(title="A")
    session.on_change(lambda: notified.append(session.is_dirty))

    session.save_blueprint(tmp_path / "saved.json")

    assert not session.is_dirty
    assert notified == [False]


def test_close_notifies(session):
    notified = []
    session.new_blueprint()
    session.on_change(lambda: notified.append(session.editor))

    session.close()

    assert notified == [None]
