"""Tests for blueprint statistics."""

from blueprint_core import find_connected_components, summarize_blueprint


def test_summary_counts(editor):
    summary = summarize_blueprint(editor.blueprint)

    assert summary.title == "Shop"
    assert summary.total_nodes == 3
    assert summary.total_connections == 2
    assert summary.nodes_by_type == {"frontend": 1, "backend": 1, "database": 1}
    assert summary.connections_by_type == {"api": 1, "data": 1}
    assert summary.connected_components == 1
    assert summary.orphan_count == 0


def test_most_connected_first(editor):
    summary = summarize_blueprint(editor.blueprint, top_n=1)
    [top] = summary.most_connected_nodes
    assert top.title == "API"
    assert (top.incoming, top.outgoing, top.total) == (1, 1, 2)


def test_orphans_form_their_own_components(editor):
    editor.pipeline.add_node(title="Island")
    components = find_connected_components(editor.blueprint)
    assert sorted(c.size for c in components) == [1, 3]
    assert summarize_blueprint(editor.blueprint).orphan_count == 1


def test_technologies_in_use_sorted_and_unique(editor):
    web, api, _ = editor.blueprint.nodes
    editor.pipeline.update_node(web.id, technologies=["Vite", "React"])
    editor.pipeline.update_node(api.id, technologies=["React", "Express"])

    assert summarize_blueprint(editor.blueprint).technologies_in_use == ["Express", "React", "Vite"]


def test_summary_to_dict(editor):
    data = summarize_blueprint(editor.blueprint).to_dict()
    assert data["version"] == editor.blueprint.version
    assert data["most_connected_nodes"][0]["connections"] == 2
