"""Tests for the host server REST API."""

import json

import pytest
from fastapi.testclient import TestClient

from blueprint_server.main import app
from blueprint_server.session_manager import session


@pytest.fixture
def client():
    session.close()
    yield TestClient(app)
    session.close()


@pytest.fixture
def opened(client):
    """A fresh blueprint with two nodes."""
    client.post("/api/blueprint/new", params={"title": "API Test"})
    a = client.post("/api/nodes", json={"type": "frontend", "title": "A"}).json()["node"]
    b = client.post("/api/nodes", json={"type": "backend", "title": "B"}).json()["node"]
    return a, b


# ============================================================================
# Session
# ============================================================================

def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_state_without_blueprint(client):
    assert client.get("/api/blueprint").json()["blueprint"] is None


def test_metadata_edit_without_blueprint_is_404(client):
    response = client.patch("/api/blueprint", json={"title": "x"})
    assert response.status_code == 404


def test_new_blueprint(client):
    response = client.post("/api/blueprint/new", params={"title": "Fresh"})
    data = response.json()["blueprint"]
    assert data["title"] == "Fresh"
    assert data["version"] == 1
    assert data["nodes"] == []


def test_patch_metadata(client, opened):
    response = client.patch("/api/blueprint", json={"title": "Renamed", "description": "About"})
    data = response.json()["blueprint"]
    assert data["title"] == "Renamed"
    assert data["description"] == "About"


def test_generate(client):
    response = client.post("/api/blueprint/generate", json={"description": "A bookstore"})
    data = response.json()["blueprint"]
    assert [n["title"] for n in data["nodes"]] == ["React Frontend", "Node.js API", "PostgreSQL"]

    assert client.post("/api/blueprint/generate", json={"description": " "}).status_code == 400


# ============================================================================
# Nodes and Connections
# ============================================================================

def test_create_node_defaults(client, opened):
    node = client.post("/api/nodes", json={"type": "database"}).json()["node"]
    assert node["title"] == "New Database"
    assert node["position"] == {"x": 100, "y": 100}


def test_create_node_bad_type_is_422(client, opened):
    assert client.post("/api/nodes", json={"type": "mainframe"}).status_code == 422


def test_get_and_patch_node(client, opened):
    a, _ = opened
    response = client.patch(f"/api/nodes/{a['id']}", json={"position": {"x": 1, "y": 2}})
    assert response.json()["node"]["position"] == {"x": 1, "y": 2}
    assert response.json()["node"]["title"] == "A"

    assert client.get(f"/api/nodes/{a['id']}").json()["node"]["position"] == {"x": 1, "y": 2}
    assert client.get("/api/nodes/ghost").status_code == 404


def test_node_subresources_unknown_node_is_404(client, opened):
    for resource in ("connections", "candidates", "suggestions"):
        assert client.get(f"/api/nodes/ghost/{resource}").status_code == 404


def test_patch_unknown_node_is_404(client, opened):
    assert client.patch("/api/nodes/ghost", json={"title": "x"}).status_code == 404


def test_patch_duplicate_technologies_is_400(client, opened):
    a, _ = opened
    response = client.patch(f"/api/nodes/{a['id']}", json={"technologies": ["React", "React"]})
    assert response.status_code == 400


def test_connection_lifecycle(client, opened):
    a, b = opened
    response = client.post("/api/connections", json={
        "sourceId": a["id"], "targetId": b["id"], "type": "data", "label": "rows"
    })
    assert response.status_code == 200
    conn = response.json()["connection"]
    assert conn["sourceId"] == a["id"]

    listing = client.get(f"/api/nodes/{b['id']}/connections").json()["connections"]
    assert listing[0]["caption"] == "← A"
    assert client.get(f"/api/nodes/{a['id']}/candidates").json()["nodes"] == []
    assert client.get(f"/api/connections/{conn['id']}").status_code == 200

    assert client.delete(f"/api/connections/{conn['id']}").json()["success"]
    assert client.get(f"/api/connections/{conn['id']}").status_code == 404


def test_connection_to_missing_node_is_400(client, opened):
    a, _ = opened
    response = client.post("/api/connections", json={"sourceId": a["id"], "targetId": "ghost"})
    assert response.status_code == 400


def test_delete_node_cascades(client, opened):
    a, b = opened
    client.post("/api/connections", json={"sourceId": a["id"], "targetId": b["id"]})

    response = client.delete(f"/api/nodes/{a['id']}")

    assert len(response.json()["removed_connections"]) == 1
    state = client.get("/api/blueprint").json()
    assert [n["id"] for n in state["blueprint"]["nodes"]] == [b["id"]]
    assert state["blueprint"]["connections"] == []
    assert state["is_dirty"]


def test_suggestions(client, opened):
    a, _ = opened
    client.patch(f"/api/nodes/{a['id']}", json={"technologies": ["React"]})
    technologies = client.get(f"/api/nodes/{a['id']}/suggestions").json()["technologies"]
    assert "React" not in technologies
    assert technologies[0] == "Vue"


# ============================================================================
# Canvas
# ============================================================================

def test_selection_and_drop(client, opened):
    a, _ = opened
    response = client.put("/api/selection", json={"node_id": a["id"]})
    assert response.json()["selected_node_id"] == a["id"]
    assert client.put("/api/selection", json={"node_id": "ghost"}).status_code == 404

    node = client.post("/api/canvas/drop", json={"type": "api", "x": 400, "y": 300}).json()["node"]
    assert node["position"] == {"x": 325, "y": 250}
    assert node["title"] == "New API"


def test_scene(client, opened):
    scene = client.get("/api/blueprint/scene").json()["scene"]
    assert [n["title"] for n in scene["nodes"]] == ["A", "B"]
    assert scene["empty_message"] is None


# ============================================================================
# Files and Export
# ============================================================================

def test_save_open_round_trip(client, opened, tmp_path):
    target = tmp_path / "bp.json"
    response = client.post("/api/blueprint/save", json={"file_path": str(target)})
    assert response.status_code == 200
    saved = json.loads(target.read_text(encoding="utf-8"))
    assert [n["title"] for n in saved["nodes"]] == ["A", "B"]
    assert not client.get("/api/blueprint").json()["is_dirty"]

    response = client.post("/api/blueprint/open", json={"file_path": str(target)})
    assert response.json()["blueprint"] == saved

    listing = client.get("/api/blueprints", params={"directory": str(tmp_path)}).json()
    assert listing["blueprints"][0]["nodes"] == 2


def test_save_without_path_is_400(client, opened):
    assert client.post("/api/blueprint/save", json={}).status_code == 400


def test_open_missing_file_is_404(client, tmp_path):
    response = client.post("/api/blueprint/open", json={"file_path": str(tmp_path / "nope.json")})
    assert response.status_code == 404


def test_import_malformed_is_400(client):
    response = client.post("/api/blueprint/import", content=b'{"title": "x"}')
    assert response.status_code == 400
    assert "missing field" in response.json()["detail"]


def test_import_export(client, opened):
    exported = client.get("/api/blueprint/export").json()
    client.post("/api/blueprint/new")
    response = client.post("/api/blueprint/import", content=json.dumps(exported))
    assert response.json()["blueprint"] == exported


def test_report(client, opened, tmp_path):
    a, b = opened
    client.post("/api/connections", json={"sourceId": a["id"], "targetId": b["id"]})

    response = client.post("/api/blueprint/report", params={"directory": str(tmp_path)}).json()

    assert response["filename"] == "api-test.md"
    assert "- **A** → **B** (api)" in response["markdown"]
    assert (tmp_path / "api-test.md").read_text(encoding="utf-8") == response["markdown"]


def test_generate_code_handoff(client, opened):
    response = client.post("/api/blueprint/generate-code").json()
    assert response["blueprint"]["title"] == "API Test"
    assert session.last_generation_request is not None


def test_validate_and_summary(client, opened):
    validation = client.get("/api/blueprint/validate").json()
    assert validation["summary"]["valid"]
    assert validation["summary"]["warnings"] == 1  # A and B are orphans

    summary = client.get("/api/blueprint/summary").json()["summary"]
    assert summary["total_nodes"] == 2
    assert summary["orphan_count"] == 2


def test_enums(client):
    assert "database" in client.get("/api/enums/node-types").json()["types"]
    labels = [t["label"] for t in client.get("/api/enums/connection-types").json()["types"]]
    assert labels == ["API Call", "Data Flow", "Dependency", "Communication"]
    palette = client.get("/api/palette").json()["items"]
    assert palette[0] == {
        "type": "frontend", "label": "Frontend", "icon": "monitor", "color": "#3b82f6", "title": "New Frontend"
    }


def test_websocket_accepts_connections(client):
    with client.websocket_connect("/ws") as websocket:
        websocket.send_text("hello")
    assert client.get("/api/health").json()["status"] == "ok"
