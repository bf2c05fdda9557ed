"""
Blueprint Editor Host - FastAPI Application

This is the main entry point for the blueprint editor host server.
It provides:
- REST API for blueprint operations (node/connection CRUD, file ops, export)
- Canvas and properties read models (scene, connection listings, candidates)
- WebSocket endpoint for real-time updates
- CORS configuration for local frontend development
"""
import asyncio
from contextlib import asynccontextmanager
from dataclasses import asdict
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException, Query, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from blueprint_core import (
    BlueprintEditor,
    BlueprintError,
    ConnectionRejectedError,
    ConnectionType,
    NodeType,
    NotFoundError,
    encode_blueprint,
    get_settings,
    report_filename,
    summarize_blueprint,
    validate_blueprint,
    validation_summary,
)
from blueprint_core.logging_config import get_logger
from blueprint_core.palette import CONNECTION_TYPE_CONFIG, palette_entries, suggest_technologies
from blueprint_core.properties import list_connections

from .models import (
    BlueprintInfoRequest,
    CreateConnectionRequest,
    CreateNodeRequest,
    GenerateBlueprintRequest,
    OpenBlueprintRequest,
    PaletteDropRequest,
    SaveBlueprintRequest,
    SelectionRequest,
    UpdateNodeRequest,
)
from .session_manager import list_blueprint_files, session
from .websocket_manager import ws_manager

logger = get_logger(__name__)


# --- Async change notification ---
# Bridge between sync BlueprintSession callbacks and async WebSocket broadcasts

_change_event: Optional[asyncio.Event] = None


def on_blueprint_change():
    """Callback for blueprint changes - sets event for async handler."""
    if _change_event is not None:
        _change_event.set()


async def change_broadcaster(event: asyncio.Event):
    """Background task that broadcasts changes to WebSocket clients."""
    while True:
        await event.wait()
        event.clear()

        if session.editor is None:
            await ws_manager.publish(None, None)
        else:
            blueprint = session.editor.blueprint
            await ws_manager.publish(blueprint.id, blueprint.version, session.is_dirty)


session.on_change(on_blueprint_change)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler for startup/shutdown tasks."""
    global _change_event
    _change_event = asyncio.Event()

    broadcaster_task = asyncio.create_task(change_broadcaster(_change_event))

    yield

    # Cleanup
    _change_event = None
    broadcaster_task.cancel()
    try:
        await broadcaster_task
    except asyncio.CancelledError:
        pass


# --- FastAPI App ---

app = FastAPI(
    title="Blueprint Editor API",
    description="Host API for the architecture blueprint editor",
    version="1.0.0",
    lifespan=lifespan
)

# CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000", "http://127.0.0.1:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Error Mapping ---

def _status_for(error: BlueprintError) -> int:
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, ConnectionRejectedError):
        return 409
    return 400


@app.exception_handler(BlueprintError)
async def blueprint_error_handler(request: Request, exc: BlueprintError):
    logger.debug("request_failed", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=_status_for(exc), content={"detail": str(exc)})


def _writable_editor() -> BlueprintEditor:
    editor = session.require_editor()
    if editor.read_only:
        raise HTTPException(status_code=403, detail="Blueprint is read-only")
    return editor


# --- Health Check ---

@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "connections": ws_manager.connection_count}


# --- Blueprint State ---

@app.get("/api/blueprint")
async def get_blueprint():
    """Get the current blueprint state."""
    return session.get_state()


@app.patch("/api/blueprint")
async def update_blueprint(request: BlueprintInfoRequest):
    """Update blueprint metadata (title, description)."""
    editor = _writable_editor()
    updates = request.model_dump(exclude_unset=True)
    if "title" in updates:
        if updates["title"] is None:
            raise HTTPException(status_code=400, detail="Title cannot be null")
        editor.rename(updates["title"])
    if "description" in updates:
        editor.set_description(updates["description"])
    return {"success": True, "blueprint": editor.blueprint.to_json_dict()}


@app.get("/api/blueprint/scene")
async def get_scene():
    """Get the rendered canvas scene (node cards and connection segments)."""
    scene = session.require_editor().canvas.render()
    return {"success": True, "scene": asdict(scene)}


@app.get("/api/blueprint/stats")
async def get_stats():
    """Get footer statistics."""
    return {"success": True, "stats": asdict(session.require_editor().stats())}


# --- File Operations ---

@app.get("/api/blueprints")
async def list_blueprints(directory: Optional[str] = Query(default=None)):
    """List blueprint JSON files in a directory (defaults to blueprints_dir)."""
    target = Path(directory).expanduser() if directory else get_settings().blueprints_dir
    return {"success": True, "directory": str(target), "blueprints": list_blueprint_files(target)}


@app.post("/api/blueprint/new")
async def new_blueprint(title: str = Query(default="New Blueprint")):
    """Create a new empty blueprint."""
    blueprint = session.new_blueprint(title=title)
    return {"success": True, "blueprint": blueprint.to_json_dict()}


@app.post("/api/blueprint/generate")
async def generate_blueprint(request: GenerateBlueprintRequest):
    """Create a blueprint from the starter architecture for a description."""
    try:
        blueprint = session.generate(request.description, title=request.title)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, "blueprint": blueprint.to_json_dict()}


@app.post("/api/blueprint/open")
async def open_blueprint(request: OpenBlueprintRequest):
    """Open a blueprint from a JSON file."""
    try:
        blueprint = session.open_blueprint(request.file_path)
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {
        "success": True,
        "blueprint": blueprint.to_json_dict(),
        "file_path": str(session.file_path)
    }


@app.post("/api/blueprint/import")
async def import_blueprint(request: Request):
    """Open a blueprint from a structured-export JSON body."""
    blueprint = session.import_blueprint(await request.body())
    return {"success": True, "blueprint": blueprint.to_json_dict()}


@app.post("/api/blueprint/save")
async def save_blueprint(request: SaveBlueprintRequest):
    """Save the blueprint to a JSON file."""
    session.require_editor()
    try:
        path = session.save_blueprint(request.file_path)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except OSError as e:
        raise HTTPException(status_code=500, detail=f"Failed to save: {e}")
    return {"success": True, "file_path": str(path)}


# --- Export ---

@app.get("/api/blueprint/export")
async def export_blueprint():
    """Get the structured export of the current blueprint."""
    return encode_blueprint(session.require_editor().blueprint)


@app.post("/api/blueprint/report")
async def export_report(directory: Optional[str] = Query(default=None)):
    """Render the Markdown report, writing it into directory when given."""
    editor = session.require_editor()
    try:
        markdown = session.export_report(directory)
    except OSError as e:
        raise HTTPException(status_code=500, detail=f"Failed to write report: {e}")
    return {
        "success": True,
        "filename": report_filename(editor.blueprint),
        "markdown": markdown,
    }


@app.post("/api/blueprint/generate-code")
async def request_generation():
    """Hand the current blueprint to the code-generation step."""
    snapshot = session.request_generation()
    return {"success": True, "blueprint": snapshot.to_json_dict()}


# --- Analysis ---

@app.get("/api/blueprint/validate")
async def validate():
    """Run structural validation on the current blueprint."""
    issues = validate_blueprint(session.require_editor().blueprint)
    return {
        "success": True,
        "summary": validation_summary(issues),
        "issues": [i.to_dict() for i in issues],
    }


@app.get("/api/blueprint/summary")
async def summary(top_n: int = Query(default=5, ge=1)):
    """Get blueprint statistics."""
    result = summarize_blueprint(session.require_editor().blueprint, top_n=top_n)
    return {"success": True, "summary": result.to_dict()}


# --- Node Operations ---

@app.post("/api/nodes")
async def create_node(request: CreateNodeRequest):
    """Create a new node."""
    editor = _writable_editor()
    node = editor.pipeline.add_node(**request.model_dump(exclude_none=True))
    return {"success": True, "node": node.model_dump(mode="json", exclude_none=True)}


@app.get("/api/nodes/{node_id}")
async def get_node(node_id: str):
    """Get a specific node."""
    node = session.require_editor().pipeline.graph.get_node(node_id)
    if node:
        return {"success": True, "node": node.model_dump(mode="json", exclude_none=True)}
    raise HTTPException(status_code=404, detail="Node not found")


@app.patch("/api/nodes/{node_id}")
async def update_node(node_id: str, request: UpdateNodeRequest):
    """Update a node (only the fields present in the body)."""
    editor = _writable_editor()
    node = editor.pipeline.update_node(node_id, **request.model_dump(exclude_unset=True))
    return {"success": True, "node": node.model_dump(mode="json", exclude_none=True)}


@app.delete("/api/nodes/{node_id}")
async def delete_node(node_id: str):
    """Delete a node and its connections."""
    editor = _writable_editor()
    removed = editor.pipeline.delete_node(node_id)
    return {"success": True, "removed_connections": [c.id for c in removed]}


@app.get("/api/nodes/{node_id}/connections")
async def get_node_connections(node_id: str):
    """List connections touching a node, seen from that node."""
    graph = session.require_editor().pipeline.graph
    graph.require_node(node_id)
    listings = [
        {**asdict(listing), "arrow": listing.arrow, "caption": listing.caption}
        for listing in list_connections(graph, node_id)
    ]
    return {"success": True, "connections": listings}


@app.get("/api/nodes/{node_id}/candidates")
async def get_candidate_targets(node_id: str):
    """List nodes this node can still connect to."""
    graph = session.require_editor().pipeline.graph
    graph.require_node(node_id)
    candidates = graph.candidate_targets(node_id)
    return {"success": True, "nodes": [{"id": n.id, "title": n.title} for n in candidates]}


@app.get("/api/nodes/{node_id}/suggestions")
async def get_technology_suggestions(node_id: str):
    """Suggest common technologies for a node's type."""
    node = session.require_editor().pipeline.graph.require_node(node_id)
    limit = get_settings().suggestion_limit
    return {"success": True, "technologies": suggest_technologies(node.type, node.technologies, limit)}


# --- Connection Operations ---

@app.post("/api/connections")
async def create_connection(request: CreateConnectionRequest):
    """Create a new connection."""
    editor = _writable_editor()
    connection = editor.pipeline.add_connection(
        source_id=request.source_id,
        target_id=request.target_id,
        type=request.type,
        label=request.label
    )
    return {
        "success": True,
        "connection": connection.model_dump(mode="json", by_alias=True, exclude_none=True)
    }


@app.get("/api/connections/{connection_id}")
async def get_connection(connection_id: str):
    """Get a specific connection."""
    connection = session.require_editor().pipeline.graph.get_connection(connection_id)
    if connection:
        return {
            "success": True,
            "connection": connection.model_dump(mode="json", by_alias=True, exclude_none=True)
        }
    raise HTTPException(status_code=404, detail="Connection not found")


@app.delete("/api/connections/{connection_id}")
async def delete_connection(connection_id: str):
    """Delete a connection."""
    editor = _writable_editor()
    editor.pipeline.delete_connection(connection_id)
    return {"success": True}


# --- Canvas ---

@app.put("/api/selection")
async def set_selection(request: SelectionRequest):
    """Select a node (or clear the selection with null)."""
    editor = session.require_editor()
    editor.canvas.select(request.node_id)
    return {"success": True, "selected_node_id": editor.state.selected_node_id}


@app.post("/api/canvas/drop")
async def palette_drop(request: PaletteDropRequest):
    """Drop a palette item on the canvas; the node is centred on the drop point."""
    editor = _writable_editor()
    editor.canvas.begin_palette_drag(request.type)
    node = editor.canvas.drop_on_canvas((request.x, request.y))
    return {"success": True, "node": node.model_dump(mode="json", exclude_none=True)}


# --- Enums for Frontend ---

@app.get("/api/palette")
async def get_palette():
    """Get palette items in display order."""
    return {"items": [
        {"type": e.type.value, "label": e.label, "icon": e.icon, "color": e.color, "title": e.default_title}
        for e in palette_entries()
    ]}


@app.get("/api/enums/node-types")
async def get_node_types():
    """Get available node types."""
    return {"types": [t.value for t in NodeType]}


@app.get("/api/enums/connection-types")
async def get_connection_types():
    """Get available connection types with display labels."""
    return {"types": [
        {"type": t.value, "label": CONNECTION_TYPE_CONFIG[t].label, "color": CONNECTION_TYPE_CONFIG[t].color}
        for t in ConnectionType
    ]}


# --- WebSocket ---

@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """WebSocket endpoint for real-time blueprint updates."""
    await ws_manager.connect(websocket)
    try:
        while True:
            # Clients only listen; incoming messages are ignored
            await websocket.receive_text()
    except WebSocketDisconnect:
        await ws_manager.disconnect(websocket)


def run(host: Optional[str] = None, port: Optional[int] = None):
    """Run the host server with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=host or settings.host, port=port or settings.port)
