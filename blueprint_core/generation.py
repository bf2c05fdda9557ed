"""
Starter blueprint generation.

Stands in for an AI generation collaborator: turns a free-text description
into a version-1 blueprint seeded with a frontend -> backend -> database
architecture that the user then edits.
"""

from datetime import datetime
from typing import Optional

from .models import (
    Blueprint,
    BlueprintConnection,
    BlueprintNode,
    ConnectionType,
    NodeType,
    Position,
    default_size,
    generate_blueprint_id,
    utcnow,
)

GENERATED_TITLE = "AI Generated Blueprint"


def starter_blueprint(
    description: str,
    title: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Blueprint:
    """Build the three-tier starter graph for a description."""
    description = description.strip()
    if not description:
        raise ValueError("A description is required to generate a blueprint")
    now = now or utcnow()

    frontend = BlueprintNode(
        id="frontend-1",
        type=NodeType.FRONTEND,
        title="React Frontend",
        description="Modern React application with TypeScript",
        position=Position(x=100, y=100),
        size=default_size(),
        technologies=["React", "TypeScript", "Vite"],
    )
    backend = BlueprintNode(
        id="backend-1",
        type=NodeType.BACKEND,
        title="Node.js API",
        description="RESTful API with Express.js",
        position=Position(x=400, y=100),
        size=default_size(),
        technologies=["Node.js", "Express", "TypeScript"],
    )
    database = BlueprintNode(
        id="database-1",
        type=NodeType.DATABASE,
        title="PostgreSQL",
        description="Relational database for data storage",
        position=Position(x=400, y=250),
        size=default_size(),
        technologies=["PostgreSQL", "Prisma"],
    )

    return Blueprint(
        id=generate_blueprint_id(),
        title=title or GENERATED_TITLE,
        description=description,
        nodes=[frontend, backend, database],
        connections=[
            BlueprintConnection(
                id="conn-1",
                source_id=frontend.id,
                target_id=backend.id,
                type=ConnectionType.API,
                label="HTTP Requests",
            ),
            BlueprintConnection(
                id="conn-2",
                source_id=backend.id,
                target_id=database.id,
                type=ConnectionType.DATA,
                label="Database Queries",
            ),
        ],
        created_at=now,
        updated_at=now,
        version=1,
    )
