"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone

import pytest

from blueprint_core import (
    BlueprintEditor,
    ConnectionPolicy,
    MutationPipeline,
    Settings,
    new_blueprint,
)


class FakeClock:
    """Deterministic clock: every call advances one second."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        self.now = self.now + timedelta(seconds=1)
        return self.now


# ============================================================================
# Core Fixtures
# ============================================================================

@pytest.fixture
def clock():
    """Deterministic clock."""
    return FakeClock()


@pytest.fixture
def settings():
    """Settings independent of the environment."""
    return Settings(
        _env_file=None,
        connection_policy=ConnectionPolicy.PERMISSIVE,
        suggestion_limit=6,
        canvas_technology_limit=3,
        read_only=False,
    )


@pytest.fixture
def pipeline(clock):
    """Pipeline over an empty version-1 blueprint."""
    return MutationPipeline(new_blueprint(title="Test", now=clock.now), clock=clock)


@pytest.fixture
def strict_pipeline(clock):
    return MutationPipeline(
        new_blueprint(title="Strict", now=clock.now),
        policy=ConnectionPolicy.STRICT,
        clock=clock,
    )


# ============================================================================
# Populated Fixtures
# ============================================================================

@pytest.fixture
def two_nodes(pipeline):
    """Pipeline holding nodes A (frontend) and B (backend)."""
    a = pipeline.add_node(type="frontend", title="A")
    b = pipeline.add_node(type="backend", title="B")
    return pipeline, a, b


@pytest.fixture
def editor(settings, clock):
    """Editor over a blueprint with three nodes and two connections."""
    editor = BlueprintEditor(new_blueprint(title="Shop", now=clock.now), settings=settings, clock=clock)
    pipeline = editor.pipeline
    web = pipeline.add_node(type="frontend", title="Web", position={"x": 0, "y": 0})
    api = pipeline.add_node(type="backend", title="API", position={"x": 300, "y": 0})
    db = pipeline.add_node(type="database", title="DB", position={"x": 300, "y": 200})
    pipeline.add_connection(web.id, api.id, type="api", label="HTTP")
    pipeline.add_connection(api.id, db.id, type="data")
    return editor
