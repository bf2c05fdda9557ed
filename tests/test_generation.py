"""Tests for starter blueprint generation."""

from datetime import datetime, timezone

import pytest

from blueprint_core import decode_blueprint, encode_blueprint, starter_blueprint, validate_blueprint
from blueprint_core.generation import GENERATED_TITLE


def test_starter_graph_shape():
    blueprint = starter_blueprint("An online bookstore")

    assert blueprint.title == GENERATED_TITLE
    assert blueprint.description == "An online bookstore"
    assert blueprint.version == 1
    assert [n.title for n in blueprint.nodes] == ["React Frontend", "Node.js API", "PostgreSQL"]
    assert [(c.type.value, c.label) for c in blueprint.connections] == [
        ("api", "HTTP Requests"),
        ("data", "Database Queries"),
    ]


def test_starter_is_structurally_valid():
    blueprint = starter_blueprint("Chat app")
    assert validate_blueprint(blueprint) == []
    assert decode_blueprint(encode_blueprint(blueprint)) == blueprint


def test_starter_custom_title_and_time():
    now = datetime(2024, 2, 2, tzinfo=timezone.utc)
    blueprint = starter_blueprint("  Chat app  ", title="Chat", now=now)
    assert blueprint.title == "Chat"
    assert blueprint.description == "Chat app"
    assert blueprint.created_at == blueprint.updated_at == now


def test_starter_requires_description():
    with pytest.raises(ValueError):
        starter_blueprint("   ")
