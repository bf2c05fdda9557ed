"""
Mutation Pipeline - The single write path into a Blueprint.

This module implements:
- Node and connection create/update/delete with O(1) lookups via BlueprintGraph
- Cascading removal of connections when their endpoint node is deleted
- Exactly one version bump and updated_at refresh per successful mutation
- Change callbacks for hosts that re-render or broadcast on every change

Every operation validates completely before touching state, so a raised
error always leaves the blueprint (and its version) untouched.
"""

from datetime import datetime
from typing import Any, Callable, Optional

from pydantic import ValidationError

from .config import ConnectionPolicy
from .errors import ConnectionRejectedError, InvalidFieldError, InvalidReferenceError
from .graph import BlueprintGraph
from .logging_config import get_logger
from .models import (
    Blueprint,
    BlueprintConnection,
    BlueprintNode,
    ConnectionType,
    generate_connection_id,
    generate_node_id,
    new_blueprint,
    utcnow,
)

logger = get_logger(__name__)

_NODE_FIELDS = frozenset(BlueprintNode.model_fields)


class MutationPipeline:
    """
    Owns a Blueprint and is the only component allowed to change it.

    Ids handed out by the pipeline are never reused for the lifetime of the
    pipeline, even after the node or connection carrying them is deleted.
    """

    def __init__(
        self,
        blueprint: Optional[Blueprint] = None,
        *,
        policy: ConnectionPolicy | str = ConnectionPolicy.PERMISSIVE,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._clock = clock
        self._blueprint = blueprint if blueprint is not None else new_blueprint(now=clock())
        self._graph = BlueprintGraph(self._blueprint)
        self._policy = ConnectionPolicy(policy)
        self._issued_ids: set[str] = {n.id for n in self._blueprint.nodes}
        self._issued_ids.update(c.id for c in self._blueprint.connections)
        self._on_change_callbacks: list[Callable[[Blueprint], None]] = []

    # --- Properties ---

    @property
    def blueprint(self) -> Blueprint:
        """The live aggregate. Read it; change it only through this pipeline."""
        return self._blueprint

    @property
    def graph(self) -> BlueprintGraph:
        return self._graph

    @property
    def version(self) -> int:
        return self._blueprint.version

    @property
    def policy(self) -> ConnectionPolicy:
        return self._policy

    def snapshot(self) -> Blueprint:
        """Deep copy of the aggregate, safe to hand to host collaborators."""
        return self._blueprint.model_copy(deep=True)

    # --- Change Callbacks ---

    def on_change(self, callback: Callable[[Blueprint], None]):
        """Register a callback invoked after every successful mutation."""
        self._on_change_callbacks.append(callback)

    def _notify_change(self):
        """
        Run every callback, even when an earlier one raises.

        The mutation is already committed at this point; the first callback
        error is re-raised once all listeners have seen the change.
        """
        first_error: Optional[Exception] = None
        for callback in self._on_change_callbacks:
            try:
                callback(self._blueprint)
            except Exception as e:
                logger.warning("change_callback_failed", version=self._blueprint.version, error=str(e))
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error

    # --- Internals ---

    def _next_id(self, factory: Callable[[], str]) -> str:
        new_id = factory()
        while new_id in self._issued_ids:
            new_id = factory()
        return new_id

    def _commit(self, operation: str, **context: Any):
        """Stamp the aggregate after a mutation has been fully applied."""
        self._blueprint.updated_at = self._clock()
        self._blueprint.version += 1
        logger.debug("blueprint_mutated", operation=operation,
                      version=self._blueprint.version, **context)
        self._notify_change()

    @staticmethod
    def _check_node_fields(fields: dict[str, Any]):
        if "id" in fields:
            raise InvalidFieldError("Node id is assigned at creation and cannot be set")
        unknown = set(fields) - _NODE_FIELDS
        if unknown:
            raise InvalidFieldError(f"Unknown node field(s): {', '.join(sorted(unknown))}")

    # --- Node Operations ---

    def add_node(self, **fields: Any) -> BlueprintNode:
        """Create a node with a fresh id and append it to the blueprint."""
        self._check_node_fields(fields)
        try:
            node = BlueprintNode(id=self._next_id(generate_node_id), **fields)
        except ValidationError as e:
            logger.debug("add_node_rejected", error=str(e))
            raise InvalidFieldError(f"Invalid node: {e}") from e

        self._blueprint.nodes.append(node)
        self._graph._index_node(node)
        self._issued_ids.add(node.id)
        self._commit("add_node", node_id=node.id)
        return node

    def update_node(self, node_id: str, **updates: Any) -> BlueprintNode:
        """
        Merge fields into an existing node.

        position and size replace the whole sub-object; a partial point such
        as {"x": 5} is rejected rather than merged per axis. An empty update
        is a no-op and does not bump the version.
        """
        node = self._graph.require_node(node_id)
        self._check_node_fields(updates)
        if not updates:
            return node

        merged = node.model_dump()
        merged.update(updates)
        try:
            candidate = BlueprintNode.model_validate(merged)
        except ValidationError as e:
            logger.debug("update_node_rejected", node_id=node_id, error=str(e))
            raise InvalidFieldError(f"Invalid update for node {node_id}: {e}") from e

        for name in updates:
            setattr(node, name, getattr(candidate, name))

        self._commit("update_node", node_id=node_id, fields=sorted(updates))
        return node

    def delete_node(self, node_id: str) -> list[BlueprintConnection]:
        """Delete a node and every connection touching it. Returns the removed connections."""
        self._graph.require_node(node_id)

        removed = self._graph.connections_of(node_id)
        self._blueprint.nodes = [n for n in self._blueprint.nodes if n.id != node_id]
        self._blueprint.connections = [
            c for c in self._blueprint.connections if not c.touches(node_id)
        ]
        self._graph._unindex_node(node_id)
        for connection in removed:
            self._graph._unindex_connection(connection.id)

        self._commit("delete_node", node_id=node_id, cascaded=len(removed))
        return removed

    # --- Connection Operations ---

    def add_connection(
        self,
        source_id: str,
        target_id: str,
        type: ConnectionType | str = ConnectionType.API,
        label: Optional[str] = None,
    ) -> BlueprintConnection:
        """
        Connect source -> target.

        Both endpoints must exist. Under the permissive policy self-loops and
        duplicate same-direction edges are accepted; callers wanting to avoid
        them consult graph.candidate_targets first. The strict policy rejects
        both with ConnectionRejectedError.
        """
        if not self._graph.has_node(source_id):
            raise InvalidReferenceError("source", source_id)
        if not self._graph.has_node(target_id):
            raise InvalidReferenceError("target", target_id)

        if self._policy is ConnectionPolicy.STRICT:
            if source_id == target_id:
                raise ConnectionRejectedError(source_id, target_id, "self-loop")
            if self._graph.has_connection(source_id, target_id):
                raise ConnectionRejectedError(source_id, target_id, "duplicate connection")

        try:
            connection = BlueprintConnection(
                id=self._next_id(generate_connection_id),
                source_id=source_id,
                target_id=target_id,
                type=type,
                label=label,
            )
        except ValidationError as e:
            raise InvalidFieldError(f"Invalid connection: {e}") from e

        self._blueprint.connections.append(connection)
        self._graph._index_connection(connection)
        self._issued_ids.add(connection.id)
        self._commit("add_connection", connection_id=connection.id,
                     source_id=source_id, target_id=target_id)
        return connection

    def delete_connection(self, connection_id: str):
        """Delete a single connection."""
        self._graph.require_connection(connection_id)
        self._blueprint.connections = [
            c for c in self._blueprint.connections if c.id != connection_id
        ]
        self._graph._unindex_connection(connection_id)
        self._commit("delete_connection", connection_id=connection_id)

    # --- Metadata ---

    def rename_blueprint(self, title: str):
        """Set the blueprint title."""
        if not isinstance(title, str):
            raise InvalidFieldError("Blueprint title must be a string")
        self._blueprint.title = title
        self._commit("rename_blueprint")

    def set_description(self, text: Optional[str]):
        """Set or clear the blueprint description."""
        if text is not None and not isinstance(text, str):
            raise InvalidFieldError("Blueprint description must be a string")
        self._blueprint.description = text
        self._commit("set_description")
