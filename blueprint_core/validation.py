"""
Blueprint validation - Check blueprints for structural issues.

Used by the structured-export decoder (ERROR issues make input malformed)
and by the host server's validate endpoint. Only structural invariants are
checked; whether an architecture makes sense is not this module's concern.
"""

from dataclasses import dataclass
from enum import Enum

from .models import Blueprint, default_title


class IssueSeverity(str, Enum):
    """Severity levels for validation issues."""
    ERROR = "error"      # Invalid state, must be fixed
    WARNING = "warning"  # Potential problem, should review
    INFO = "info"        # Informational, may be intentional


@dataclass
class ValidationIssue:
    """A single validation issue found in a blueprint."""
    severity: IssueSeverity
    message: str
    node_id: str | None = None
    connection_id: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {
            "type": self.severity.value,
            "message": self.message
        }
        if self.node_id:
            result["node_id"] = self.node_id
        if self.connection_id:
            result["connection_id"] = self.connection_id
        return result


def validate_blueprint(blueprint: Blueprint) -> list[ValidationIssue]:
    """
    Validate a blueprint and return a list of issues.

    Checks for:
    - Duplicate node or connection ids - ERROR
    - Connections referencing missing nodes - ERROR
    - Self-referencing connections - WARNING
    - Duplicate same-direction connections - WARNING
    - Orphan nodes (no connections) - WARNING
    - Empty or default titles - WARNING
    - Empty blueprint - INFO

    Args:
        blueprint: The blueprint to validate

    Returns:
        List of ValidationIssue objects
    """
    issues: list[ValidationIssue] = []

    nodes = blueprint.nodes
    connections = blueprint.connections

    if not nodes:
        issues.append(ValidationIssue(
            severity=IssueSeverity.INFO,
            message="Blueprint has no nodes"
        ))

    # Duplicate ids
    node_ids: set[str] = set()
    for node in nodes:
        if node.id in node_ids:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Duplicate node id: {node.id}",
                node_id=node.id
            ))
        node_ids.add(node.id)

    connection_ids: set[str] = set()
    for connection in connections:
        if connection.id in connection_ids:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Duplicate connection id: {connection.id}",
                connection_id=connection.id
            ))
        connection_ids.add(connection.id)

    # Dangling references
    for connection in connections:
        if connection.source_id not in node_ids:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Connection references non-existent source node: {connection.source_id}",
                connection_id=connection.id
            ))
        if connection.target_id not in node_ids:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Connection references non-existent target node: {connection.target_id}",
                connection_id=connection.id
            ))

    # Self-loops
    for connection in connections:
        if connection.source_id == connection.target_id:
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message="Self-referencing connection (node points to itself)",
                connection_id=connection.id,
                node_id=connection.source_id
            ))

    # Duplicate same-direction connections
    seen_pairs: set[tuple[str, str]] = set()
    for connection in connections:
        pair = (connection.source_id, connection.target_id)
        if pair in seen_pairs:
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message=f"Duplicate connection from {connection.source_id} to {connection.target_id}",
                connection_id=connection.id
            ))
        else:
            seen_pairs.add(pair)

    # Orphans
    connected: set[str] = set()
    for connection in connections:
        connected.add(connection.source_id)
        connected.add(connection.target_id)
    orphans = [node for node in nodes if node.id not in connected]
    if orphans and len(nodes) > 1:
        labels = ", ".join(f"{node.title} ({node.id})" for node in orphans)
        issues.append(ValidationIssue(
            severity=IssueSeverity.WARNING,
            message=f"Orphan nodes (no connections): {labels}"
        ))

    # Titles
    for node in nodes:
        if not node.title.strip() or node.title == default_title(node.type):
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message="Node has default or empty title",
                node_id=node.id
            ))

    return issues


def errors_only(issues: list[ValidationIssue]) -> list[ValidationIssue]:
    return [i for i in issues if i.severity == IssueSeverity.ERROR]


def validation_summary(issues: list[ValidationIssue]) -> dict:
    """
    Create a summary of validation issues.

    Args:
        issues: List of validation issues

    Returns:
        Dictionary with counts by severity
    """
    errors = len(errors_only(issues))
    return {
        "total": len(issues),
        "errors": errors,
        "warnings": len([i for i in issues if i.severity == IssueSeverity.WARNING]),
        "info": len([i for i in issues if i.severity == IssueSeverity.INFO]),
        "valid": errors == 0
    }
