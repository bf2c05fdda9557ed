"""
Error taxonomy for the blueprint editor core.

Every failure raised by the core derives from BlueprintError so hosts can
catch the whole family in one place. All errors are raised synchronously
and before any state has changed.
"""

from typing import Optional


class BlueprintError(Exception):
    """Base class for all blueprint editor errors."""


class NotFoundError(BlueprintError, LookupError):
    """A node, connection, or blueprint id does not exist."""

    def __init__(self, kind: str, item_id: Optional[str] = None):
        self.kind = kind
        self.item_id = item_id
        if item_id is None:
            message = f"No {kind} open"
        else:
            message = f"{kind.capitalize()} not found: {item_id}"
        super().__init__(message)


class InvalidReferenceError(BlueprintError, ValueError):
    """A connection endpoint does not resolve to an existing node."""

    def __init__(self, role: str, node_id: str):
        self.role = role  # "source" or "target"
        self.node_id = node_id
        super().__init__(f"{role.capitalize()} node not found: {node_id}")


class ConnectionRejectedError(BlueprintError, ValueError):
    """A connection was refused by the strict connection policy."""

    def __init__(self, source_id: str, target_id: str, reason: str):
        self.source_id = source_id
        self.target_id = target_id
        self.reason = reason
        super().__init__(f"Connection {source_id} -> {target_id} rejected: {reason}")


class InvalidFieldError(BlueprintError, ValueError):
    """A creation or update payload named an unknown field or failed validation."""


class NoSelectionError(BlueprintError):
    """A properties action was attempted with no node selected."""

    def __init__(self):
        super().__init__("No node selected")


class MalformedBlueprintError(BlueprintError, ValueError):
    """Structured input could not be decoded into a valid blueprint."""

    def __init__(self, message: str, issues: Optional[list[str]] = None):
        self.issues = issues or []
        if self.issues:
            message = f"{message}: {'; '.join(self.issues)}"
        super().__init__(message)
