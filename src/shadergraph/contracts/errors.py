"""Exception taxonomy for graph operations.

Best-effort paths (traversal, splice boundary lookups) never raise for
missing references; they log and skip. These exceptions are reserved for
callers that name something that must exist, or for inputs that cannot be
processed at all.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pydantic import ValidationError


class GraphError(ValueError):
    """Base class for shader graph errors."""

    pass


class NodeNotFoundError(GraphError, KeyError):
    """Raised by strict lookups when a named node does not exist."""

    def __init__(self, node_id: str) -> None:
        self.node_id = node_id
        super().__init__(f"Node not found: '{node_id}'")

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return str(self.args[0])


class ArityOverflowError(GraphError):
    """Raised when a variadic node has more inputs than handle letters."""

    def __init__(self, node_id: str, edge_count: int, alphabet_size: int) -> None:
        self.node_id = node_id
        self.edge_count = edge_count
        self.alphabet_size = alphabet_size
        super().__init__(f"Variadic node '{node_id}' has {edge_count} inbound edges but only {alphabet_size} input handles are available")


class SpliceError(GraphError):
    """Raised when an incoming graph has no content left to splice."""

    pass


class GraphDocumentError(GraphError):
    """Raised when a serialized graph document fails validation."""

    def __init__(self, message: str, *, validation_error: ValidationError | None = None) -> None:
        self.validation_error = validation_error
        super().__init__(message)
