"""Exceptions raised across the generation, editing, and persistence layers."""

from typing import Any


class BlockCanvasError(Exception):
    """Base class for block canvas errors."""

    def __init__(self, message: str, diagram_id: str | None = None):
        self.message = message
        self.diagram_id = diagram_id
        super().__init__(self.message)


class InputValidationError(BlockCanvasError):
    """Raised when a request cannot be served with the given input."""
    pass


class DiagramNotFoundError(InputValidationError):
    """Raised when a referenced diagram does not exist."""
    pass


class ProviderError(BlockCanvasError):
    """Raised when the text-analysis provider fails or answers garbage.

    Never reaches a caller: the section parser recovers by falling back
    to pattern matching.
    """

    def __init__(self, message: str, response_snippet: str | None = None):
        super().__init__(message)
        self.response_snippet = response_snippet


class PersistenceError(BlockCanvasError):
    """Raised when the diagram store is unavailable or a write fails."""
    pass


class DiagramValidationError(PersistenceError):
    """Raised when a diagram fails model validation before it is saved."""

    def __init__(
        self,
        message: str,
        diagram_id: str | None = None,
        details: list[dict[str, Any]] | None = None,
    ):
        super().__init__(message, diagram_id=diagram_id)
        self.details = details or []
