"""Error taxonomy for metadata extraction."""
from __future__ import annotations

from typing import Optional


class MetaError(Exception):
    """Base class for every error raised by componentmeta."""


class InvalidStateError(MetaError):
    """Raised when a session operation is not allowed in its current state."""

    def __init__(self, operation: str, state: str) -> None:
        super().__init__(f"Cannot {operation} while session is {state}")
        self.operation = operation
        self.state = state


class ResolutionFailure(MetaError):
    """Raised when the collaborator cannot resolve a referenced type or declaration."""

    def __init__(self, message: str, node: Optional[str] = None) -> None:
        detail = f"{message} (at {node})" if node else message
        super().__init__(detail)
        self.node = node


class ConfigurationError(MetaError):
    """Raised when an exclude/ignore option is malformed or fails during evaluation."""


class PatchEventError(MetaError, ValueError):
    """Raised when an incremental patch event is malformed."""
