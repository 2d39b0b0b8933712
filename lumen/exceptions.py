"""
Exception hierarchy for the Lumen preview core.

Nothing raised here is fatal: callers degrade to the last good display state
or to a default recipe.
"""

from typing import Optional


class LumenError(Exception):
    """Base exception for Lumen operations."""
    pass


class RequestFailed(LumenError):
    """Raised when a rendering service request fails (transport or service error)."""

    def __init__(self, message: str, command: Optional[str] = None):
        super().__init__(message)
        self.command = command


class RecipeLoadError(RequestFailed):
    """Raised when a persisted recipe cannot be loaded."""
    pass


class RecipeNotFound(RecipeLoadError):
    """Raised when no recipe exists for an asset and the caller requires one."""
    pass


class PersistFailed(RequestFailed):
    """Raised when saving a recipe fails. Logged by the sync boundary, never surfaced."""
    pass


class Superseded(LumenError):
    """Internal signal: a newer generation replaced the one that produced a result."""
    pass
