"""
Error taxonomy for the policy engine.

- NotFoundError: a dimension name or policy id does not resolve to an active row
- ConstraintViolationError: a policy tuple already exists (active or soft-deleted)
- FatalStorageError: persistence is unavailable or returned an unexpected failure
"""

from typing import Any


class RBACError(Exception):
    """Base class for all engine errors."""

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if not self.details:
            return self.message
        extra = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({extra})"


class NotFoundError(RBACError):
    """Raised when a name or id does not resolve to an active row."""
    pass


class ConstraintViolationError(RBACError):
    """Raised when inserting a policy tuple that already exists in any state."""
    pass


class FatalStorageError(RBACError):
    """Raised when the storage layer fails. Not retried inside the engine."""
    pass
