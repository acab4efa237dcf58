"""
RBAC policy resolution and reconciliation engine.

Answers "may role R perform permission P on resource X within scope S?"
from a cached index of active policies, and applies batches of
grant/revoke intents idempotently.
"""

from rbac_engine.core.exceptions import (
    ConstraintViolationError,
    FatalStorageError,
    NotFoundError,
    RBACError,
)
from rbac_engine.engine import AuthorizationEngine, get_authorization_engine

__version__ = "0.1.0"

__all__ = [
    "AuthorizationEngine",
    "get_authorization_engine",
    "RBACError",
    "NotFoundError",
    "ConstraintViolationError",
    "FatalStorageError",
]
