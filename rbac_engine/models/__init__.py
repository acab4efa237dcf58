"""
Database models.
"""

from .base import (
    Base,
    TimestampMixin,
    AuditMixin,
    SoftDeleteMixin,
    UUIDMixin,
    StandardMixin,
    AuditedMixin,
)
from .user import User
from .dimension import (
    Dimension,
    DimensionKind,
    DimensionMixin,
    Permission,
    Resource,
    Role,
    Scope,
)
from .policy import Policy

__all__ = [
    # Base
    "Base",
    # Mixins
    "TimestampMixin",
    "AuditMixin",
    "SoftDeleteMixin",
    "UUIDMixin",
    "StandardMixin",
    "AuditedMixin",
    "DimensionMixin",
    # Models
    "User",
    "Role",
    "Permission",
    "Resource",
    "Scope",
    "Policy",
    # Dimension helpers
    "Dimension",
    "DimensionKind",
]
