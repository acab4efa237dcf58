"""
Repository pattern for data access.
"""

from rbac_engine.repositories.base import BaseRepository, SoftDeleteRepository
from rbac_engine.repositories.dimension import (
    DimensionRepository,
    DimensionStore,
    ResolvedDimensions,
)
from rbac_engine.repositories.policy import PolicyRepository

__all__ = [
    "BaseRepository",
    "SoftDeleteRepository",
    "DimensionRepository",
    "DimensionStore",
    "ResolvedDimensions",
    "PolicyRepository",
]
