"""
Dimension Store - lookup of active Roles, Permissions, Resources and Scopes.

The policy engine only needs one thing from the dimension tables: turn a
textual name into the active row it denotes.

Usage:
    store = DimensionStore(db)
    role = await store.find_active_by_name(DimensionKind.ROLE, " Admin ")

    resolved, missing = await store.resolve("admin", "read", "user", "global")
    if resolved is None:
        print("unknown:", missing)
"""

from dataclasses import dataclass
from typing import Any

import structlog
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession

from rbac_engine.core.exceptions import NotFoundError
from rbac_engine.models.dimension import (
    DimensionKind,
    Permission,
    Resource,
    Role,
    Scope,
)
from rbac_engine.utils.names import normalize_name

from .base import SoftDeleteRepository

logger = structlog.get_logger()


class DimensionRepository(SoftDeleteRepository[Any]):
    """Repository over one dimension table."""

    def __init__(self, db: AsyncSession, kind: DimensionKind):
        super().__init__(db)
        self.kind = kind
        self.model = kind.model

    async def find_active_by_name(self, name: str | None) -> Any | None:
        """Active row whose name matches case-insensitively, or None."""
        name = normalize_name(name)
        if not name:
            return None
        stmt = self._base_query().where(func.lower(self.model.name) == name)
        result = await self.db.execute(stmt)
        return result.scalars().first()


@dataclass(frozen=True)
class ResolvedDimensions:
    """The four active rows an intent's names resolved to."""

    role: Role
    permission: Permission
    resource: Resource
    scope: Scope


class DimensionStore:
    """
    Name lookups across all four dimension tables.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self._repositories = {
            kind: DimensionRepository(db, kind) for kind in DimensionKind
        }

    @staticmethod
    def kind_of(kind: DimensionKind | str) -> DimensionKind:
        """Kinds are matched like names: trimmed and case-insensitive."""
        return DimensionKind(kind.strip().lower())

    def repository(self, kind: DimensionKind | str) -> DimensionRepository:
        return self._repositories[self.kind_of(kind)]

    async def find_active_by_name(
        self,
        kind: DimensionKind | str,
        name: str | None,
    ) -> Any | None:
        """
        Find a non-deleted dimension row by name.

        The name is trimmed and lower-cased first. No side effects.
        """
        return await self.repository(kind).find_active_by_name(name)

    async def get_active_by_name(self, kind: DimensionKind | str, name: str | None) -> Any:
        """Like find_active_by_name, but raises NotFoundError when absent."""
        entity = await self.find_active_by_name(kind, name)
        if entity is None:
            kind = self.kind_of(kind)
            raise NotFoundError(
                f"{kind.value.capitalize()} not found",
                kind=kind.value,
                name=normalize_name(name),
            )
        return entity

    async def resolve(
        self,
        role: str | None,
        permission: str | None,
        resource: str | None,
        scope: str | None,
    ) -> tuple[ResolvedDimensions | None, list[DimensionKind]]:
        """
        Resolve the four names of a policy tuple.

        Returns:
            (ResolvedDimensions, []) when all four resolve, otherwise
            (None, [kinds that did not resolve]).
        """
        names = {
            DimensionKind.ROLE: role,
            DimensionKind.PERMISSION: permission,
            DimensionKind.RESOURCE: resource,
            DimensionKind.SCOPE: scope,
        }
        found: dict[DimensionKind, Any] = {}
        missing: list[DimensionKind] = []

        # One session cannot run statements concurrently, so look up in turn
        for kind, name in names.items():
            entity = await self.find_active_by_name(kind, name)
            if entity is None:
                missing.append(kind)
            else:
                found[kind] = entity

        if missing:
            logger.debug(
                "Dimension names did not resolve",
                missing=[kind.value for kind in missing],
            )
            return None, missing

        return (
            ResolvedDimensions(
                role=found[DimensionKind.ROLE],
                permission=found[DimensionKind.PERMISSION],
                resource=found[DimensionKind.RESOURCE],
                scope=found[DimensionKind.SCOPE],
            ),
            [],
        )

    async def require(
        self,
        role: str | None,
        permission: str | None,
        resource: str | None,
        scope: str | None,
    ) -> ResolvedDimensions:
        """Resolve all four names or raise NotFoundError naming the missing ones."""
        resolved, missing = await self.resolve(role, permission, resource, scope)
        if resolved is None:
            raise NotFoundError(
                "One or more referenced entities do not exist",
                missing=[kind.value for kind in missing],
            )
        return resolved
