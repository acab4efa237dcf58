"""
Policy Store - persistence of (role, permission, resource, scope) tuples.

Because the tuple constraint also covers soft-deleted rows, callers must
never insert blindly. The sequence is always:

    find_active -> found: nothing to do
    find_any    -> found: restore
    otherwise   -> create
"""

from uuid import UUID

import structlog
from sqlalchemy import Select, select
from sqlalchemy.exc import IntegrityError

from rbac_engine.core.exceptions import ConstraintViolationError
from rbac_engine.models.dimension import Permission, Resource, Role, Scope
from rbac_engine.models.policy import Policy
from rbac_engine.utils.pagination import OffsetPage, paginate_offset

from .base import SoftDeleteRepository

logger = structlog.get_logger()


class PolicyRepository(SoftDeleteRepository[Policy]):
    """Repository for Policy rows."""

    model = Policy

    def _tuple_query(
        self,
        role: Role,
        permission: Permission,
        resource: Resource,
        scope: Scope,
    ) -> Select:
        return select(Policy).where(
            Policy.role_id == role.id,
            Policy.permission_id == permission.id,
            Policy.resource_id == resource.id,
            Policy.scope_id == scope.id,
        )

    async def find_active(
        self,
        role: Role,
        permission: Permission,
        resource: Resource,
        scope: Scope,
    ) -> Policy | None:
        """Active policy for the tuple, or None."""
        stmt = self._tuple_query(role, permission, resource, scope).where(
            Policy.is_deleted.is_(False)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def find_any(
        self,
        role: Role,
        permission: Permission,
        resource: Resource,
        scope: Scope,
    ) -> Policy | None:
        """Policy for the tuple in any state. Used to choose create vs. restore."""
        stmt = self._tuple_query(role, permission, resource, scope)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def create_policy(
        self,
        role: Role,
        permission: Permission,
        resource: Resource,
        scope: Scope,
        actor_id: UUID | None = None,
    ) -> Policy:
        """
        Insert a new policy row.

        Raises:
            ConstraintViolationError: the tuple already exists, active or
                soft-deleted. The session is rolled back.
        """
        # A failed flush expires loaded rows, so read names first
        details = {
            "role": role.name,
            "permission": permission.name,
            "resource": resource.name,
            "scope": scope.name,
        }
        try:
            return await self.create(
                role_id=role.id,
                permission_id=permission.id,
                resource_id=resource.id,
                scope_id=scope.id,
                created_by=actor_id,
                updated_by=actor_id,
                is_deleted=False,
            )
        except IntegrityError as exc:
            await self.db.rollback()
            raise ConstraintViolationError("Policy tuple already exists", **details) from exc

    async def repoint(
        self,
        policy: Policy,
        role: Role,
        permission: Permission,
        resource: Resource,
        scope: Scope,
        actor_id: UUID | None = None,
    ) -> Policy:
        """
        Move an existing row to another tuple.

        Raises:
            ConstraintViolationError: another row already holds the tuple.
        """
        policy_id = str(policy.id)
        policy.role_id = role.id
        policy.permission_id = permission.id
        policy.resource_id = resource.id
        policy.scope_id = scope.id
        policy.updated_by = actor_id
        try:
            await self.db.flush()
        except IntegrityError as exc:
            await self.db.rollback()
            raise ConstraintViolationError(
                "Policy tuple already exists",
                policy_id=policy_id,
            ) from exc
        # Relationships still point at the old rows until reloaded
        await self.db.refresh(policy)
        return policy

    async def list_active(self, page: int = 1, limit: int = 10) -> OffsetPage[Policy]:
        """Active policies, oldest first."""
        stmt = self._base_query().order_by(Policy.created_at, Policy.id)
        return await paginate_offset(self.db, stmt, page=page, limit=limit)

    async def list_active_with_dimensions(self) -> list[Policy]:
        """
        Every active policy with its four dimension rows populated.

        Feeds the policy index builder.
        """
        result = await self.db.execute(self._base_query())
        policies = list(result.scalars().all())
        logger.debug("Loaded active policies", count=len(policies))
        return policies
