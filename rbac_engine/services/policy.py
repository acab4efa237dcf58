"""
Policy service - single-policy operations outside the reconciler.

Every mutation commits and then invalidates the authorization cache, so
checks never keep serving a policy set that no longer exists.

Usage:
    service = PolicyService(db, authorization_cache)
    policy = await service.create_policy("admin", "read", "user", "global", actor_id=user.id)
    await service.delete_policy(policy.id, actor_id=user.id)
"""

from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from rbac_engine.core.exceptions import ConstraintViolationError, NotFoundError
from rbac_engine.models.policy import Policy
from rbac_engine.repositories.dimension import DimensionStore
from rbac_engine.repositories.policy import PolicyRepository
from rbac_engine.services.authorization import AuthorizationCache
from rbac_engine.utils.pagination import OffsetPage

logger = structlog.get_logger()


class PolicyService:
    """CRUD for individual policies, addressed by dimension names."""

    def __init__(self, db: AsyncSession, authorization: AuthorizationCache):
        self.db = db
        self.authorization = authorization
        self.dimensions = DimensionStore(db)
        self.policies = PolicyRepository(db)

    async def create_policy(
        self,
        role: str,
        permission: str,
        resource: str,
        scope: str,
        actor_id: UUID | None = None,
    ) -> Policy:
        """
        Create a policy, or restore it if the tuple was soft-deleted.

        Raises:
            NotFoundError: a name does not resolve to an active row
            ConstraintViolationError: the policy is already active
        """
        dims = await self.dimensions.require(role, permission, resource, scope)
        args = (dims.role, dims.permission, dims.resource, dims.scope)

        if await self.policies.find_active(*args):
            raise ConstraintViolationError(
                "This policy already exists",
                role=dims.role.name,
                permission=dims.permission.name,
                resource=dims.resource.name,
                scope=dims.scope.name,
            )

        existing = await self.policies.find_any(*args)
        if existing:
            policy = await self.policies.restore(existing.id, actor_id=actor_id)
            logger.info("Policy restored", policy_id=str(policy.id))
        else:
            policy = await self.policies.create_policy(*args, actor_id=actor_id)
            logger.info("Policy created", policy_id=str(policy.id))

        await self.db.commit()
        await self.authorization.invalidate()
        return policy

    async def get_policy(self, policy_id: UUID) -> Policy:
        """Active policy by id. Raises NotFoundError."""
        policy = await self.policies.get_by_id(policy_id)
        if not policy:
            raise NotFoundError("Policy not found", policy_id=str(policy_id))
        return policy

    async def list_policies(self, page: int = 1, limit: int = 10) -> OffsetPage[Policy]:
        """Active policies, oldest first."""
        return await self.policies.list_active(page=page, limit=limit)

    async def update_policy(
        self,
        policy_id: UUID,
        role: str,
        permission: str,
        resource: str,
        scope: str,
        actor_id: UUID | None = None,
    ) -> Policy:
        """
        Point an active policy at another tuple.

        Raises:
            NotFoundError: policy or a name does not resolve
            ConstraintViolationError: another row already holds the tuple
        """
        policy = await self.get_policy(policy_id)
        dims = await self.dimensions.require(role, permission, resource, scope)

        other = await self.policies.find_any(
            dims.role, dims.permission, dims.resource, dims.scope
        )
        if other and other.id != policy.id:
            raise ConstraintViolationError(
                "Another policy already uses this tuple",
                policy_id=str(policy_id),
                conflicting_policy_id=str(other.id),
            )

        policy = await self.policies.repoint(
            policy,
            dims.role,
            dims.permission,
            dims.resource,
            dims.scope,
            actor_id=actor_id,
        )
        await self.db.commit()
        await self.authorization.invalidate()
        logger.info("Policy updated", policy_id=str(policy.id))
        return policy

    async def delete_policy(self, policy_id: UUID, actor_id: UUID | None = None) -> Policy:
        """Soft delete an active policy. Raises NotFoundError."""
        policy = await self.policies.soft_delete(policy_id, actor_id=actor_id)
        if not policy:
            raise NotFoundError("Policy not found", policy_id=str(policy_id))

        await self.db.commit()
        await self.authorization.invalidate()
        logger.info("Policy deleted", policy_id=str(policy.id))
        return policy
