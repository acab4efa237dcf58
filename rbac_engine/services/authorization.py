"""
Authorization Cache - cache-aside holder of the process-wide policy index.

There is exactly one cache entry: the whole index. On a miss (absent or
expired) the index is rebuilt from storage and stored with the configured
TTL; the entry is only ever replaced, never modified in place.

Concurrent misses may each rebuild. Every rebuild is independent and
produces the same result for the same data; the last write wins.

Usage:
    authz = AuthorizationCache(MemoryCacheBackend(), session_factory, ttl=300)

    if await authz.authorize("admin", "read", "user", "global"):
        ...

    # after changing policies
    await authz.invalidate()
"""

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rbac_engine.core.exceptions import FatalStorageError
from rbac_engine.core.interfaces.cache import CacheBackend
from rbac_engine.repositories.policy import PolicyRepository
from rbac_engine.services.index import Grant, PolicyIndex, build_policy_index

logger = structlog.get_logger()

DEFAULT_CACHE_KEY = "rbac:policy_index"


class AuthorizationCache:
    """
    Serves authorization checks from a cached PolicyIndex.

    Configuration:
        ttl: Index lifetime in seconds (default: 3600, 0 = until invalidated)
        key: Cache key of the single index entry
    """

    def __init__(
        self,
        cache: CacheBackend,
        session_factory: async_sessionmaker[AsyncSession],
        ttl: int = 3600,
        key: str = DEFAULT_CACHE_KEY,
    ):
        self.cache = cache
        self.session_factory = session_factory
        self.ttl = ttl
        self.key = key

    async def get_index(self) -> PolicyIndex:
        """Cached index, rebuilding it on a miss."""
        cached = await self.cache.get(self.key)
        if cached is not None:
            return PolicyIndex.from_dict(cached)

        logger.info("Policy index cache miss, rebuilding", key=self.key)
        index = await self.rebuild()
        await self.cache.set(self.key, index.to_dict(), ttl=self.ttl)
        return index

    async def rebuild(self) -> PolicyIndex:
        """
        Build a fresh index from storage without touching the cache.

        Raises:
            FatalStorageError: policies could not be loaded
        """
        try:
            async with self.session_factory() as db:
                policies = await PolicyRepository(db).list_active_with_dimensions()
                return build_policy_index(policies)
        except SQLAlchemyError as exc:
            logger.error("Failed to load policies for index", error=str(exc))
            raise FatalStorageError("Failed to load policies") from exc

    async def invalidate(self) -> None:
        """Drop the cached index; the next query rebuilds it."""
        await self.cache.delete(self.key)
        logger.info("Policy index invalidated", key=self.key)

    async def find_policy_id(
        self,
        role: str,
        permission: str,
        resource: str,
        scope: str,
    ) -> str | None:
        """Id of the policy that authorizes the tuple, or None."""
        index = await self.get_index()
        return index.lookup(role, permission, resource, scope)

    async def authorize(
        self,
        role: str,
        permission: str,
        resource: str,
        scope: str,
    ) -> bool:
        """
        May `role` exercise `permission` on `resource` within `scope`?

        Names are compared trimmed and case-insensitively.
        """
        policy_id = await self.find_policy_id(role, permission, resource, scope)
        allowed = policy_id is not None
        logger.debug(
            "Authorization checked",
            role=role,
            permission=permission,
            resource=resource,
            scope=scope,
            allowed=allowed,
            policy_id=policy_id,
        )
        return allowed

    async def grants_for_role(self, role: str) -> list[Grant]:
        """Every (permission, resource, scope) granted to a role."""
        index = await self.get_index()
        return list(index.grants(role))
