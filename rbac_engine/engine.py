"""
Authorization engine - the entry point used by the HTTP layer.

Exposes:
    authorize(role, permission, resource, scope) -> bool
    reconcile(intents) -> ReconcileReport   (raises FatalStorageError)
    invalidate_authorization_cache()

Usage:
    engine = get_authorization_engine()
    await engine.startup()

    await engine.reconcile([
        {"role": "admin", "permission": "read", "resource": "user",
         "scope": "global", "action": "grant"},
    ])
    assert await engine.authorize("Admin", "READ", " user ", "global")

    await engine.shutdown()
"""

from functools import lru_cache
from typing import Sequence
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from rbac_engine.core.config import get_settings
from rbac_engine.core.interfaces.cache import CacheBackend
from rbac_engine.core.logging import configure_logging
from rbac_engine.implementations.cache import create_cache_backend
from rbac_engine.models.database import build_engine, build_session_factory
from rbac_engine.services.authorization import DEFAULT_CACHE_KEY, AuthorizationCache
from rbac_engine.services.policy import PolicyService
from rbac_engine.services.reconciler import ACLReconciler, IntentInput, ReconcileReport

logger = structlog.get_logger()


class AuthorizationEngine:
    """Wires the authorization cache, reconciler and policy service together."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        cache_backend: CacheBackend,
        cache_ttl: int = 3600,
        cache_key: str = DEFAULT_CACHE_KEY,
        db_engine: AsyncEngine | None = None,
    ):
        self.session_factory = session_factory
        self.db_engine = db_engine
        self.cache_backend = cache_backend
        self.authorization = AuthorizationCache(
            cache_backend,
            session_factory,
            ttl=cache_ttl,
            key=cache_key,
        )

    async def startup(self) -> None:
        """Connect the cache backend if it needs a connection."""
        connect = getattr(self.cache_backend, "connect", None)
        if connect is not None:
            await connect()
        logger.info("Authorization engine started", cache=type(self.cache_backend).__name__)

    async def shutdown(self) -> None:
        """Disconnect the cache backend and dispose an owned database engine."""
        disconnect = getattr(self.cache_backend, "disconnect", None)
        if disconnect is not None:
            await disconnect()
        if self.db_engine is not None:
            await self.db_engine.dispose()

    async def authorize(self, role: str, permission: str, resource: str, scope: str) -> bool:
        return await self.authorization.authorize(role, permission, resource, scope)

    async def reconcile(
        self,
        intents: Sequence[IntentInput],
        actor_id: UUID | None = None,
    ) -> ReconcileReport:
        """Apply grant/revoke intents in a session of their own."""
        async with self.session_factory() as db:
            return await ACLReconciler(db, self.authorization).reconcile(
                intents, actor_id=actor_id
            )

    async def invalidate_authorization_cache(self) -> None:
        """Call after any policy or dimension change made outside this engine."""
        await self.authorization.invalidate()

    def policies(self, db: AsyncSession) -> PolicyService:
        """Single-policy operations bound to a request session."""
        return PolicyService(db, self.authorization)


@lru_cache
def get_authorization_engine() -> AuthorizationEngine:
    """Process-wide engine built from settings."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)

    db_engine = build_engine(settings.database)
    return AuthorizationEngine(
        session_factory=build_session_factory(db_engine),
        cache_backend=create_cache_backend(settings.authz_cache, settings.redis),
        cache_ttl=settings.authz_cache.ttl,
        cache_key=settings.authz_cache.key,
        db_engine=db_engine,
    )
