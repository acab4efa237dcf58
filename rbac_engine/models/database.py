"""
Database engine and session factory construction.

Nothing connects at import time; the engine facade builds both from
settings and disposes the engine on shutdown.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)

from rbac_engine.core.config import DatabaseSettings


def build_engine(db_settings: DatabaseSettings) -> AsyncEngine:
    """Async engine for the configured URL."""
    options: dict = {"echo": db_settings.echo}
    # SQLite drivers use a pool without size options
    if not db_settings.url.startswith("sqlite"):
        options.update(
            pool_size=db_settings.pool_size,
            max_overflow=db_settings.pool_overflow,
            pool_timeout=db_settings.pool_timeout,
            pool_pre_ping=True,
        )
    return create_async_engine(db_settings.url, **options)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Sessions keep loaded rows usable after commit."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
