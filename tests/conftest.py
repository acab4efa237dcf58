"""
Pytest fixtures for testing.

Provides:
- Async SQLite database shared by every session of a test
- Factory fixtures for users and dimension rows
- In-memory cache and authorization cache wired to the test database
"""

from dataclasses import dataclass
from typing import AsyncGenerator
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from rbac_engine.implementations.cache import MemoryCacheBackend
from rbac_engine.models import Base, DimensionKind, Permission, Resource, Role, Scope, User
from rbac_engine.services.authorization import AuthorizationCache


# Test database URL (SQLite in-memory for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory bound to the test engine.

    StaticPool hands every session the same connection, so the sessions
    opened by the cache and the engine see what the test committed.
    """
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Database session for the test body."""
    async with session_factory() as session:
        yield session
        await session.rollback()


# ============ Factory Fixtures ============


class UserFactory:
    """Factory for creating test users."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        email: str | None = None,
        name: str = "Test User",
    ) -> User:
        """Create a user in the database."""
        email = email or f"test-{uuid4().hex[:8]}@example.com"

        user = User(email=email, name=name)
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        return user


class DimensionFactory:
    """Factory for roles, permissions, resources and scopes."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        kind: DimensionKind | str,
        name: str,
        description: str = "",
        is_deleted: bool = False,
    ):
        """Create and commit a dimension row."""
        model = DimensionKind(kind).model
        entity = model(name=name, description=description, is_deleted=is_deleted)
        self.db.add(entity)
        await self.db.commit()
        await self.db.refresh(entity)
        return entity

    async def role(self, name: str, **kwargs) -> Role:
        return await self.create(DimensionKind.ROLE, name, **kwargs)

    async def permission(self, name: str, **kwargs) -> Permission:
        return await self.create(DimensionKind.PERMISSION, name, **kwargs)

    async def resource(self, name: str, **kwargs) -> Resource:
        return await self.create(DimensionKind.RESOURCE, name, **kwargs)

    async def scope(self, name: str, **kwargs) -> Scope:
        return await self.create(DimensionKind.SCOPE, name, **kwargs)


@pytest_asyncio.fixture
async def user_factory(db: AsyncSession) -> UserFactory:
    """Fixture that provides UserFactory."""
    return UserFactory(db)


@pytest_asyncio.fixture
async def test_user(user_factory: UserFactory) -> User:
    """Create a standard test user."""
    return await user_factory.create()


@pytest_asyncio.fixture
async def dimension_factory(db: AsyncSession) -> DimensionFactory:
    """Fixture that provides DimensionFactory."""
    return DimensionFactory(db)


@dataclass
class Seed:
    """Dimension rows most tests build on."""

    admin: Role
    editor: Role
    read: Permission
    write: Permission
    user: Resource
    invoice: Resource
    global_: Scope
    self_: Scope


@pytest_asyncio.fixture
async def seed(dimension_factory: DimensionFactory) -> Seed:
    """admin/editor, read/write, user/invoice, global/self."""
    return Seed(
        admin=await dimension_factory.role("admin"),
        editor=await dimension_factory.role("editor"),
        read=await dimension_factory.permission("read"),
        write=await dimension_factory.permission("write"),
        user=await dimension_factory.resource("user"),
        invoice=await dimension_factory.resource("invoice"),
        global_=await dimension_factory.scope("global"),
        self_=await dimension_factory.scope("self"),
    )


# ============ Cache Fixtures ============


@pytest.fixture
def memory_cache() -> MemoryCacheBackend:
    return MemoryCacheBackend()


@pytest.fixture
def authorization(memory_cache, session_factory) -> AuthorizationCache:
    """Authorization cache over the in-memory backend and the test database."""
    return AuthorizationCache(memory_cache, session_factory, ttl=3600)
