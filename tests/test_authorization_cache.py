"""
Tests for the cache-aside authorization layer.
"""

import pytest
from sqlalchemy.exc import OperationalError

from rbac_engine.core.exceptions import FatalStorageError
from rbac_engine.implementations.cache import MemoryCacheBackend
from rbac_engine.repositories.policy import PolicyRepository
from rbac_engine.services.authorization import DEFAULT_CACHE_KEY, AuthorizationCache
from rbac_engine.services.index import Grant


async def create_committed(db, seed, **overrides):
    dims = {
        "role": seed.admin,
        "permission": seed.read,
        "resource": seed.user,
        "scope": seed.global_,
        **overrides,
    }
    policy = await PolicyRepository(db).create_policy(**dims)
    await db.commit()
    return policy


@pytest.mark.asyncio
async def test_miss_builds_and_stores_index(db, seed, authorization, memory_cache):
    policy = await create_committed(db, seed)

    index = await authorization.get_index()

    assert index.lookup("admin", "read", "user", "global") == str(policy.id)
    assert await memory_cache.get(DEFAULT_CACHE_KEY) == index.to_dict()
    assert 0 < await memory_cache.ttl(DEFAULT_CACHE_KEY) <= 3600


@pytest.mark.asyncio
async def test_hit_does_not_touch_storage(db, seed, authorization, monkeypatch):
    await create_committed(db, seed)
    await authorization.get_index()

    async def fail():
        raise AssertionError("index rebuilt on a cache hit")

    monkeypatch.setattr(authorization, "rebuild", fail)

    assert await authorization.authorize("admin", "read", "user", "global")


@pytest.mark.asyncio
async def test_changing_served_index_leaves_cache_alone(db, seed, authorization):
    await create_committed(db, seed)

    index = await authorization.get_index()
    index.add("ghost", "read", "user", "global", "forged")
    assert not await authorization.authorize("ghost", "read", "user", "global")

    cached = await authorization.get_index()
    cached.add("ghost", "read", "user", "global", "forged")
    assert not await authorization.authorize("ghost", "read", "user", "global")
    assert await authorization.authorize("admin", "read", "user", "global")


@pytest.mark.asyncio
async def test_cached_index_is_served_until_invalidated(db, seed, authorization):
    assert not await authorization.authorize("admin", "read", "user", "global")

    await create_committed(db, seed)

    # Still the empty index
    assert not await authorization.authorize("admin", "read", "user", "global")

    await authorization.invalidate()

    assert await authorization.authorize("admin", "read", "user", "global")


@pytest.mark.asyncio
async def test_expired_index_is_rebuilt(db, seed, session_factory):
    now = [0.0]
    cache = MemoryCacheBackend(clock=lambda: now[0])
    authorization = AuthorizationCache(cache, session_factory, ttl=60)

    assert not await authorization.authorize("admin", "read", "user", "global")
    await create_committed(db, seed)

    now[0] = 59.0
    assert not await authorization.authorize("admin", "read", "user", "global")

    now[0] = 60.0
    assert await authorization.authorize("admin", "read", "user", "global")


@pytest.mark.asyncio
async def test_authorize_is_case_insensitive(db, seed, authorization):
    await create_committed(db, seed)

    assert await authorization.authorize("ADMIN", " Read", "User ", "GLOBAL")
    assert not await authorization.authorize("admin", "write", "user", "global")
    assert not await authorization.authorize("editor", "read", "user", "global")


@pytest.mark.asyncio
async def test_soft_deleted_policy_is_not_authorized(db, seed, authorization):
    policy = await create_committed(db, seed)
    await PolicyRepository(db).soft_delete(policy.id)
    await db.commit()

    assert not await authorization.authorize("admin", "read", "user", "global")


@pytest.mark.asyncio
async def test_policy_on_deleted_dimension_is_not_authorized(db, seed, authorization):
    await create_committed(db, seed)
    seed.admin.is_deleted = True
    await db.commit()

    assert not await authorization.authorize("admin", "read", "user", "global")


@pytest.mark.asyncio
async def test_find_policy_id(db, seed, authorization):
    policy = await create_committed(db, seed)

    assert await authorization.find_policy_id("admin", "read", "user", "global") == str(policy.id)
    assert await authorization.find_policy_id("admin", "read", "user", "self") is None


@pytest.mark.asyncio
async def test_grants_for_role(db, seed, authorization):
    read = await create_committed(db, seed)
    write = await create_committed(db, seed, permission=seed.write, scope=seed.self_)

    grants = await authorization.grants_for_role("Admin")

    assert sorted(grants) == sorted([
        Grant("ADMIN", "READ", "USER", "GLOBAL", str(read.id)),
        Grant("ADMIN", "WRITE", "USER", "SELF", str(write.id)),
    ])
    assert await authorization.grants_for_role("editor") == []


@pytest.mark.asyncio
async def test_custom_key_and_ttl(session_factory, memory_cache):
    authorization = AuthorizationCache(memory_cache, session_factory, ttl=0, key="tenant:index")

    await authorization.get_index()

    assert await memory_cache.exists("tenant:index")
    assert await memory_cache.ttl("tenant:index") is None
    assert not await memory_cache.exists(DEFAULT_CACHE_KEY)


@pytest.mark.asyncio
async def test_storage_failure_is_fatal(authorization, memory_cache, monkeypatch):
    async def broken(self):
        raise OperationalError("SELECT", {}, Exception("database is down"))

    monkeypatch.setattr(PolicyRepository, "list_active_with_dimensions", broken)

    with pytest.raises(FatalStorageError):
        await authorization.authorize("admin", "read", "user", "global")

    assert not await memory_cache.exists(DEFAULT_CACHE_KEY)
