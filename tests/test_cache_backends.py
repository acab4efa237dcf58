"""
Tests for cache backends.
"""

import pytest

from rbac_engine.core.config import AuthzCacheSettings, RedisSettings
from rbac_engine.implementations.cache import (
    MemoryCacheBackend,
    RedisCacheBackend,
    create_cache_backend,
)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.mark.asyncio
async def test_memory_set_and_get(clock):
    cache = MemoryCacheBackend(clock=clock)

    await cache.set("key", {"ADMIN": {}}, ttl=60)

    assert await cache.get("key") == {"ADMIN": {}}
    assert await cache.exists("key")
    assert await cache.ttl("key") == 60


@pytest.mark.asyncio
async def test_memory_get_missing_key():
    cache = MemoryCacheBackend()

    assert await cache.get("missing") is None
    assert not await cache.exists("missing")
    assert await cache.ttl("missing") is None


@pytest.mark.asyncio
async def test_memory_entry_expires(clock):
    cache = MemoryCacheBackend(clock=clock)
    await cache.set("key", {"ADMIN": {}}, ttl=60)

    clock.advance(59)
    assert await cache.get("key") == {"ADMIN": {}}
    assert await cache.ttl("key") == 1

    clock.advance(1)
    assert await cache.get("key") is None
    assert "key" not in cache._store


@pytest.mark.asyncio
async def test_memory_zero_ttl_never_expires(clock):
    cache = MemoryCacheBackend(default_ttl=60, clock=clock)

    await cache.set("key", "value", ttl=0)
    clock.advance(10_000)

    assert await cache.ttl("key") is None
    assert await cache.get("key") == "value"


@pytest.mark.asyncio
async def test_memory_default_ttl_applies(clock):
    cache = MemoryCacheBackend(default_ttl=120, clock=clock)

    await cache.set("key", "value")

    assert await cache.ttl("key") == 120


@pytest.mark.asyncio
async def test_memory_set_replaces_entry(clock):
    cache = MemoryCacheBackend(clock=clock)
    await cache.set("key", {"OLD": {}}, ttl=10)

    await cache.set("key", {"NEW": {}}, ttl=100)
    clock.advance(50)

    assert await cache.get("key") == {"NEW": {}}


@pytest.mark.asyncio
async def test_memory_delete():
    cache = MemoryCacheBackend()
    await cache.set("key", "value")

    assert await cache.delete("key") is True
    assert await cache.delete("key") is False
    assert await cache.get("key") is None


@pytest.mark.asyncio
async def test_memory_clear():
    cache = MemoryCacheBackend()
    await cache.set("a", 1)
    await cache.set("b", 2)

    await cache.clear()

    assert await cache.get("a") is None
    assert await cache.get("b") is None


def test_redis_requires_connect():
    cache = RedisCacheBackend()

    with pytest.raises(RuntimeError):
        cache.client


def test_redis_key_prefix_and_expiry():
    cache = RedisCacheBackend(prefix="svc:", default_ttl=300)

    assert cache._key("rbac:policy_index") == "svc:rbac:policy_index"
    assert cache._expiry(None) == 300
    assert cache._expiry(0) is None
    assert cache._expiry(45) == 45
    assert RedisCacheBackend(default_ttl=0)._expiry(None) is None


def test_redis_encoding():
    tree = {"ADMIN": {"USER": {"READ": {"GLOBAL": "abc"}}}}

    assert RedisCacheBackend._decode(RedisCacheBackend._encode(tree)) == tree
    assert RedisCacheBackend._decode(None) is None


def test_create_memory_backend_by_default():
    backend = create_cache_backend(AuthzCacheSettings(ttl=42))

    assert isinstance(backend, MemoryCacheBackend)
    assert backend.default_ttl == 42


def test_create_redis_backend():
    backend = create_cache_backend(
        AuthzCacheSettings(backend="redis", prefix="svc:", ttl=10),
        RedisSettings(url="redis://cache:6379/1"),
    )

    assert isinstance(backend, RedisCacheBackend)
    assert backend.redis_url == "redis://cache:6379/1"
    assert backend.prefix == "svc:"
    assert backend.default_ttl == 10
