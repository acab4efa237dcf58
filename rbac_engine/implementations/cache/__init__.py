"""Cache backend implementations."""

from rbac_engine.core.config import AuthzCacheSettings, RedisSettings
from rbac_engine.core.interfaces.cache import CacheBackend
from rbac_engine.implementations.cache.memory import MemoryCacheBackend
from rbac_engine.implementations.cache.redis import RedisCacheBackend

__all__ = ["MemoryCacheBackend", "RedisCacheBackend", "create_cache_backend"]


def create_cache_backend(
    cache_settings: AuthzCacheSettings,
    redis_settings: RedisSettings | None = None,
) -> CacheBackend:
    """Build the configured cache backend. Redis backends still need connect()."""
    if cache_settings.backend == "redis":
        redis_settings = redis_settings or RedisSettings()
        return RedisCacheBackend(
            redis_url=redis_settings.url,
            prefix=cache_settings.prefix,
            default_ttl=cache_settings.ttl,
        )
    return MemoryCacheBackend(default_ttl=cache_settings.ttl)
