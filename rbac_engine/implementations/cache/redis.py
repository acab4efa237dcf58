"""
Redis cache backend.

Lets several worker processes share one policy index, so an
invalidation in one worker is seen by all of them.
"""

from __future__ import annotations

import json
from typing import Any

import redis.asyncio as redis
import structlog

logger = structlog.get_logger()


class RedisCacheBackend:
    """
    Stores JSON-encoded values under optionally prefixed keys.

    Usage:
        cache = RedisCacheBackend("redis://localhost:6379/0", prefix="svc:")
        await cache.connect()
        await cache.set("rbac:policy_index", index.to_dict(), ttl=300)
        await cache.disconnect()
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        prefix: str = "",
        default_ttl: int = 3600,
    ):
        self.redis_url = redis_url
        self.prefix = prefix
        self.default_ttl = default_ttl
        self._client: redis.Redis | None = None

    async def connect(self) -> None:
        """Open the connection pool and check the server answers."""
        if self._client is not None:
            return
        self._client = redis.from_url(
            self.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
        await self._client.ping()
        logger.info("Connected to Redis", prefix=self.prefix)

    async def disconnect(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            raise RuntimeError("Cache not connected. Call connect() first.")
        return self._client

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def _expiry(self, ttl: int | None) -> int | None:
        """Seconds for SET ex=. None stores without expiry."""
        seconds = self.default_ttl if ttl is None else ttl
        return seconds if seconds > 0 else None

    @staticmethod
    def _encode(value: Any) -> str:
        return json.dumps(value, separators=(",", ":"))

    @staticmethod
    def _decode(raw: str | None) -> Any | None:
        return None if raw is None else json.loads(raw)

    async def get(self, key: str) -> Any | None:
        return self._decode(await self.client.get(self._key(key)))

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        stored = await self.client.set(
            self._key(key),
            self._encode(value),
            ex=self._expiry(ttl),
        )
        return bool(stored)

    async def delete(self, key: str) -> bool:
        return await self.client.delete(self._key(key)) > 0

    async def exists(self, key: str) -> bool:
        return await self.client.exists(self._key(key)) > 0

    async def ttl(self, key: str) -> int | None:
        remaining = await self.client.ttl(self._key(key))
        # -1: no expiry, -2: missing key
        return remaining if remaining >= 0 else None
