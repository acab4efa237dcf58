"""
Cache backend protocol.
Implementations: MemoryCacheBackend, RedisCacheBackend
"""
from __future__ import annotations

from typing import Protocol, Any


class CacheBackend(Protocol):
    """
    Holder of the compiled policy index.

    Values are JSON-compatible (nested dicts of strings) so that every
    backend can store them. A write replaces the whole value; there are
    no partial updates.
    """

    async def get(self, key: str) -> Any | None:
        """Value stored under key, or None when absent or expired."""
        ...

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Replace the value. ttl in seconds, 0 keeps it until deleted."""
        ...

    async def delete(self, key: str) -> bool:
        """Drop the value. Returns True if something was removed."""
        ...

    async def exists(self, key: str) -> bool:
        ...

    async def ttl(self, key: str) -> int | None:
        """Remaining lifetime in seconds. None if no expiry or key missing."""
        ...
