"""
In-process cache backend.

The default holder of the policy index when a single worker serves
authorization checks.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable


@dataclass(frozen=True)
class CacheEntry:
    """A stored value and the clock reading at which it expires."""
    value: Any
    expires_at: float | None = None

    def expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at


class MemoryCacheBackend:
    """
    Dict-backed cache with per-entry expiry.

    Entries are immutable and a write swaps the whole entry, so a reader
    gets either the old index or the new one, never a mix.

    Note: Data is not shared between processes. Use RedisCacheBackend
    when several workers must see the same invalidation.

    Usage:
        cache = MemoryCacheBackend(default_ttl=300)
        await cache.set("rbac:policy_index", index.to_dict())
        tree = await cache.get("rbac:policy_index")
    """

    def __init__(
        self,
        default_ttl: int = 3600,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_ttl = default_ttl
        self.clock = clock
        self._store: dict[str, CacheEntry] = {}

    def _live_entry(self, key: str) -> CacheEntry | None:
        entry = self._store.get(key)
        if entry is not None and entry.expired(self.clock()):
            # Lazy eviction on read
            del self._store[key]
            return None
        return entry

    async def get(self, key: str) -> Any | None:
        entry = self._live_entry(key)
        return None if entry is None else entry.value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        seconds = self.default_ttl if ttl is None else ttl
        expires_at = self.clock() + seconds if seconds > 0 else None
        self._store[key] = CacheEntry(value=value, expires_at=expires_at)
        return True

    async def delete(self, key: str) -> bool:
        return self._store.pop(key, None) is not None

    async def exists(self, key: str) -> bool:
        return self._live_entry(key) is not None

    async def ttl(self, key: str) -> int | None:
        entry = self._live_entry(key)
        if entry is None or entry.expires_at is None:
            return None
        return max(0, int(entry.expires_at - self.clock()))

    async def clear(self) -> None:
        """Drop every entry."""
        self._store.clear()
