"""Read-through cache with time-based expiry and in-flight de-duplication.

Profile lookups only drive display logic, so a failed fetch never reaches the
caller: it resolves to the partition's empty value and is not cached.

The check for an entry or a pending fetch and the registration of a new fetch
run without an ``await`` in between, so on the asyncio event loop at most one
fetch per key is ever running. A fetch that was invalidated while running still
answers its callers but does not write to the cache.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, TypeVar

from geomweb import constants

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")


def normalize_key(key: str | None) -> str:
    """Trim and lower-case a lookup key."""
    return (key or "").strip().lower()


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """A cached value and the clock reading after which it is stale."""

    value: T
    expires_at: float


class ProfileCache(Generic[T]):
    """One cache partition: its own entries and its own pending fetches.

    Args:
        fetch: Coroutine function loading the value for a normalized key.
        default: Factory for the value returned on empty keys and failures.
        ttl: Seconds a fetched value stays fresh.
        clock: Returns the current time in seconds.
        name: Label used in log messages.

    """

    def __init__(
        self,
        fetch: Callable[[str], Awaitable[T]],
        *,
        default: Callable[[], T],
        ttl: float = constants.CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        name: str = "profiles",
    ) -> None:
        self._fetch = fetch
        self._default = default
        self.ttl = ttl
        self._clock = clock
        self.name = name
        self._entries: dict[str, CacheEntry[T]] = {}
        self._pending: dict[str, asyncio.Task[T]] = {}

    async def get(self, key: str | None) -> T:
        """Return the value for ``key``, fetching it at most once concurrently."""
        cache_key = normalize_key(key)
        if not cache_key:
            return self._default()

        entry = self._entries.get(cache_key)
        if entry is not None and entry.expires_at > self._clock():
            return entry.value

        task = self._pending.get(cache_key)
        if task is None:
            task = asyncio.create_task(self._load(cache_key))
            self._pending[cache_key] = task
        return await asyncio.shield(task)

    async def _load(self, cache_key: str) -> T:
        try:
            value = await self._fetch(cache_key)
        except Exception:
            logger.warning("Lookup %s[%r] failed", self.name, cache_key, exc_info=True)
            return self._default()
        else:
            if self._pending.get(cache_key) is asyncio.current_task():
                self._entries[cache_key] = CacheEntry(value, self._clock() + self.ttl)
            return value
        finally:
            if self._pending.get(cache_key) is asyncio.current_task():
                del self._pending[cache_key]

    def invalidate(self, key: str | None) -> None:
        """Forget the cached value and the pending fetch for ``key``."""
        cache_key = normalize_key(key)
        self._entries.pop(cache_key, None)
        self._pending.pop(cache_key, None)

    def invalidate_all(self) -> None:
        """Forget every cached value and pending fetch."""
        self._entries.clear()
        self._pending.clear()

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        entry = self._entries.get(normalize_key(key))
        return entry is not None and entry.expires_at > self._clock()
