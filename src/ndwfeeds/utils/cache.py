from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    value: T
    stored_at: float


class TtlCache(Generic[T]):
    """Process-wide in-memory cache with a per-call TTL and single-flight refresh.

    An entry is never served once `now - stored_at >= ttl_seconds`. While a key is being
    refreshed, concurrent callers await the same in-flight task instead of starting their own
    upstream fetch.
    """

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._store: dict[str, CacheEntry[T]] = {}
        self._inflight: dict[str, asyncio.Task[T]] = {}

    def get(self, key: str, ttl_seconds: float) -> Optional[T]:
        if not self.enabled:
            return None
        entry = self._store.get(key)
        if entry is None:
            return None
        if time.time() - entry.stored_at >= ttl_seconds:
            self._store.pop(key, None)
            return None
        return entry.value

    def set(self, key: str, value: T) -> None:
        if not self.enabled:
            return
        self._store[key] = CacheEntry(value=value, stored_at=time.time())

    def age_seconds(self, key: str) -> Optional[float]:
        entry = self._store.get(key)
        if entry is None:
            return None
        return time.time() - entry.stored_at

    def clear(self) -> int:
        count = len(self._store)
        self._store.clear()
        return count

    async def _refresh(self, key: str, loader: Callable[[], Awaitable[T]]) -> T:
        try:
            value = await loader()
            self.set(key, value)
            return value
        finally:
            self._inflight.pop(key, None)

    async def get_or_load(
        self, key: str, ttl_seconds: float, loader: Callable[[], Awaitable[T]]
    ) -> tuple[T, bool]:
        """Return `(value, cache_hit)`, loading through `loader` on a miss."""

        cached = self.get(key, ttl_seconds)
        if cached is not None:
            logger.debug("Cache hit for %s.", key)
            return cached, True

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._refresh(key, loader))
            self._inflight[key] = task
        else:
            logger.debug("Joining in-flight refresh for %s.", key)
        return await task, False
