"""Bounded TTL cache with single-flight fetch coalescing.

Only touched from the event loop thread. ``fetch_or_join`` has no ``await``
between the cache check and registering the in-flight task, so concurrent
callers for the same key always find either a fresh entry or the pending
task.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import OrderedDict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass


Fetcher = Callable[[str], Awaitable[str]]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    content: str
    fetched_at: float


class ContentCache:
    def __init__(
        self,
        *,
        ttl_s: float,
        max_entries: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self._ttl_s = ttl_s
        self._max_entries = max_entries
        self._clock = clock
        # Front of the dict is the eviction candidate; get() moves hits to the back.
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._in_flight: dict[str, asyncio.Task[str]] = {}
        self._waiters: dict[str, int] = {}
        # Keys invalidated while their fetch was pending; that result must not be cached.
        self._stale: set[str] = set()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    @property
    def in_flight_count(self) -> int:
        return len(self._in_flight)

    def get(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.fetched_at >= self._ttl_s:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return entry.content

    def set(self, key: str, content: str) -> None:
        if key in self._entries:
            del self._entries[key]
        elif len(self._entries) >= self._max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("content_cache_evict", extra={"cache_key": key, "evicted": evicted})
        self._entries[key] = CacheEntry(content=content, fetched_at=self._clock())

    def invalidate(self, key: str | None = None) -> None:
        if key is None:
            self._entries.clear()
            self._stale.update(self._in_flight)
        else:
            self._entries.pop(key, None)
            if key in self._in_flight:
                self._stale.add(key)

    async def fetch_or_join(self, key: str, fetcher: Fetcher) -> str:
        cached = self.get(key)
        if cached is not None:
            logger.debug("content_cache_hit", extra={"cache_key": key})
            return cached

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._fetch(key, fetcher))
            self._in_flight[key] = task
        else:
            self._waiters[key] = self._waiters.get(key, 0) + 1
            logger.debug("content_fetch_joined", extra={"cache_key": key, "waiters": self._waiters[key]})

        # shield: one waiter being cancelled must not cancel the shared fetch.
        return await asyncio.shield(task)

    async def _fetch(self, key: str, fetcher: Fetcher) -> str:
        try:
            content = await fetcher(key)
            if key not in self._stale:
                self.set(key, content)
            return content
        finally:
            self._in_flight.pop(key, None)
            self._waiters.pop(key, None)
            self._stale.discard(key)
