"""
Time-windowed caching in front of the exchange API.

Two independent caches are built by the app factory and live for the
process lifetime:

  - a short-TTL cache (180s) for ticker snapshots
  - a long-TTL cache (3600s) for closing-price series, which only change
    once per bar

Expiry is lazy: an entry older than the TTL is treated as absent and
dropped on the next read, with no background sweep.  Writes only ever
insert-or-replace a whole entry.  Failed fetches are never stored, so the
next call for the same key goes upstream again.

Concurrent misses on the same key are coalesced: the first caller starts
the fetch, later callers await the same task.  Each caller awaits a
shielded view of that task, so cancelling one caller leaves the fetch
running for the others.  ``clear()`` starts a new generation: fetches that
began before it still answer their callers but are not written back.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, Protocol, TypeVar

logger = logging.getLogger("cache")

T = TypeVar("T")

TTL_SNAPSHOT = 180.0
TTL_PRICE_SERIES = 3600.0


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    value: T
    stored_at: float


class TTLCache(Generic[T]):
    """In-process key/value store with a single TTL for every entry.

    ``now_fn`` defaults to ``time.monotonic`` and is injectable so tests
    can move the clock.
    """

    def __init__(
        self,
        ttl: float,
        *,
        name: str = "cache",
        now_fn: Optional[Callable[[], float]] = None,
    ):
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl!r}")
        self.ttl = ttl
        self.name = name
        self._now = now_fn or time.monotonic
        self._entries: dict[str, CacheEntry[T]] = {}
        self._inflight: dict[str, asyncio.Task] = {}
        self._generation = 0
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self._lookup(key) is not None

    def _lookup(self, key: str) -> CacheEntry[T] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._now() - entry.stored_at >= self.ttl:
            self._entries.pop(key, None)
            return None
        return entry

    def get(self, key: str) -> T | None:
        entry = self._lookup(key)
        if entry is None:
            self.misses += 1
            return None
        self.hits += 1
        return entry.value

    def set(self, key: str, value: T) -> None:
        self._entries[key] = CacheEntry(value=value, stored_at=self._now())

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> int:
        """Drop every entry and return how many were dropped."""
        dropped = len(self._entries)
        self._entries.clear()
        self._inflight.clear()
        self._generation += 1
        return dropped

    async def get_or_fetch(self, key: str, fetch: Callable[[], Awaitable[T]]) -> T:
        """Return the cached value for *key*, or await *fetch* and store it.

        Exceptions raised by *fetch* propagate to every waiter and leave
        the cache untouched.
        """
        cached = self.get(key)
        if cached is not None:
            logger.debug("cache_hit cache=%s key=%s", self.name, key)
            return cached

        task = self._inflight.get(key)
        if task is None:
            logger.debug("cache_miss cache=%s key=%s", self.name, key)
            task = asyncio.ensure_future(
                self._fetch_and_store(key, fetch, self._generation)
            )
            self._inflight[key] = task
        return await asyncio.shield(task)

    async def _fetch_and_store(
        self, key: str, fetch: Callable[[], Awaitable[T]], generation: int
    ) -> T:
        try:
            value = await fetch()
            if generation == self._generation:
                self.set(key, value)
            return value
        finally:
            if self._inflight.get(key) is asyncio.current_task():
                del self._inflight[key]

    def stats(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "ttl": self.ttl,
            "entries": len(self._entries),
            "hits": self.hits,
            "misses": self.misses,
        }


class KlineSource(Protocol):
    async def fetch_klines(
        self, symbol: str, interval: str, limit: int
    ) -> list[float]: ...


def price_series_key(symbol: str, interval: str, limit: int) -> str:
    """Canonical cache key, e.g. ``"BTCUSDT|1h|50"``."""
    return f"{symbol}|{interval}|{limit}"


class PriceSeriesCache:
    """Closing-price series keyed by ``(symbol, interval, limit)``.

    Bounds upstream kline calls to one per distinct key per TTL window,
    however many requests ask for the same series.
    """

    def __init__(
        self,
        source: KlineSource,
        *,
        ttl: float = TTL_PRICE_SERIES,
        now_fn: Optional[Callable[[], float]] = None,
    ):
        self._source = source
        self.cache: TTLCache[tuple[float, ...]] = TTLCache(
            ttl, name="price_series", now_fn=now_fn
        )

    async def get_or_fetch(self, symbol: str, interval: str, limit: int) -> list[float]:
        key = price_series_key(symbol, interval, limit)

        async def _fetch() -> tuple[float, ...]:
            closes = await self._source.fetch_klines(symbol, interval, limit)
            return tuple(closes)

        series = await self.cache.get_or_fetch(key, _fetch)
        # callers get their own list; the stored tuple stays shared read-only
        return list(series)
