"""Keyed read-through cache.

Maps a scalar key (a quote id) to an optional value with time-based expiry
and single-flight population per key. A load for one key never blocks or
answers another key.

Absence (loader returns None) is cached for the TTL when `cache_absent` is
set, so repeated lookups of unknown ids do not reach the store. A raised
exception is never cached.

Expiry is lazy: an expired entry is dropped the next time its key is read.
There is no sweeper and no size bound.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Generic, Hashable, TypeVar

from magistr.cache.entry import CacheEntry, Flight
from magistr.observability.metrics import record_cache_hit, record_cache_load, record_cache_miss

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class KeyedCache(Generic[K, V]):
    """Time-expiring key to optional-value cache with per-key single-flight."""

    def __init__(
        self,
        loader: Callable[[K], Awaitable[V | None]],
        ttl: float,
        *,
        cache_absent: bool = True,
        name: str = "keyed",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        self._loader = loader
        self.ttl = ttl
        self.cache_absent = cache_absent
        self.name = name
        self._clock = clock
        self._entries: dict[K, CacheEntry[V | None]] = {}
        self._flights: dict[K, Flight[V | None]] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        entry = self._entries.get(key)  # type: ignore[call-overload]
        return entry is not None and not entry.expired(self._clock(), self.ttl)

    def loading(self, key: K) -> bool:
        """Whether a load for `key` is in flight."""
        return key in self._flights

    async def get(self, key: K) -> V | None:
        """Return the cached value for `key`, loading it on a miss."""
        while True:
            async with self._lock:
                entry = self._entries.get(key)
                if entry is not None:
                    if not entry.expired(self._clock(), self.ttl):
                        record_cache_hit(self.name)
                        return entry.value
                    del self._entries[key]

                flight = self._flights.get(key)
                if flight is None:
                    flight = Flight()
                    flight.start(self._load(key, flight))
                    self._flights[key] = flight
                    logger.debug(f"{self.name} cache miss for {key!r}, loading")

            if flight.stale:
                await flight.settled()
                continue

            record_cache_miss(self.name)
            return await flight.join()

    async def invalidate(self, key: K) -> None:
        """Drop the entry for `key`; a load already running is not stored."""
        async with self._lock:
            self._entries.pop(key, None)
            flight = self._flights.get(key)
            if flight is not None:
                flight.stale = True

    async def clear(self) -> None:
        """Drop every entry and mark every running load stale."""
        async with self._lock:
            self._entries.clear()
            for flight in self._flights.values():
                flight.stale = True

    async def _load(self, key: K, flight: Flight[V | None]) -> V | None:
        start = time.perf_counter()
        value: V | None = None
        failed = True
        try:
            value = await self._loader(key)
            failed = False
            return value
        except Exception as e:
            logger.warning(f"{self.name} cache load for {key!r} failed: {e}")
            raise
        finally:
            record_cache_load(self.name, time.perf_counter() - start, failed=failed)
            async with self._lock:
                if self._flights.get(key) is flight:
                    del self._flights[key]
                if not failed and not flight.stale and (value is not None or self.cache_absent):
                    self._entries[key] = CacheEntry(value, self._clock())
