"""Single-slot read-through cache.

Holds one value (the full quote list) with time-based expiry and
single-flight population: however many callers miss at once, the loader
runs once and every caller gets that run's result.

A loader result of None is a failed load and is not stored, neither is a
raised exception. Both are handed to every caller joined on that load and
the next get() loads again.

Example:
    cache = SingleEntryCache(repository.fetch_all, ttl=300, name="quotes")
    quotes = await cache.get()
    await cache.repopulate()  # after a write
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Generic, TypeVar

from magistr.cache.entry import CacheEntry, Flight
from magistr.observability.metrics import record_cache_hit, record_cache_load, record_cache_miss

logger = logging.getLogger(__name__)

V = TypeVar("V")


class SingleEntryCache(Generic[V]):
    """Time-expiring cache of one optional value with single-flight loads.

    State (entry, in-flight load) only changes under `_lock`, and the lock
    is never held while the loader runs.
    """

    def __init__(
        self,
        loader: Callable[[], Awaitable[V | None]],
        ttl: float,
        *,
        name: str = "single",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        self._loader = loader
        self.ttl = ttl
        self.name = name
        self._clock = clock
        self._entry: CacheEntry[V] | None = None
        self._flight: Flight[V | None] | None = None
        self._lock = asyncio.Lock()

    @property
    def loading(self) -> bool:
        """Whether a load is in flight."""
        return self._flight is not None

    async def get(self) -> V | None:
        """Return the cached value, loading it on a miss.

        Raises whatever the loader raised, for every caller joined on
        that load.
        """
        while True:
            async with self._lock:
                entry = self._entry
                if entry is not None:
                    if not entry.expired(self._clock(), self.ttl):
                        record_cache_hit(self.name)
                        return entry.value
                    self._entry = None

                flight = self._flight
                if flight is None:
                    flight = Flight()
                    flight.start(self._load(flight))
                    self._flight = flight
                    logger.debug(f"{self.name} cache miss, loading")

            if flight.stale:
                # Started before an invalidation; its result must not be served.
                await flight.settled()
                continue

            record_cache_miss(self.name)
            return await flight.join()

    async def invalidate(self) -> None:
        """Drop the cached value; the next get() loads again."""
        async with self._lock:
            self._entry = None
            if self._flight is not None:
                self._flight.stale = True

    async def repopulate(self) -> V | None:
        """Invalidate and load again right away.

        A failed load was already logged by the load itself and yields None;
        the next get() retries.
        """
        await self.invalidate()
        try:
            value = await self.get()
        except Exception:
            return None

        if value is None:
            logger.warning(f"Repopulating {self.name} cache returned no value")
        return value

    async def _load(self, flight: Flight[V | None]) -> V | None:
        start = time.perf_counter()
        value: V | None = None
        failed = True
        try:
            value = await self._loader()
            failed = False
            return value
        except Exception as e:
            logger.warning(f"{self.name} cache load failed: {e}")
            raise
        finally:
            record_cache_load(self.name, time.perf_counter() - start, failed=failed)
            async with self._lock:
                if self._flight is flight:
                    self._flight = None
                if not failed and value is not None and not flight.stale:
                    self._entry = CacheEntry(value, self._clock())
