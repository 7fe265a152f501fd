"""Building blocks shared by the in-memory read-through caches.

A CacheEntry is a stored loader result and the clock reading taken when it
was stored. A Flight is one running loader task; callers that miss while it
runs join it instead of starting another load.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Generic, TypeVar

V = TypeVar("V")


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    """A cached value and the time it was stored."""

    value: V
    stored_at: float

    def expired(self, now: float, ttl: float) -> bool:
        return now - self.stored_at >= ttl


@dataclass(eq=False)
class Flight(Generic[V]):
    """A loader task shared by every caller that missed while it runs.

    `stale` is set when the cache is invalidated during the load: the
    result still goes to callers already joined, but is not stored.
    """

    task: asyncio.Task[V] = field(init=False)
    stale: bool = False

    def start(self, coro) -> None:  # type: ignore[no-untyped-def]
        self.task = asyncio.create_task(coro)
        self.task.add_done_callback(_retrieve_exception)

    async def join(self) -> V:
        """Wait for the shared result.

        Cancelling the caller only cancels its wait; the load keeps running.
        """
        return await asyncio.shield(self.task)

    async def settled(self) -> None:
        """Wait until the load finished, ignoring its outcome."""
        await asyncio.wait([self.task])


def _retrieve_exception(task: asyncio.Task) -> None:  # type: ignore[type-arg]
    # Mark the exception as retrieved even when every waiter went away.
    if not task.cancelled():
        task.exception()
