"""Tests for the single-slot read-through cache."""

from __future__ import annotations

import asyncio

import pytest

from magistr.cache import SingleEntryCache


class CountingLoader:
    """Loader returning queued results, optionally held until released."""

    def __init__(self, *results, gated: bool = False) -> None:
        self.results = list(results)
        self.calls = 0
        self.gate = asyncio.Event()
        if not gated:
            self.gate.set()

    async def __call__(self):
        self.calls += 1
        await self.gate.wait()
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return result


class TestConstruction:
    """Tests for constructor validation."""

    def test_zero_ttl_rejected(self) -> None:
        """A TTL must be positive."""
        with pytest.raises(ValueError):
            SingleEntryCache(CountingLoader(["a"]), ttl=0)

    def test_negative_ttl_rejected(self) -> None:
        with pytest.raises(ValueError):
            SingleEntryCache(CountingLoader(["a"]), ttl=-5)


class TestReadThrough:
    """Tests for hits, misses and expiry."""

    @pytest.mark.asyncio
    async def test_first_get_loads(self, clock) -> None:
        """An empty cache loads and returns the loader result."""
        loader = CountingLoader(["q2", "q1"])
        cache = SingleEntryCache(loader, ttl=30, clock=clock)

        assert await cache.get() == ["q2", "q1"]
        assert loader.calls == 1

    @pytest.mark.asyncio
    async def test_within_ttl_is_a_hit(self, clock) -> None:
        """Reads before the TTL runs out do not call the loader."""
        loader = CountingLoader(["q1"])
        cache = SingleEntryCache(loader, ttl=30, clock=clock)

        await cache.get()
        clock.advance(29.9)
        assert await cache.get() == ["q1"]
        assert loader.calls == 1

    @pytest.mark.asyncio
    async def test_expired_at_ttl(self, clock) -> None:
        """An entry exactly TTL old is expired and loaded once more."""
        loader = CountingLoader(["old"], ["new"])
        cache = SingleEntryCache(loader, ttl=30, clock=clock)

        assert await cache.get() == ["old"]
        clock.advance(30)
        assert await cache.get() == ["new"]
        assert await cache.get() == ["new"]
        assert loader.calls == 2

    @pytest.mark.asyncio
    async def test_empty_list_is_cached(self, clock) -> None:
        """An empty collection is a value, not a failure."""
        loader = CountingLoader([])
        cache = SingleEntryCache(loader, ttl=30, clock=clock)

        assert await cache.get() == []
        assert await cache.get() == []
        assert loader.calls == 1


class TestFailures:
    """Tests for failed loads."""

    @pytest.mark.asyncio
    async def test_exception_is_raised_and_not_cached(self, clock) -> None:
        """A raising loader propagates and the next get retries."""
        loader = CountingLoader(RuntimeError("store down"), ["q1"])
        cache = SingleEntryCache(loader, ttl=30, clock=clock)

        with pytest.raises(RuntimeError, match="store down"):
            await cache.get()
        assert await cache.get() == ["q1"]
        assert loader.calls == 2

    @pytest.mark.asyncio
    async def test_none_is_not_cached(self, clock) -> None:
        """A None result is handed out but the next get loads again."""
        loader = CountingLoader(None, ["q1"])
        cache = SingleEntryCache(loader, ttl=30, clock=clock)

        assert await cache.get() is None
        assert await cache.get() == ["q1"]
        assert loader.calls == 2

    @pytest.mark.asyncio
    async def test_failure_reaches_every_waiter(self, clock) -> None:
        """All callers joined on a failing load see the same error."""
        loader = CountingLoader(RuntimeError("boom"), gated=True)
        cache = SingleEntryCache(loader, ttl=30, clock=clock)

        tasks = [asyncio.create_task(cache.get()) for _ in range(5)]
        await asyncio.sleep(0)
        loader.gate.set()
        results = await asyncio.gather(*tasks, return_exceptions=True)

        assert loader.calls == 1
        assert all(isinstance(r, RuntimeError) for r in results)
        assert not cache.loading


class TestSingleFlight:
    """Tests for load deduplication."""

    @pytest.mark.asyncio
    async def test_concurrent_misses_share_one_load(self, clock) -> None:
        """Many callers missing at once trigger a single loader call."""
        loader = CountingLoader(["q1"], gated=True)
        cache = SingleEntryCache(loader, ttl=30, clock=clock)

        tasks = [asyncio.create_task(cache.get()) for _ in range(10)]
        await asyncio.sleep(0)
        assert cache.loading

        loader.gate.set()
        results = await asyncio.gather(*tasks)

        assert loader.calls == 1
        assert results == [["q1"]] * 10
        assert not cache.loading

    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_cancel_load(self, clock) -> None:
        """Cancelling one caller leaves the shared load running."""
        loader = CountingLoader(["q1"], gated=True)
        cache = SingleEntryCache(loader, ttl=30, clock=clock)

        first = asyncio.create_task(cache.get())
        second = asyncio.create_task(cache.get())
        await asyncio.sleep(0)

        first.cancel()
        loader.gate.set()

        assert await second == ["q1"]
        with pytest.raises(asyncio.CancelledError):
            await first

        assert await cache.get() == ["q1"]
        assert loader.calls == 1

    @pytest.mark.asyncio
    async def test_cancelled_only_waiter_still_stores(self, clock) -> None:
        """A load whose only caller went away still fills the cache."""
        loader = CountingLoader(["q1"], gated=True)
        cache = SingleEntryCache(loader, ttl=30, clock=clock)

        waiter = asyncio.create_task(cache.get())
        await asyncio.sleep(0)
        waiter.cancel()
        loader.gate.set()
        with pytest.raises(asyncio.CancelledError):
            await waiter

        while cache.loading:
            await asyncio.sleep(0)

        assert await cache.get() == ["q1"]
        assert loader.calls == 1


class TestInvalidation:
    """Tests for invalidate() and repopulate()."""

    @pytest.mark.asyncio
    async def test_invalidate_drops_entry(self, clock) -> None:
        loader = CountingLoader(["old"], ["new"])
        cache = SingleEntryCache(loader, ttl=30, clock=clock)

        await cache.get()
        await cache.invalidate()

        assert await cache.get() == ["new"]
        assert loader.calls == 2

    @pytest.mark.asyncio
    async def test_invalidate_empty_cache(self, clock) -> None:
        """Invalidating with nothing cached is a no-op."""
        cache = SingleEntryCache(CountingLoader(["q1"]), ttl=30, clock=clock)
        await cache.invalidate()
        assert not cache.loading

    @pytest.mark.asyncio
    async def test_load_in_flight_during_invalidate_is_not_stored(self, clock) -> None:
        """Callers after an invalidation never get the pre-invalidation load."""
        loader = CountingLoader(["old"], ["new"])
        loader.gate.clear()
        cache = SingleEntryCache(loader, ttl=30, clock=clock)

        before = asyncio.create_task(cache.get())
        await asyncio.sleep(0)
        await cache.invalidate()

        after = asyncio.create_task(cache.get())
        await asyncio.sleep(0)
        loader.gate.set()

        assert await before == ["old"]
        assert await after == ["new"]
        assert await cache.get() == ["new"]
        assert loader.calls == 2

    @pytest.mark.asyncio
    async def test_repopulate_loads_fresh_value(self, clock) -> None:
        """repopulate() replaces a still-valid entry right away."""
        loader = CountingLoader(["q1"], ["q2", "q1"])
        cache = SingleEntryCache(loader, ttl=30, clock=clock)

        await cache.get()
        clock.advance(5)
        assert await cache.repopulate() == ["q2", "q1"]

        clock.advance(5)
        assert await cache.get() == ["q2", "q1"]
        assert loader.calls == 2

    @pytest.mark.asyncio
    async def test_repopulate_swallows_errors(self, clock) -> None:
        """A failing repopulation returns None and leaves the cache empty."""
        loader = CountingLoader(["q1"], RuntimeError("store down"), ["q1"])
        cache = SingleEntryCache(loader, ttl=30, clock=clock)

        await cache.get()
        assert await cache.repopulate() is None

        assert await cache.get() == ["q1"]
        assert loader.calls == 3
