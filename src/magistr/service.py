"""Quote Service.

The one entry point HTTP handlers use. Reads go through the read-through
caches; writes go to the store and then refresh the list cache so the new
quote shows up before the list TTL runs out.

No store error escapes this class: every call returns a Result whose
outcome is OK, NOT_FOUND or FAILED. Failed cache loads are logged by the
cache that ran them, not again here.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Protocol

from magistr.cache import KeyedCache, SingleEntryCache
from magistr.core.errors import StoreError
from magistr.core.model import NewQuote, Quote
from magistr.core.result import Result

logger = logging.getLogger(__name__)

DEFAULT_QUOTES_TTL = 300.0
DEFAULT_QUOTE_TTL = 1800.0


class QuoteStore(Protocol):
    """What the service needs from the backing store accessor."""

    async def fetch_all(self) -> list[Quote]: ...

    async def fetch_by_id(self, quote_id: int) -> Quote | None: ...

    async def insert(self, new: NewQuote) -> int | None: ...


class QuoteService:
    """Cached access to the quote board.

    Owns both caches for its whole lifetime; build one per process and
    share it between handlers.
    """

    def __init__(
        self,
        store: QuoteStore,
        *,
        quotes_ttl: float = DEFAULT_QUOTES_TTL,
        quote_ttl: float = DEFAULT_QUOTE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store
        self.all_quotes: SingleEntryCache[list[Quote]] = SingleEntryCache(
            store.fetch_all, ttl=quotes_ttl, name="quotes", clock=clock
        )
        self.quotes_by_id: KeyedCache[int, Quote] = KeyedCache(
            store.fetch_by_id, ttl=quote_ttl, name="quote", clock=clock
        )

    async def get_all(self) -> Result[list[Quote]]:
        """Get all quotes, newest first.

        A failed load is reported with an empty list so callers can still
        render something; an empty board is a successful empty list.
        """
        try:
            quotes = await self.all_quotes.get()
        except Exception as e:
            return Result.failure(e, [])

        if quotes is None:
            return Result.failure(StoreError("fetch_all", "no result"), [])
        return Result.success(quotes)

    async def get_by_id(self, quote_id: int) -> Result[Quote]:
        """Get one quote by id."""
        try:
            quote = await self.quotes_by_id.get(quote_id)
        except Exception as e:
            return Result.failure(e)

        if quote is None:
            return Result.missing()
        return Result.success(quote)

    async def create(self, new: NewQuote) -> Result[int | None]:
        """Store a new quote and refresh the list cache.

        The refresh is best-effort. The by-id cache is left alone, so an
        id looked up before it existed stays not-found until its TTL ends.
        """
        try:
            quote_id = await self.store.insert(new)
        except Exception as e:
            logger.error(f"Creating quote failed: {e}")
            return Result.failure(e)

        logger.debug(f"Created quote {quote_id}")
        if await self.all_quotes.repopulate() is not None:
            logger.debug("Primed quotes cache")
        return Result.success(quote_id)

