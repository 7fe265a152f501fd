"""Repository for quote persistence.

The backing store accessor for the read-through caches. It knows nothing
about caching: each call opens a session from the shared factory, runs one
statement and maps the rows to domain models.

Store errors are translated at this boundary:
- pool timeout, refused/dropped connections -> StoreUnavailable
- any other SQLAlchemy error -> QueryFailed
A missing row is not an error and comes back as None.
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import exc as sa_exc
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from magistr.core.errors import QueryFailed, StoreUnavailable
from magistr.core.model import NewQuote, Quote
from magistr.observability.metrics import record_db_query
from magistr.persistence.tables import QuoteTable

# quotes.id is an int4 column
INT4_MIN = -(2**31)
INT4_MAX = 2**31 - 1

# Failures that mean no usable connection was obtained
_UNAVAILABLE_ERRORS = (
    sa_exc.TimeoutError,
    sa_exc.DisconnectionError,
    sa_exc.InterfaceError,
    sa_exc.OperationalError,
    OSError,
)


class QuoteRepository:
    """Backing store accessor for quotes."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Open a session and translate store errors for `operation`."""
        start = time.perf_counter()
        try:
            async with self.session_factory() as session:
                yield session
        except _UNAVAILABLE_ERRORS as e:
            raise StoreUnavailable(operation, str(e)) from e
        except sa_exc.DBAPIError as e:
            if e.connection_invalidated:
                raise StoreUnavailable(operation, str(e)) from e
            raise QueryFailed(operation, str(e)) from e
        except sa_exc.SQLAlchemyError as e:
            raise QueryFailed(operation, str(e)) from e
        finally:
            record_db_query(operation, time.perf_counter() - start)

    async def fetch_all(self) -> list[Quote]:
        """Get every quote, newest (highest id) first."""
        stmt = select(QuoteTable.id, QuoteTable.date, QuoteTable.text).order_by(
            QuoteTable.id.desc()
        )
        async with self._session("fetch_all") as session:
            result = await session.execute(stmt)
            rows = result.all()
        return [Quote(id=row.id, date=row.date, text=row.text) for row in rows]

    async def fetch_by_id(self, quote_id: int) -> Quote | None:
        """Get one quote by id.

        Returns:
            The quote, or None if no row has this id. Ids outside the
            column range cannot exist and are answered without a query.
        """
        if not INT4_MIN <= quote_id <= INT4_MAX:
            return None
        stmt = select(QuoteTable.id, QuoteTable.date, QuoteTable.text).where(
            QuoteTable.id == quote_id
        )
        async with self._session("fetch_by_id") as session:
            result = await session.execute(stmt)
            row = result.first()
        if row is None:
            return None
        return Quote(id=row.id, date=row.date, text=row.text)

    async def insert(self, new: NewQuote) -> int | None:
        """Store a new quote and commit.

        Returns:
            The id assigned by the database, or None if it was not reported.
        """
        async with self._session("insert") as session:
            row = QuoteTable(date=new.date, text=new.text)
            session.add(row)
            await session.flush()
            quote_id = row.id
            await session.commit()
        return quote_id
