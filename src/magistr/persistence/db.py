"""PostgreSQL engine, pool and schema for magistr.

One engine per process, created on first use from `settings`. The pool is
bounded (no overflow) so `db_max_connections` is a hard cap, and a checkout
that cannot be served within `db_pool_timeout` seconds raises, which the
repository reports as StoreUnavailable.
"""

from __future__ import annotations

import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from magistr.config import settings
from magistr.persistence.tables import Base

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        _engine = create_async_engine(
            settings.database_url,
            pool_size=settings.db_max_connections,
            max_overflow=0,
            pool_timeout=settings.db_pool_timeout,
            pool_recycle=settings.db_pool_recycle,
            pool_pre_ping=True,
        )
        logger.debug(f"Created engine with up to {settings.db_max_connections} connections")
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the shared engine.

    Sessions keep loaded attributes after commit, so the repository can
    read the id of a row it just inserted.
    """
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _session_factory


async def init_db() -> None:
    """Create the quotes table if it is missing."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ready")


async def close_db() -> None:
    """Dispose the pool; the next get_engine() starts a new one."""
    global _engine, _session_factory
    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _session_factory = None


async def ping() -> bool:
    """Whether a pooled connection answers `SELECT 1`."""
    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning(f"Database ping failed: {e}")
        return False
    return True
