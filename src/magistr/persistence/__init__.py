"""Persistence layer for magistr.

- db: pooled async engine, schema creation, ping
- tables: the `quotes` table
- repositories: QuoteRepository, the store behind the caches
"""

from magistr.persistence.db import close_db, get_engine, get_session_factory, init_db, ping
from magistr.persistence.repositories import QuoteRepository
from magistr.persistence.tables import Base, QuoteTable

__all__ = [
    "Base",
    "QuoteRepository",
    "QuoteTable",
    "close_db",
    "get_engine",
    "get_session_factory",
    "init_db",
    "ping",
]
