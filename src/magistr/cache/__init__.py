"""Cache layer for magistr.

In-process read-through caches between the HTTP handlers and PostgreSQL:
- SingleEntryCache holds the full quote list
- KeyedCache holds quotes by id, including known-absent ids
- TTL-based lazy expiry, single-flight loads, explicit invalidation
"""

from magistr.cache.entry import CacheEntry
from magistr.cache.keyed import KeyedCache
from magistr.cache.single import SingleEntryCache

__all__ = [
    "CacheEntry",
    "KeyedCache",
    "SingleEntryCache",
]
