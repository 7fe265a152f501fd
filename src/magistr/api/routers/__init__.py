"""API routers for magistr."""

from magistr.api.routers import health, metrics, quotes

__all__ = [
    "health",
    "metrics",
    "quotes",
]
