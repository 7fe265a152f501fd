"""Middleware for the magistr API.

- Correlation context for request tracing

Compression uses Starlette's GZipMiddleware directly.
"""

from magistr.api.middleware.correlation import CorrelationMiddleware

__all__ = [
    "CorrelationMiddleware",
]
