"""Prometheus metrics for magistr.

All collectors live on a private `REGISTRY` so the `/metrics` output holds
only magistr series and tests can build several apps in one process.

Series:
- magistr_http_requests_total{method,path,status}
- magistr_http_request_duration_seconds{method,path}
- magistr_http_requests_in_progress{method}
- magistr_db_query_duration_seconds{operation}
- magistr_cache_hits_total{cache}, magistr_cache_misses_total{cache}
- magistr_cache_load_duration_seconds{cache}, magistr_cache_load_failures_total{cache}
"""

from __future__ import annotations

import time

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)
from starlette.types import ASGIApp, Message, Receive, Scope, Send

REGISTRY = CollectorRegistry()

# Health checks and scrapes, polled too often to count as board traffic
UNMEASURED_PATHS = frozenset({"/health", "/health/live", "/health/ready", "/metrics"})

_LATENCY_BUCKETS = (0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5)

HTTP_REQUESTS = Counter(
    "magistr_http_requests_total",
    "HTTP requests by route template and status",
    ["method", "path", "status"],
    registry=REGISTRY,
)
HTTP_LATENCY = Histogram(
    "magistr_http_request_duration_seconds",
    "HTTP request latency",
    ["method", "path"],
    buckets=_LATENCY_BUCKETS,
    registry=REGISTRY,
)
HTTP_IN_PROGRESS = Gauge(
    "magistr_http_requests_in_progress",
    "HTTP requests being served",
    ["method"],
    registry=REGISTRY,
)
DB_QUERY_LATENCY = Histogram(
    "magistr_db_query_duration_seconds",
    "Store accessor latency, including pool checkout",
    ["operation"],
    buckets=_LATENCY_BUCKETS,
    registry=REGISTRY,
)
CACHE_HITS = Counter(
    "magistr_cache_hits_total",
    "Reads answered from a cache",
    ["cache"],
    registry=REGISTRY,
)
CACHE_MISSES = Counter(
    "magistr_cache_misses_total",
    "Reads that started or joined a load",
    ["cache"],
    registry=REGISTRY,
)
CACHE_LOAD_LATENCY = Histogram(
    "magistr_cache_load_duration_seconds",
    "Cache loader latency",
    ["cache"],
    buckets=_LATENCY_BUCKETS,
    registry=REGISTRY,
)
CACHE_LOAD_FAILURES = Counter(
    "magistr_cache_load_failures_total",
    "Cache loads that raised",
    ["cache"],
    registry=REGISTRY,
)


def exposition() -> tuple[bytes, str]:
    """Current samples in text format, with their content type."""
    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST


def record_db_query(operation: str, duration: float) -> None:
    DB_QUERY_LATENCY.labels(operation=operation).observe(duration)


def record_cache_hit(cache: str) -> None:
    CACHE_HITS.labels(cache=cache).inc()


def record_cache_miss(cache: str) -> None:
    CACHE_MISSES.labels(cache=cache).inc()


def record_cache_load(cache: str, duration: float, failed: bool = False) -> None:
    CACHE_LOAD_LATENCY.labels(cache=cache).observe(duration)
    if failed:
        CACHE_LOAD_FAILURES.labels(cache=cache).inc()


class MetricsMiddleware:
    """ASGI middleware counting and timing HTTP requests.

    Requests are labelled with the matched route template (`/ny.php`), or
    `unmatched`, so arbitrary URLs cannot grow the label set.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["path"] in UNMEASURED_PATHS:
            await self.app(scope, receive, send)
            return

        method = scope["method"]
        status = 500

        async def send_recording_status(message: Message) -> None:
            nonlocal status
            if message["type"] == "http.response.start":
                status = message["status"]
            await send(message)

        in_progress = HTTP_IN_PROGRESS.labels(method=method)
        in_progress.inc()
        start = time.perf_counter()
        try:
            await self.app(scope, receive, send_recording_status)
        finally:
            in_progress.dec()
            route = scope.get("route")
            path = getattr(route, "path", None) or "unmatched"
            HTTP_REQUESTS.labels(method=method, path=path, status=str(status)).inc()
            HTTP_LATENCY.labels(method=method, path=path).observe(time.perf_counter() - start)
