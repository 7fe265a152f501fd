"""Logging, tracing and Prometheus metrics for magistr."""

from magistr.observability.logging import configure_logging, log_context
from magistr.observability.metrics import MetricsMiddleware
from magistr.observability.tracing import TracingMiddleware, setup_tracing, shutdown_tracing

__all__ = [
    "MetricsMiddleware",
    "TracingMiddleware",
    "configure_logging",
    "log_context",
    "setup_tracing",
    "shutdown_tracing",
]
