"""OpenTelemetry tracing for magistr.

`setup_tracing()` installs a TracerProvider that exports over OTLP/HTTP when
`otlp_endpoint` is set, or prints spans to the console in dev, and turns on
SQLAlchemy instrumentation so every statement gets a child span. The ASGI
`TracingMiddleware` opens one server span per request.
"""

from __future__ import annotations

import logging

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
)
from opentelemetry.trace import SpanKind, Status, StatusCode
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from magistr.config import settings
from magistr.observability.metrics import UNMEASURED_PATHS

logger = logging.getLogger(__name__)

_provider: TracerProvider | None = None


def setup_tracing() -> None:
    """Install the global tracer provider once; no-op when tracing is off."""
    global _provider
    if _provider is not None or not settings.enable_tracing:
        return

    provider = TracerProvider(
        resource=Resource.create(
            {"service.name": settings.app_name, "deployment.environment": settings.env}
        )
    )
    if settings.otlp_endpoint:
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.otlp_endpoint))
        )
        logger.info(f"Exporting spans to {settings.otlp_endpoint}")
    elif settings.env == "dev":
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    SQLAlchemyInstrumentor().instrument()
    _provider = provider


def shutdown_tracing() -> None:
    """Flush pending spans and forget the provider."""
    global _provider
    if _provider is None:
        return
    _provider.shutdown()
    _provider = None


class TracingMiddleware:
    """ASGI middleware wrapping each HTTP request in a server span.

    Exceptions escaping the app are recorded on the span by OpenTelemetry;
    5xx responses mark the span as an error.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app
        self.tracer = trace.get_tracer("magistr.api")

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["path"] in UNMEASURED_PATHS:
            await self.app(scope, receive, send)
            return

        method = scope["method"]
        with self.tracer.start_as_current_span(
            f"{method} {scope['path']}", kind=SpanKind.SERVER
        ) as span:
            span.set_attribute("http.method", method)
            span.set_attribute("http.target", scope["path"])
            if scope.get("client"):
                span.set_attribute("net.peer.ip", scope["client"][0])

            async def send_with_status(message: Message) -> None:
                if message["type"] == "http.response.start":
                    status = message["status"]
                    span.set_attribute("http.status_code", status)
                    if status >= 500:
                        span.set_status(Status(StatusCode.ERROR))
                await send(message)

            await self.app(scope, receive, send_with_status)
