"""FastAPI application for magistr.

`create_app()` wires the board pages, the /static assets, health and
Prometheus endpoints, the observability middlewares and the error
handlers. The lifespan owns the connection pool and the one QuoteService
(and with it both quote caches) of this process.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.gzip import GZipMiddleware
from starlette.types import ExceptionHandler

from magistr.api.errors import (
    ApiError,
    api_exception_handler,
    generic_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from magistr.api.middleware import CorrelationMiddleware
from magistr.api.routers import health, metrics, quotes
from magistr.api.templating import STATIC_DIR
from magistr.config import settings
from magistr.observability import (
    MetricsMiddleware,
    TracingMiddleware,
    configure_logging,
    setup_tracing,
    shutdown_tracing,
)
from magistr.persistence import QuoteRepository, close_db, get_session_factory, init_db
from magistr.service import QuoteService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    configure_logging(json_format=settings.env != "dev", level=settings.log_level)
    setup_tracing()

    logger.info(f"Starting magistr ({settings.env})")
    await init_db()
    app.state.quote_service = QuoteService(
        QuoteRepository(get_session_factory()),
        quotes_ttl=settings.quotes_ttl,
        quote_ttl=settings.quote_ttl,
    )
    logger.info(
        f"Serving quotes (list ttl {settings.quotes_ttl}s, quote ttl {settings.quote_ttl}s)"
    )

    try:
        yield
    finally:
        logger.info("Stopping magistr")
        await close_db()
        shutdown_tracing()


def create_app() -> FastAPI:
    app = FastAPI(
        title="magistr",
        description="Quote board with read-through caching",
        version="0.1.0",
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
        redoc_url=None,
    )

    # Added innermost first: tracing sees the whole request, correlation ids
    # are bound for everything the handlers log.
    app.add_middleware(CorrelationMiddleware)
    if settings.enable_metrics:
        app.add_middleware(MetricsMiddleware)
    if settings.enable_tracing:
        app.add_middleware(TracingMiddleware)
    if settings.enable_compression:
        app.add_middleware(
            GZipMiddleware,
            minimum_size=settings.compression_min_size,
            compresslevel=settings.compression_level,
        )

    handlers = {
        ApiError: api_exception_handler,
        StarletteHTTPException: http_exception_handler,
        RequestValidationError: validation_exception_handler,
        Exception: generic_exception_handler,
    }
    for exc_class, handler in handlers.items():
        app.add_exception_handler(exc_class, cast(ExceptionHandler, handler))

    app.include_router(health.router)
    if settings.enable_metrics:
        app.include_router(metrics.router)
    app.include_router(quotes.router)
    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    return app


app = create_app()
