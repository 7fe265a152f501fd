"""`magistr init-db`: create the quotes table ahead of the first start."""

from __future__ import annotations

import asyncio
import logging

import typer

from magistr.config import settings
from magistr.observability import configure_logging, log_context
from magistr.persistence import close_db, init_db

logger = logging.getLogger(__name__)


async def _create_schema() -> None:
    try:
        await init_db()
    finally:
        await close_db()


def init_db_command() -> None:
    """Create the quotes table in the configured database."""
    configure_logging(json_format=settings.env != "dev", level=settings.log_level)

    with log_context("init-db"):
        try:
            asyncio.run(_create_schema())
        except Exception as e:
            logger.error(f"Schema setup failed: {e}")
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1) from e

    typer.echo("Database ready")
