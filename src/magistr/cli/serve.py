"""`magistr serve`: run the board under uvicorn.

Each worker process keeps its own quote caches, so with more than one
worker a fresh quote can take up to the list TTL to show everywhere.
"""

from __future__ import annotations

import typer
import uvicorn

from magistr.config import settings


def serve_command(
    host: str = typer.Option(settings.host, "--host", "-h", help="Address to bind"),
    port: int = typer.Option(settings.port, "--port", "-p", help="Port to listen on"),
    workers: int = typer.Option(1, "--workers", "-w", help="Worker processes"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Restart on code changes"),
    log_level: str = typer.Option("info", "--log-level", "-l", help="uvicorn log level"),
    access_log: bool = typer.Option(True, "--access-log/--no-access-log"),
) -> None:
    """Serve the quote board."""
    if reload and workers > 1:
        typer.echo("--reload runs a single worker", err=True)
        workers = 1

    typer.echo(f"magistr listening on [{host}]:{port} ({workers} worker(s))")

    # uvicorn[standard] brings uvloop and httptools; "auto" picks them up
    uvicorn.run(
        "magistr.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        workers=workers,
        reload=reload,
        log_level=log_level.lower(),
        access_log=access_log,
        loop="auto",
        http="auto",
    )
