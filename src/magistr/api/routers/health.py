"""Liveness and readiness checks.

- /health/live answers as long as the process serves requests
- /health/ready and /health answer 503 while the database is unreachable
"""

from __future__ import annotations

import asyncio
import time

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from magistr.persistence import db

router = APIRouter(prefix="/health", tags=["health"])

PING_TIMEOUT = 5.0  # seconds


async def check_database() -> dict:
    """Ping the database, bounded by PING_TIMEOUT."""
    start = time.perf_counter()
    try:
        reachable = await asyncio.wait_for(db.ping(), timeout=PING_TIMEOUT)
        detail = None if reachable else "ping failed"
    except asyncio.TimeoutError:
        reachable, detail = False, f"no answer within {PING_TIMEOUT:g}s"

    check = {
        "status": "healthy" if reachable else "unhealthy",
        "latency_ms": round((time.perf_counter() - start) * 1000, 2),
    }
    if detail:
        check["message"] = detail
    return check


def _report(check: dict) -> JSONResponse:
    healthy = check["status"] == "healthy"
    return JSONResponse(
        {"status": check["status"], "checks": {"database": check}},
        status_code=200 if healthy else 503,
    )


@router.get("")
async def health() -> JSONResponse:
    return _report(await check_database())


@router.get("/live")
async def live() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/ready")
async def ready() -> JSONResponse:
    """Take the instance out of rotation while the store is down."""
    return _report(await check_database())
