"""Prometheus scrape endpoint."""

from __future__ import annotations

from fastapi import APIRouter
from starlette.responses import Response

from magistr.observability.metrics import exposition

router = APIRouter(tags=["observability"])


@router.get("/metrics", response_class=Response, include_in_schema=False)
async def scrape() -> Response:
    body, content_type = exposition()
    return Response(content=body, media_type=content_type)
