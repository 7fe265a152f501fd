"""Quote board pages.

- GET  /          - all quotes, newest first, or one quote with ?id=N
- GET  /ny.php    - submission form
- POST /ny.php    - submit a quote guarded by a sum captcha
- GET  /robots.txt
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Form, Query, Request
from fastapi.responses import FileResponse, HTMLResponse, PlainTextResponse

from magistr.api.deps import QuoteServiceDep, parse_number
from magistr.api.errors import NotFoundError, error_for_failure
from magistr.api.templating import STATIC_DIR, render, render_error
from magistr.core.model import NewQuote

logger = logging.getLogger(__name__)

router = APIRouter(tags=["quotes"])

# Expected sum when the addition field is not a number
DEFAULT_ADDITION = 6080

# Plain-text answers of the submission endpoint
CREATED = "oki"
CREATE_FAILED = "pis"
CAPTCHA_FAILED = "4kert"


@router.get("/", response_class=HTMLResponse)
async def index(
    request: Request,
    service: QuoteServiceDep,
    quote_id: Annotated[int | None, Query(alias="id", ge=0)] = None,
) -> HTMLResponse:
    """List all quotes, or show one when `id` is given."""
    if quote_id is not None:
        logger.debug(f"Fetching quote {quote_id}")
        result = await service.get_by_id(quote_id)
        if result.failed:
            error = error_for_failure(result.error, f"Loading quote {quote_id}")
            return render_error(request, error)
        if result.value is None:
            missing = NotFoundError("Quote", quote_id)
            return render(
                request, "not_found.html", status_code=missing.status_code, message=missing.text
            )
        return render(request, "quote.html", quote=result.value)

    logger.debug("Fetching all quotes")
    quotes = await service.get_all()
    if quotes.failed:
        return render_error(request, error_for_failure(quotes.error, "Loading quotes"))
    return render(request, "quotes.html", quotes=quotes.value or [])


@router.get("/ny.php", response_class=HTMLResponse)
async def new(request: Request) -> HTMLResponse:
    """Submission form, prefilled with today's date and a fresh captcha."""
    return render(request, "create_quote.html")


@router.post("/ny.php", response_class=PlainTextResponse)
async def create(
    service: QuoteServiceDep,
    tal0: Annotated[str, Form()] = "",
    tal1: Annotated[str, Form()] = "",
    inp_dato: Annotated[str, Form()] = "",
    inp_tekst: Annotated[str, Form()] = "",
    addition: Annotated[str, Form()] = "",
) -> PlainTextResponse:
    """Store a quote when the captcha sum is right.

    Answers in plain text: `oki` when stored, `pis` when the store failed,
    `4kert` when the sum was wrong.
    """
    number_1 = parse_number(tal0, 0)
    number_2 = parse_number(tal1, 0)
    expected = parse_number(addition, DEFAULT_ADDITION)

    if number_1 + number_2 != expected:
        return PlainTextResponse(CAPTCHA_FAILED)

    logger.debug("Adding quote to database")
    result = await service.create(NewQuote(date=inp_dato, text=inp_tekst))
    return PlainTextResponse(CREATED if result.ok else CREATE_FAILED)


@router.get("/robots.txt", include_in_schema=False)
async def robots() -> FileResponse:
    return FileResponse(STATIC_DIR / "robots.txt", media_type="text/plain")
