"""Shared FastAPI dependencies for magistr routers."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from magistr.service import QuoteService


def get_quote_service(request: Request) -> QuoteService:
    """FastAPI dependency returning the process-wide Quote Service.

    The service is built once in the application lifespan and kept on
    `app.state`.
    """
    return request.app.state.quote_service


QuoteServiceDep = Annotated[QuoteService, Depends(get_quote_service)]


def parse_number(value: str, default: int) -> int:
    """Parse a non-negative decimal integer, falling back to `default`.

    Signs other than a single leading '+', whitespace and non-ASCII digits
    all count as unparsable.
    """
    digits = value[1:] if value.startswith("+") else value
    if digits.isascii() and digits.isdigit():
        return int(digits)
    return default
