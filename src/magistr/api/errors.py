"""HTTP errors for magistr.

Board pages render their own HTML error pages from an ApiError (status
and text); everything else (unknown paths, malformed query strings,
unexpected exceptions) answers with a JSON body:

    {"messages": [{"code": "NotFound", "messageType": "Error",
                   "text": "...", "timestamp": "..."}]}
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from enum import Enum

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from magistr.core.errors import StoreUnavailable

logger = logging.getLogger(__name__)


class MessageType(str, Enum):
    ERROR = "Error"
    EXCEPTION = "Exception"


class Message(BaseModel):
    model_config = {"extra": "forbid", "populate_by_name": True}

    code: str
    message_type: MessageType = Field(alias="messageType")
    text: str
    timestamp: str | None = None


class ErrorResult(BaseModel):
    model_config = {"extra": "forbid"}

    messages: list[Message]


class ApiError(HTTPException):
    """An error with a machine-readable code and a human-readable text."""

    message_type = MessageType.ERROR

    def __init__(self, status_code: int, code: str, text: str):
        self.code = code
        self.text = text
        super().__init__(status_code=status_code, detail=text)

    def to_content(self) -> dict:
        message = Message(
            code=self.code,
            message_type=self.message_type,
            text=self.text,
            timestamp=datetime.now(UTC).isoformat(),
        )
        return ErrorResult(messages=[message]).model_dump(by_alias=True)


class NotFoundError(ApiError):
    def __init__(self, resource_type: str, identifier: str | int):
        text = f"{resource_type} with identifier '{identifier}' not found"
        super().__init__(404, "NotFound", text)


class BadRequestError(ApiError):
    def __init__(self, text: str):
        super().__init__(400, "BadRequest", text)


class ServiceUnavailableError(ApiError):
    def __init__(self, text: str):
        super().__init__(503, "ServiceUnavailable", text)


class InternalServerError(ApiError):
    message_type = MessageType.EXCEPTION

    def __init__(self, text: str = "An unexpected error occurred"):
        super().__init__(500, "InternalServerError", text)


def error_for_failure(error: Exception | None, action: str) -> ApiError:
    """The HTTP error for a failed service call.

    `action` names what failed ("Loading quote 4"); an unreachable store
    is a 503, anything else a 500.
    """
    if isinstance(error, StoreUnavailable):
        return ServiceUnavailableError(f"{action} failed: the quote store is unavailable")
    return InternalServerError(f"{action} failed")


def _json(error: ApiError) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_content(),
        headers=getattr(error, "headers", None),
    )


async def api_exception_handler(request: Request, exc: ApiError) -> JSONResponse:
    return _json(exc)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unknown paths, wrong methods and missing static files."""
    if exc.status_code == 404:
        error = ApiError(404, "NotFound", f"No page at {request.url.path}")
    else:
        error = ApiError(exc.status_code, "HttpError", str(exc.detail))
    error.headers = exc.headers
    return _json(error)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    fields = ", ".join(".".join(str(part) for part in err["loc"]) for err in exc.errors())
    return _json(BadRequestError(f"Invalid request: {fields}"))


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return _json(InternalServerError())
