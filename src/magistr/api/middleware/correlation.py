"""Request and correlation ids for every HTTP request.

`x-request-id` identifies one request and is generated when absent;
`x-correlation-id` follows a chain of requests across services and
defaults to the request id. Both are bound for logging while the request
runs and echoed on the response, together with `x-trace-id` when the
request is traced.
"""

from __future__ import annotations

import uuid

from opentelemetry import trace
from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from magistr.observability.logging import log_context

REQUEST_ID_HEADER = "x-request-id"
CORRELATION_ID_HEADER = "x-correlation-id"
TRACE_ID_HEADER = "x-trace-id"


class CorrelationMiddleware:
    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        request_id = headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        correlation_id = headers.get(CORRELATION_ID_HEADER) or request_id

        async def send_with_ids(message: Message) -> None:
            if message["type"] == "http.response.start":
                response_headers = MutableHeaders(scope=message)
                response_headers[REQUEST_ID_HEADER] = request_id
                response_headers[CORRELATION_ID_HEADER] = correlation_id
                span_context = trace.get_current_span().get_span_context()
                if span_context.is_valid:
                    response_headers[TRACE_ID_HEADER] = format(span_context.trace_id, "032x")
            await send(message)

        with log_context(request_id, correlation_id):
            await self.app(scope, receive, send_with_ids)
