"""
IdeaNote Backend: Request ID Middleware
=========================================

What:  Gives each request a correlation ID that shows up in every log line,
       in error bodies and in the X-Request-ID response header.
How:   A client-sent X-Request-ID is reused when it is a short token of
       letters, digits, '.', '_' or '-'. Anything else (missing, too long,
       containing spaces or control characters) is replaced by a fresh
       8-character id, so client input never reaches the logs unchecked.

Where the id lives while the request runs:
    request_id_var        → loggers and exception handlers
    request.state.request_id → route handlers
"""

import re
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

_ACCEPTED_ID = re.compile(r"[A-Za-z0-9._-]{1,64}")

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


def accepted_request_id(raw: Optional[str]) -> Optional[str]:
    """Return the client's id if it is safe to log and echo, else None."""
    if raw and _ACCEPTED_ID.fullmatch(raw):
        return raw
    return None


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tags every request and response with a correlation ID."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = accepted_request_id(request.headers.get(REQUEST_ID_HEADER)) or new_request_id()

        request_id_var.set(rid)
        request.state.request_id = rid
        response = await call_next(request)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
