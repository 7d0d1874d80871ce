"""
IdeaNote Backend: Access Log Middleware
=========================================

What:  One access line per API request.
How:   Times the downstream call and logs method, route, status, duration,
       request id, owner and client address. Structured copies of the same
       fields go into `extra` for JSON log handlers.

Log line:
    2024-06-01T10:00:00 [INFO] ideanote.access: PUT /api/notes/…/editor 200 12.3ms [a1b2c3d4] owner=ana from 127.0.0.1

Quiet paths:
    /health (polled by load balancers) and /api/files/… (one hit per image
    thumbnail in a list view) are logged only when they fail.

Note text, titles and uploads are never logged.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from ideanote.middleware.request_id import request_id_var

logger = logging.getLogger("ideanote.access")

QUIET_PREFIXES = ("/health", "/api/files/")


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


def _client_address(request: Request) -> str:
    return request.client.host if request.client else "unknown"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Writes the access log. Level follows the status class (5xx/4xx/other)."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        path = request.url.path
        status = response.status_code
        if status < 400 and path.startswith(QUIET_PREFIXES):
            return response

        fields = {
            "request_id": request_id_var.get(""),
            "method": request.method,
            "path": path,
            "status": status,
            "duration_ms": round(elapsed_ms, 2),
            "owner": request.headers.get("X-Owner-Id", "-"),
            "client_ip": _client_address(request),
        }
        logger.log(
            level_for_status(status),
            "%(method)s %(path)s %(status)d %(duration_ms).1fms [%(request_id)s] "
            "owner=%(owner)s from %(client_ip)s",
            fields,
            extra=fields,
        )
        return response
