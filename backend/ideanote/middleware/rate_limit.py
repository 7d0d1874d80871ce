"""
IdeaNote Backend: Rate Limiting Middleware
============================================

What:  Per-client sliding window limit on API calls.
How:   Keeps a deque of request times per client address. Expired times are
       popped from the left; a client already at the limit gets a 429 built
       from RateLimitExceededError, with Retry-After set to the moment its
       oldest counted request leaves the window.

Not counted:
    /health and the API docs, and GET /api/files/… (a note list renders one
    image request per thumbnail, which would otherwise exhaust the quota).

Memory:
    Clients idle for a whole window are swept out once per window.
    State is per process, so each worker enforces its own limit.
"""

import logging
import time
from collections import deque
from typing import Deque, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from ideanote.config import settings
from ideanote.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)

UNMETERED_PATHS = frozenset({"/health", "/docs", "/openapi.json", "/redoc"})
UNMETERED_GET_PREFIX = "/api/files/"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Sliding window limiter.

    Args:
        max_requests: Requests allowed per window (default: settings.rate_limit_requests)
        window_seconds: Window length (default: settings.rate_limit_window)
        clock: Time source, replaceable in tests
    """

    def __init__(
        self,
        app,
        max_requests: Optional[int] = None,
        window_seconds: Optional[int] = None,
        clock=time.monotonic,
        **kwargs,
    ):
        super().__init__(app, **kwargs)
        self.max_requests = max_requests or settings.rate_limit_requests
        self.window_seconds = window_seconds or settings.rate_limit_window
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._next_sweep = clock() + self.window_seconds

    @staticmethod
    def is_metered(request: Request) -> bool:
        path = request.url.path
        if path in UNMETERED_PATHS:
            return False
        if request.method in ("GET", "HEAD") and path.startswith(UNMETERED_GET_PREFIX):
            return False
        return True

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if not self.is_metered(request):
            return await call_next(request)

        client = request.client.host if request.client else "unknown"
        now = self._clock()
        retry_after = self._record(client, now)

        if retry_after is not None:
            exc = RateLimitExceededError(retry_after=retry_after)
            logger.warning(
                "Rate limit hit by %s on %s %s (limit %d per %ds)",
                client, request.method, request.url.path,
                self.max_requests, self.window_seconds,
            )
            # Raised here it would bypass the app's exception handlers
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": exc.message,
                    "details": exc.context,
                },
                headers={"Retry-After": str(exc.retry_after)},
            )

        if now >= self._next_sweep:
            self._sweep(now)

        return await call_next(request)

    def _record(self, client: str, now: float) -> Optional[int]:
        """Count one request. Returns seconds to wait if over the limit, else None."""
        hits = self._hits.setdefault(client, deque())
        cutoff = now - self.window_seconds
        while hits and hits[0] <= cutoff:
            hits.popleft()

        if len(hits) >= self.max_requests:
            return int(hits[0] - cutoff) + 1

        hits.append(now)
        return None

    def _sweep(self, now: float) -> None:
        cutoff = now - self.window_seconds
        idle = [client for client, hits in self._hits.items() if not hits or hits[-1] <= cutoff]
        for client in idle:
            del self._hits[client]
        self._next_sweep = now + self.window_seconds
        if idle:
            logger.debug("Dropped rate limit state for %d idle clients", len(idle))
