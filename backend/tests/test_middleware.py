"""
IdeaNote Backend: Middleware Tests
====================================

What:  Rate limiting, request-ID handling and access logging on a minimal
       FastAPI app.
"""

import logging

import pytest
from fastapi import FastAPI, HTTPException
from httpx import ASGITransport, AsyncClient

from ideanote.middleware.logging import RequestLoggingMiddleware, level_for_status
from ideanote.middleware.rate_limit import RateLimitMiddleware
from ideanote.middleware.request_id import RequestIDMiddleware, accepted_request_id


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now


def _app(max_requests, clock=None):
    app = FastAPI()

    @app.get("/ping")
    async def ping():
        return {"ok": True}

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    @app.get("/api/files/{file_path:path}")
    async def serve(file_path: str):
        return {"path": file_path}

    @app.get("/missing")
    async def missing():
        raise HTTPException(status_code=404)

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=max_requests,
        window_seconds=60,
        clock=clock or FakeClock(),
    )
    return app


def _client(app):
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


# ══════════════════════════════════════════════════════════════════════════
# Rate Limiting
# ══════════════════════════════════════════════════════════════════════════

class TestRateLimit:
    @pytest.mark.asyncio
    async def test_rejects_after_quota(self):
        async with _client(_app(max_requests=2)) as client:
            first = await client.get("/ping")
            second = await client.get("/ping")
            third = await client.get("/ping")
            health = await client.get("/health")

        assert first.status_code == 200
        assert second.status_code == 200
        assert third.status_code == 429
        assert third.json()["error"] == "rate_limit_exceeded"
        assert third.headers["Retry-After"] == "61"
        # Health checks are never limited
        assert health.status_code == 200

    @pytest.mark.asyncio
    async def test_image_serving_is_not_counted(self):
        async with _client(_app(max_requests=1)) as client:
            images = [await client.get(f"/api/files/2024/06/01/{i}.png") for i in range(5)]
            ping = await client.get("/ping")

        assert all(r.status_code == 200 for r in images)
        assert ping.status_code == 200

    @pytest.mark.asyncio
    async def test_window_slides(self):
        clock = FakeClock()
        async with _client(_app(max_requests=1, clock=clock)) as client:
            assert (await client.get("/ping")).status_code == 200

            clock.now += 30
            blocked = await client.get("/ping")
            assert blocked.status_code == 429
            assert blocked.headers["Retry-After"] == "31"

            clock.now += 31
            assert (await client.get("/ping")).status_code == 200

    def test_idle_clients_are_swept(self):
        clock = FakeClock()
        limiter = RateLimitMiddleware(FastAPI(), max_requests=5, window_seconds=60, clock=clock)
        limiter._record("10.0.0.1", clock.now)
        clock.now += 90
        limiter._record("10.0.0.2", clock.now)

        limiter._sweep(clock.now)

        assert set(limiter._hits) == {"10.0.0.2"}


# ══════════════════════════════════════════════════════════════════════════
# Request ID
# ══════════════════════════════════════════════════════════════════════════

class TestRequestID:
    @pytest.mark.asyncio
    async def test_client_id_is_echoed(self):
        async with _client(_app(max_requests=10)) as client:
            echoed = await client.get("/ping", headers={"X-Request-ID": "abc123"})
            generated = await client.get("/ping")

        assert echoed.headers["X-Request-ID"] == "abc123"
        assert len(generated.headers["X-Request-ID"]) == 8

    @pytest.mark.asyncio
    async def test_unsafe_client_id_is_replaced(self):
        async with _client(_app(max_requests=10)) as client:
            response = await client.get("/ping", headers={"X-Request-ID": "x" * 65})

        assert response.headers["X-Request-ID"] != "x" * 65
        assert len(response.headers["X-Request-ID"]) == 8

    @pytest.mark.parametrize("raw", [None, "", "has space", "semi;colon", "a" * 65])
    def test_rejected_ids(self, raw):
        assert accepted_request_id(raw) is None

    @pytest.mark.parametrize("raw", ["abc123", "req-1.2_3", "a" * 64])
    def test_accepted_ids(self, raw):
        assert accepted_request_id(raw) == raw


# ══════════════════════════════════════════════════════════════════════════
# Access Log
# ══════════════════════════════════════════════════════════════════════════

class TestAccessLog:
    @pytest.mark.parametrize(
        "status, level",
        [(200, logging.INFO), (302, logging.INFO), (404, logging.WARNING), (503, logging.ERROR)],
    )
    def test_level_for_status(self, status, level):
        assert level_for_status(status) == level

    @pytest.mark.asyncio
    async def test_logs_request_with_owner(self, caplog):
        caplog.set_level(logging.INFO, logger="ideanote.access")
        async with _client(_app(max_requests=10)) as client:
            await client.get("/ping", headers={"X-Owner-Id": "ana", "X-Request-ID": "r1"})

        records = [r for r in caplog.records if r.name == "ideanote.access"]
        assert len(records) == 1
        assert records[0].getMessage().startswith("GET /ping 200 ")
        assert "[r1] owner=ana" in records[0].getMessage()
        assert records[0].owner == "ana"

    @pytest.mark.asyncio
    async def test_quiet_paths_log_only_failures(self, caplog):
        caplog.set_level(logging.INFO, logger="ideanote.access")
        async with _client(_app(max_requests=10)) as client:
            await client.get("/health")
            await client.get("/api/files/a.png")
            await client.get("/missing")

        paths = [r.path for r in caplog.records if r.name == "ideanote.access"]
        assert paths == ["/missing"]
