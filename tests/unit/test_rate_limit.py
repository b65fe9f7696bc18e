"""Unit tests for the POST rate limiting middleware."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from betboard.middleware.rate_limit import RateLimitMiddleware


def _redis(count: int | None = None, error: Exception | None = None) -> MagicMock:
    pipe = MagicMock()
    if error is not None:
        pipe.execute = AsyncMock(side_effect=error)
    else:
        pipe.execute = AsyncMock(return_value=[0, 1, count, True])
    redis = MagicMock()
    redis.pipeline.return_value = pipe
    return redis


def _app(redis) -> FastAPI:
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, redis_getter=lambda: redis, limit=5, window=60)

    @app.post("/write")
    async def write():
        return {"ok": True}

    @app.get("/read")
    async def read():
        return {"ok": True}

    return app


async def _call(app: FastAPI, method: str, path: str):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.request(method, path)


class TestRateLimitMiddleware:
    @pytest.mark.asyncio
    async def test_under_limit(self):
        response = await _call(_app(_redis(count=3)), "POST", "/write")
        assert response.status_code == 200
        assert response.headers["X-RateLimit-Remaining"] == "2"

    @pytest.mark.asyncio
    async def test_over_limit(self):
        response = await _call(_app(_redis(count=6)), "POST", "/write")
        assert response.status_code == 429
        assert response.headers["Retry-After"] == "60"
        assert response.json()["status"] == 429

    @pytest.mark.asyncio
    async def test_reads_not_limited(self):
        redis = _redis(count=100)
        response = await _call(_app(redis), "GET", "/read")
        assert response.status_code == 200
        redis.pipeline.assert_not_called()

    @pytest.mark.asyncio
    async def test_without_redis(self):
        response = await _call(_app(None), "POST", "/write")
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_redis_error_passes_through(self):
        response = await _call(_app(_redis(error=ConnectionError("down"))), "POST", "/write")
        assert response.status_code == 200
