"""Redis-based sliding window rate limiting for write requests."""

import time

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from betboard.logging_config import get_logger

logger = get_logger(__name__)

LIMITED_METHODS = {"POST"}

DEFAULT_LIMIT = 30
DEFAULT_WINDOW = 60  # seconds


def rate_limit_identifier(request: Request) -> str:
    """Token suffix for signed-in callers, client IP otherwise."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer ") and len(auth_header) > 23:
        return f"token:{auth_header[-16:]}"
    return f"ip:{request.client.host if request.client else 'unknown'}"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Redis sliding window limiter (ZADD + ZREMRANGEBYSCORE) on POST requests.

    ``redis_getter`` may return None when the service runs without Redis;
    requests then pass through unlimited.
    """

    def __init__(self, app, redis_getter, limit: int = DEFAULT_LIMIT, window: int = DEFAULT_WINDOW):
        super().__init__(app)
        self._redis_getter = redis_getter
        self._limit = limit
        self._window = window

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method not in LIMITED_METHODS:
            return await call_next(request)

        redis = self._redis_getter()
        if redis is None:
            return await call_next(request)

        identifier = rate_limit_identifier(request)
        key = f"betboard:ratelimit:{identifier}:{request.url.path}"

        try:
            now = time.time()
            pipe = redis.pipeline()
            pipe.zremrangebyscore(key, 0, now - self._window)
            pipe.zadd(key, {str(now): now})
            pipe.zcard(key)
            pipe.expire(key, self._window + 1)
            results = await pipe.execute()
            request_count = results[2]
        except Exception as e:
            # Redis trouble never blocks a write
            logger.warning("rate_limit_redis_error", error=str(e))
            return await call_next(request)

        if request_count > self._limit:
            logger.warning(
                "rate_limit_exceeded",
                identifier=identifier,
                path=request.url.path,
                count=request_count,
                limit=self._limit,
            )
            return JSONResponse(
                status_code=429,
                content={
                    "type": "https://betboard.app/errors/rate_limited",
                    "title": "Rate Limited",
                    "status": 429,
                    "detail": f"Rate limit exceeded: {self._limit} requests per {self._window}s",
                },
                headers={"Retry-After": str(self._window)},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self._limit)
        response.headers["X-RateLimit-Remaining"] = str(max(0, self._limit - request_count))
        return response
