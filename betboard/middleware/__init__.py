from betboard.middleware.rate_limit import RateLimitMiddleware
from betboard.middleware.request_context import RequestContextMiddleware

__all__ = ["RateLimitMiddleware", "RequestContextMiddleware"]
