"""
Rate Limit Middleware

Fixed-window rate limiting backed by Redis, shared by every worker.
"""

import logging
import time
from typing import Callable, Tuple

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware

from ridehub.config import settings
from ridehub.database import get_redis


logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Rate limiting middleware using a per-minute fixed window.

    SECURITY: Protects against brute force and DoS attacks.
    Requests carrying a bearer token get the authenticated budget, keyed
    by token; anonymous requests are limited per client IP.

    If Redis is unavailable requests are let through.
    """

    def __init__(self, app):
        super().__init__(app)
        self.window_size = 60  # 1 minute window
        self._prefix = "ratelimit"

    def _get_key(self, request: Request) -> Tuple[str, int]:
        """
        Get rate limit key and limit based on request.

        Returns (key, limit) tuple.
        """
        authorization = request.headers.get("Authorization", "")
        if authorization.startswith("Bearer "):
            # Token tail is enough to separate callers without storing the token
            return f"token:{authorization[-24:]}", settings.rate_limit_auth_per_minute

        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            client_ip = forwarded.split(",")[0].strip()
        else:
            client_ip = request.client.host if request.client else "unknown"

        return f"ip:{client_ip}", settings.rate_limit_per_minute

    async def _is_rate_limited(self, key: str, limit: int) -> bool:
        """Count this request in the current window and compare with the limit."""
        window = int(time.time() // self.window_size)
        redis_key = f"{self._prefix}:{key}:{window}"

        redis_client = get_redis()
        count = await redis_client.incr(redis_key)
        if count == 1:
            await redis_client.expire(redis_key, self.window_size * 2)

        return count > limit

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request with rate limiting."""
        # Skip rate limiting for health checks
        if request.url.path in ["/health", "/", "/docs", "/redoc", "/openapi.json"]:
            return await call_next(request)

        key, limit = self._get_key(request)

        try:
            limited = await self._is_rate_limited(key, limit)
        except (RedisError, RuntimeError) as e:
            logger.warning(f"[RateLimit] Skipping check, Redis unavailable: {e}")
            limited = False

        if limited:
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "detail": "Rate limit exceeded. Please try again later.",
                    "retry_after_seconds": self.window_size
                },
                headers={"Retry-After": str(self.window_size)}
            )

        return await call_next(request)
