# src/services/api/rate_limit.py
"""
Sign-in/sign-up throttling.
Fixed window per client address and route, counted in Redis.
"""

from __future__ import annotations

from fastapi import Depends, Request

from src.common.errors import RateLimited
from src.common.logger import log_warning
from src.infra.redis_client import RedisClient
from src.services.api.dependencies import get_rate_limiter


class AuthRateLimiter:
    def __init__(self, redis: RedisClient, attempts: int = 5, window_seconds: int = 900) -> None:
        self._redis = redis
        self._attempts = attempts
        self._window = window_seconds

    async def hit(self, client: str, route: str) -> int:
        """
        Counts one attempt.

        Raises:
            RateLimited: more than ``attempts`` in the current window
        """
        count = await self._redis.incr_window(f"auth:{route}:{client}", self._window)
        if count > self._attempts:
            await log_warning(f"Auth rate limit hit: {client} on {route}")
            raise RateLimited(details={"retry_after_seconds": self._window})
        return count


async def auth_rate_limit(
    request: Request,
    limiter: AuthRateLimiter = Depends(get_rate_limiter),
) -> None:
    """Route dependency for the public auth endpoints."""
    client = request.client.host if request.client else "unknown"
    await limiter.hit(client, request.url.path)
