# src/infra/redis_client.py
"""
Redis client.
Used for short-lived counters (sign-in throttling).
"""

from __future__ import annotations

import redis.asyncio as redis

from src.common.constants import TypeMsg
from src.common.logger import log_error, log_info


class RedisClient:
    """
    Async Redis client (singleton).
    All keys are prefixed with the configured namespace.
    """

    _instance: RedisClient | None = None
    _client: redis.Redis | None = None

    def __new__(cls) -> RedisClient:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if hasattr(self, "_initialized"):
            return
        self._initialized = True
        self._client = None
        self._namespace = "tuktuk"

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            raise RuntimeError("Redis client is not initialised. Call connect() first.")
        return self._client

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    def _make_key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    async def connect(
        self,
        url: str | None = None,
        max_connections: int = 50,
        namespace: str | None = None,
    ) -> None:
        """
        Connects to Redis.

        Args:
            url: Redis URL (taken from settings when None)
            max_connections: Pool size
            namespace: Key prefix
        """
        if self._client is not None:
            return

        if url is None:
            from src.config import settings
            url = settings.redis.url
            max_connections = settings.redis.REDIS_MAX_CONNECTIONS
            namespace = settings.redis.REDIS_NAMESPACE

        if namespace:
            self._namespace = namespace

        await log_info("Connecting to Redis...", type_msg=TypeMsg.INFO)

        self._client = redis.from_url(
            url,
            max_connections=max_connections,
            decode_responses=True,
        )
        await self._client.ping()

        await log_info("Redis connection established", type_msg=TypeMsg.INFO)

    async def disconnect(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            await log_info("Redis connection closed", type_msg=TypeMsg.INFO)

    async def incr_window(self, key: str, window_seconds: int) -> int:
        """
        Increments a fixed-window counter.
        The TTL is set when the window opens (first increment).

        Args:
            key: Counter key
            window_seconds: Window length

        Returns:
            Counter value after increment
        """
        full_key = self._make_key(key)
        count = await self.client.incr(full_key)
        if count == 1:
            await self.client.expire(full_key, window_seconds)
        return count

    async def health_check(self) -> bool:
        try:
            return await self.client.ping()
        except Exception as e:
            await log_error(f"Redis health check failed: {e}")
            return False


def get_redis() -> RedisClient:
    return RedisClient()


async def init_redis() -> None:
    from src.config import settings

    redis_client = get_redis()
    await redis_client.connect(
        url=settings.redis.url,
        max_connections=settings.redis.REDIS_MAX_CONNECTIONS,
        namespace=settings.redis.REDIS_NAMESPACE,
    )


async def close_redis() -> None:
    await get_redis().disconnect()
