"""
Async Redis client for the request throttle.
Separated from business logic for clean architecture.
"""

from typing import Optional

import redis.asyncio as redis

from marketing_api.core.config import get_settings
from marketing_api.core.logging import get_logger
from marketing_api.core.metrics import redis_connection_errors

logger = get_logger(__name__)


class RedisClient:
    """Lazily-connected Redis client shared by the process."""

    _instance: Optional[redis.Redis] = None

    @classmethod
    async def get_client(cls) -> Optional[redis.Redis]:
        """Get or create the client. Returns None if Redis is disabled or unreachable."""
        settings = get_settings()
        if not settings.REDIS_ENABLED:
            return None

        if cls._instance is None:
            client = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30,
            )
            try:
                await client.ping()
            except redis.RedisError as e:
                redis_connection_errors.inc()
                logger.error("redis_connection_failed", error=str(e))
                await client.aclose()
                return None
            logger.info("redis_connected", url=settings.REDIS_URL)
            cls._instance = client
        return cls._instance

    @classmethod
    async def close(cls):
        """Close Redis connection."""
        if cls._instance:
            await cls._instance.aclose()
            cls._instance = None


async def get_redis() -> Optional[redis.Redis]:
    """Get Redis client instance."""
    return await RedisClient.get_client()


async def close_redis() -> None:
    await RedisClient.close()
