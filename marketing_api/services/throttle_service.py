"""
Fixed-window request throttle backed by Redis.

This sits in front of the admission pipelines and caps how many requests
one IP can make per window (default 15 minutes). It is separate from the
24h per-IP limits, which are derived from stored records.

Circuit Breaker Pattern:
  On Redis failure, the throttle "fails open" (allows the request).
  The store-derived 24h limits still apply, so an outage only loosens
  the short-window burst protection.
"""

import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

import redis.asyncio as redis

from marketing_api.core.logging import get_logger
from marketing_api.core.metrics import record_throttle_rejection, redis_connection_errors

logger = get_logger(__name__)


@dataclass
class ThrottleDecision:
    allowed: bool
    count: int = 0
    retry_after: int = 0


class RequestThrottle:
    """
    Per-IP fixed-window counter.

    Key: throttle:{scope}:{ip}:{window_index}. INCR and EXPIRE run in one
    MULTI/EXEC so a key never outlives its window.
    """

    def __init__(
        self,
        scope: str,
        limit: int,
        window_seconds: int,
        client_factory: Callable[[], Awaitable[Optional[redis.Redis]]],
        clock: Callable[[], float] = time.time,
    ):
        self.scope = scope
        self.limit = limit
        self.window_seconds = window_seconds
        self.client_factory = client_factory
        self.clock = clock

    def _key(self, ip_address: str, window_index: int) -> str:
        return f"throttle:{self.scope}:{ip_address}:{window_index}"

    async def hit(self, ip_address: str) -> ThrottleDecision:
        client = await self.client_factory()
        if client is None:
            return ThrottleDecision(allowed=True)

        now = self.clock()
        window_index = int(now // self.window_seconds)
        key = self._key(ip_address, window_index)
        try:
            async with client.pipeline(transaction=True) as pipe:
                pipe.incr(key)
                pipe.expire(key, self.window_seconds)
                count, _ = await pipe.execute()
        except (redis.RedisError, OSError) as e:
            redis_connection_errors.inc()
            logger.warning("throttle_unavailable", scope=self.scope, error=str(e))
            return ThrottleDecision(allowed=True)

        if count > self.limit:
            retry_after = max(1, int((window_index + 1) * self.window_seconds - now))
            record_throttle_rejection(self.scope)
            logger.warning(
                "throttle_rejected",
                scope=self.scope,
                ip=ip_address,
                count=count,
                limit=self.limit,
            )
            return ThrottleDecision(allowed=False, count=count, retry_after=retry_after)

        return ThrottleDecision(allowed=True, count=count)
