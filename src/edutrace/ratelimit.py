"""Per-identifier request counting.

A window opens on the first request for an identifier and lasts
``window_seconds``; the count restarts when the window has elapsed.

``RateLimiter`` keeps its windows in process memory, so limits are only
enforced per instance. Multi-instance deployments should configure
``EDUTRACE_REDIS_URL`` so ``RedisRateLimiter`` keeps the counters in a
shared store behind the same interface.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Union

from redis import asyncio as aioredis

from edutrace.config import get_settings
from edutrace.errors import RateLimitExceeded

logger = logging.getLogger(__name__)


@dataclass
class _Window:
    count: int
    reset_at: float


class RateLimiter:
    """In-memory fixed-duration windows keyed by identifier."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._windows: Dict[str, _Window] = {}

    def check(
        self,
        identifier: str,
        max_requests: int = 100,
        window_seconds: float = 60.0,
    ) -> None:
        """Count one request, raising ``RateLimitExceeded`` when over the limit."""
        now = self._clock()
        window = self._windows.get(identifier)

        if window is None or now > window.reset_at:
            self._windows[identifier] = _Window(count=1, reset_at=now + window_seconds)
            return

        if window.count >= max_requests:
            logger.info("Rate limit exceeded for %s", identifier)
            raise RateLimitExceeded(window.reset_at - now)

        window.count += 1

    async def hit(
        self,
        identifier: str,
        max_requests: int = 100,
        window_seconds: float = 60.0,
    ) -> None:
        self.check(identifier, max_requests, window_seconds)

    def reset(self) -> None:
        self._windows.clear()


class RedisRateLimiter:
    """Shared-store variant of ``RateLimiter`` for multi-instance deployments."""

    def __init__(self, url: str, prefix: str = "ratelimit:"):
        self.url = url
        self.prefix = prefix
        self._redis = None

    async def _get_redis(self):
        """Get Redis connection."""
        if not self._redis:
            self._redis = aioredis.from_url(self.url)
        return self._redis

    async def hit(
        self,
        identifier: str,
        max_requests: int = 100,
        window_seconds: float = 60.0,
    ) -> None:
        redis = await self._get_redis()
        key = f"{self.prefix}{identifier}"

        count = await redis.incr(key)
        if count == 1:
            await redis.pexpire(key, int(window_seconds * 1000))
            return

        if count > max_requests:
            ttl_ms = await redis.pttl(key)
            if ttl_ms is None or ttl_ms < 0:
                # Key lost its expiry; start a fresh window
                await redis.set(key, 1, px=int(window_seconds * 1000))
                return
            logger.info("Rate limit exceeded for %s", identifier)
            raise RateLimitExceeded(ttl_ms / 1000)

    async def reset(self) -> None:
        redis = await self._get_redis()
        async for key in redis.scan_iter(match=f"{self.prefix}*"):
            await redis.delete(key)


AnyRateLimiter = Union[RateLimiter, RedisRateLimiter]

_default_limiter: Optional[AnyRateLimiter] = None


def get_rate_limiter() -> AnyRateLimiter:
    """Return the process-wide limiter."""
    global _default_limiter

    if _default_limiter is None:
        settings = get_settings()
        if settings.redis_url:
            _default_limiter = RedisRateLimiter(settings.redis_url)
        else:
            _default_limiter = RateLimiter()
    return _default_limiter

