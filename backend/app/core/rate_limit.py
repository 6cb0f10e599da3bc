"""Rate limiting middleware for API protection.

Fixed-window counters keyed by client address. The counter store is injected so
the limiter can run against process memory or a shared Redis instance.
"""
import asyncio
import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol, Tuple

from fastapi import Request
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import settings
from app.core.errors import error_response
from app.core.redis_client import RATE_LIMIT_PREFIX, get_redis

logger = logging.getLogger(__name__)


class RateLimitStore(Protocol):
    def hit(self, key: str, window_seconds: int, now: float) -> Tuple[int, float]:
        """Count one request for ``key``; return (count in window, window reset time)."""
        ...

    def sweep(self, now: float) -> int:
        """Drop expired windows; return how many were removed."""
        ...


@dataclass
class _Window:
    count: int
    reset_at: float


class InMemoryRateLimitStore:
    """Process-local store. Not shared between workers."""

    def __init__(self):
        self._windows: Dict[str, _Window] = {}

    def hit(self, key: str, window_seconds: int, now: float) -> Tuple[int, float]:
        window = self._windows.get(key)
        if window is None or now > window.reset_at:
            window = _Window(count=0, reset_at=now + window_seconds)
            self._windows[key] = window
        window.count += 1
        return window.count, window.reset_at

    def sweep(self, now: float) -> int:
        expired = [key for key, window in self._windows.items() if now > window.reset_at]
        for key in expired:
            del self._windows[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._windows)


class RedisRateLimitStore:
    """Redis-backed store; windows expire through key TTLs."""

    def __init__(self, client, prefix: str = RATE_LIMIT_PREFIX):
        self.client = client
        self.prefix = prefix

    def hit(self, key: str, window_seconds: int, now: float) -> Tuple[int, float]:
        redis_key = f"{self.prefix}:{key}"
        try:
            pipe = self.client.pipeline()
            pipe.set(redis_key, 0, ex=window_seconds, nx=True)
            pipe.incr(redis_key)
            pipe.ttl(redis_key)
            _, count, ttl = pipe.execute()
        except RedisError as e:
            logger.warning(f"Rate limiter error: {e}")
            return 0, now + window_seconds  # Fail open if Redis is unavailable
        ttl = ttl if ttl and ttl > 0 else window_seconds
        return int(count), now + ttl

    def sweep(self, now: float) -> int:
        return 0


@dataclass
class RateLimitResult:
    allowed: bool
    remaining: int
    retry_after: int


class RateLimiter:
    def __init__(
        self,
        store: RateLimitStore,
        max_requests: int = 100,
        window_seconds: int = 15 * 60,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self._sweeper: Optional[asyncio.Task] = None

    def check(self, client_id: str) -> RateLimitResult:
        now = self.clock()
        count, reset_at = self.store.hit(client_id, self.window_seconds, now)
        return RateLimitResult(
            allowed=count <= self.max_requests,
            remaining=max(0, self.max_requests - count),
            retry_after=max(0, math.ceil(reset_at - now)),
        )

    def sweep(self) -> int:
        removed = self.store.sweep(self.clock())
        if removed:
            logger.debug(f"Swept {removed} expired rate limit windows")
        return removed

    async def _sweep_forever(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            self.sweep()

    def start_sweeper(self, interval: float) -> None:
        if self._sweeper is None:
            self._sweeper = asyncio.create_task(self._sweep_forever(interval))

    async def stop_sweeper(self) -> None:
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None


def build_rate_limiter() -> RateLimiter:
    """Create the limiter configured by settings."""
    if settings.RATE_LIMIT_BACKEND == "redis":
        store = RedisRateLimitStore(get_redis())
    else:
        store = InMemoryRateLimitStore()
    return RateLimiter(
        store,
        max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
        window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
    )


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Enforces the limiter stored on ``app.state.rate_limiter``."""

    async def dispatch(self, request: Request, call_next):
        limiter: Optional[RateLimiter] = getattr(request.app.state, "rate_limiter", None)
        if limiter is None:
            return await call_next(request)

        client_id = request.client.host if request.client else "unknown"
        result = limiter.check(client_id)

        if not result.allowed:
            logger.warning(f"Rate limit exceeded for {client_id}")
            return error_response(
                429,
                "Too many requests, please try again later.",
                headers={"Retry-After": str(result.retry_after)},
                retryAfter=result.retry_after,
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Remaining"] = str(result.remaining)
        return response
