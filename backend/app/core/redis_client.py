"""Shared Redis connection, used by the rate limiter when ``RATE_LIMIT_BACKEND=redis``."""
import logging
from typing import Optional

import redis
from redis.exceptions import RedisError

from app.core.config import settings

logger = logging.getLogger(__name__)

RATE_LIMIT_PREFIX = "carbuyguru:ratelimit"

_client: Optional[redis.Redis] = None


def get_redis() -> redis.Redis:
    """Lazily connect; the client is reused for the life of the process."""
    global _client
    if _client is None:
        logger.info("Connecting rate limiter to Redis")
        _client = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_timeout=2,
            socket_connect_timeout=2,
            retry_on_timeout=True,
        )
    return _client


def check_redis_health() -> dict:
    """Ping Redis and count live rate-limit windows."""
    try:
        client = get_redis()
        client.ping()
        windows = sum(1 for _ in client.scan_iter(match=f"{RATE_LIMIT_PREFIX}:*", count=500))
    except RedisError as e:
        logger.error(f"Redis health check failed: {e}")
        return {"status": "unhealthy", "connected": False, "error": str(e)}
    return {"status": "healthy", "connected": True, "rate_limit_windows": windows}
