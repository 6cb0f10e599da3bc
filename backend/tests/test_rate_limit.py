import asyncio
from unittest.mock import MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.core import redis_client
from app.core.rate_limit import InMemoryRateLimitStore, RateLimiter, RedisRateLimitStore


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_allows_up_to_limit_then_blocks():
    clock = FakeClock()
    limiter = RateLimiter(InMemoryRateLimitStore(), max_requests=3, window_seconds=60, clock=clock)

    results = [limiter.check("10.0.0.1") for _ in range(4)]

    assert [r.allowed for r in results] == [True, True, True, False]
    assert results[0].remaining == 2
    assert results[3].remaining == 0
    assert results[3].retry_after == 60


def test_clients_are_counted_separately():
    limiter = RateLimiter(InMemoryRateLimitStore(), max_requests=1, window_seconds=60, clock=FakeClock())
    assert limiter.check("a").allowed
    assert limiter.check("b").allowed
    assert not limiter.check("a").allowed


def test_window_resets_after_expiry():
    clock = FakeClock()
    limiter = RateLimiter(InMemoryRateLimitStore(), max_requests=1, window_seconds=60, clock=clock)
    limiter.check("a")
    assert not limiter.check("a").allowed

    clock.now += 61
    assert limiter.check("a").allowed


def test_sweep_drops_expired_windows_only():
    clock = FakeClock()
    store = InMemoryRateLimitStore()
    limiter = RateLimiter(store, max_requests=5, window_seconds=60, clock=clock)
    limiter.check("old")
    clock.now += 30
    limiter.check("fresh")

    clock.now += 40
    assert limiter.sweep() == 1
    assert len(store) == 1


@pytest.mark.asyncio
async def test_background_sweeper_runs_until_stopped():
    clock = FakeClock()
    store = InMemoryRateLimitStore()
    limiter = RateLimiter(store, max_requests=5, window_seconds=60, clock=clock)
    limiter.check("a")
    clock.now += 120

    limiter.start_sweeper(0.01)
    try:
        await asyncio.sleep(0.05)
        assert len(store) == 0
    finally:
        await limiter.stop_sweeper()
    assert limiter._sweeper is None


def test_redis_store_counts_with_key_ttl():
    client = MagicMock()
    client.pipeline.return_value.execute.return_value = [True, 4, 600]
    store = RedisRateLimitStore(client, prefix="test")

    count, reset_at = store.hit("10.0.0.1", 900, now=1000.0)

    assert count == 4
    assert reset_at == 1600.0
    client.pipeline.return_value.incr.assert_called_once_with("test:10.0.0.1")


def test_redis_store_fails_open():
    client = MagicMock()
    client.pipeline.return_value.execute.side_effect = RedisConnectionError("down")
    limiter = RateLimiter(RedisRateLimitStore(client), max_requests=1, window_seconds=60, clock=FakeClock())

    assert limiter.check("a").allowed
    assert limiter.check("a").allowed


def test_middleware_returns_429_with_retry_after(client):
    client.app.state.rate_limiter = RateLimiter(InMemoryRateLimitStore(), max_requests=2, window_seconds=900)

    assert client.get("/health").status_code == 200
    assert client.get("/health").status_code == 200
    response = client.get("/health")

    assert response.status_code == 429
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Too many requests, please try again later."
    assert 0 < body["retryAfter"] <= 900
    assert response.headers["Retry-After"] == str(body["retryAfter"])


def test_lifespan_installs_limiter(client):
    limiter = client.app.state.rate_limiter
    assert limiter.max_requests == 100
    assert limiter.window_seconds == 900


def test_redis_health_counts_windows(monkeypatch):
    client = MagicMock()
    client.scan_iter.return_value = iter(["carbuyguru:ratelimit:a", "carbuyguru:ratelimit:b"])
    monkeypatch.setattr(redis_client, "_client", client)

    assert redis_client.check_redis_health() == {
        "status": "healthy",
        "connected": True,
        "rate_limit_windows": 2,
    }


def test_redis_health_reports_outage(monkeypatch):
    client = MagicMock()
    client.ping.side_effect = RedisConnectionError("down")
    monkeypatch.setattr(redis_client, "_client", client)

    health = redis_client.check_redis_health()
    assert health["status"] == "unhealthy"
    assert health["connected"] is False


def test_middleware_reports_remaining_requests(client):
    first = client.get("/health")
    second = client.get("/health")

    assert first.headers["X-RateLimit-Remaining"] == "99"
    assert second.headers["X-RateLimit-Remaining"] == "98"
