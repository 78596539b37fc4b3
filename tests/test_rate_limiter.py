"""Tests for the sliding-window rate limiters (in-memory and Redis)."""

import fakeredis.aioredis
from starlette.requests import Request

from unsubscribe_service.core.rate_limit import (
    InMemoryRateLimiter,
    RedisRateLimiter,
    get_client_ip,
)


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _request(
    headers: dict[str, str], client: tuple[str, int] | None = ("10.0.0.9", 5000)
) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/unsubscribe",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        "client": client,
    }
    return Request(scope)


# ---------------------------------------------------------------------------
# In-memory limiter
# ---------------------------------------------------------------------------


class TestInMemoryRateLimiter:
    """Tests for InMemoryRateLimiter."""

    async def test_eleventh_request_in_window_is_rejected(self) -> None:
        limiter = InMemoryRateLimiter(max_requests=10, window_seconds=60)
        results = [await limiter.allow("1.2.3.4") for _ in range(11)]
        assert results == [True] * 10 + [False]

    async def test_clients_are_counted_separately(self) -> None:
        limiter = InMemoryRateLimiter(max_requests=2, window_seconds=60)
        assert await limiter.allow("a")
        assert await limiter.allow("a")
        assert not await limiter.allow("a")
        assert await limiter.allow("b")

    async def test_window_slides(self) -> None:
        """Requests older than the window stop counting."""
        clock = FakeClock()
        limiter = InMemoryRateLimiter(max_requests=2, window_seconds=60, clock=clock)

        assert await limiter.allow("ip")
        clock.now += 30
        assert await limiter.allow("ip")
        assert not await limiter.allow("ip")

        clock.now += 30  # first request is now exactly one window old
        assert await limiter.allow("ip")
        assert not await limiter.allow("ip")

    async def test_rejected_requests_are_not_recorded(self) -> None:
        """Hammering while limited does not extend the lockout."""
        clock = FakeClock()
        limiter = InMemoryRateLimiter(max_requests=1, window_seconds=10, clock=clock)

        assert await limiter.allow("ip")
        for _ in range(5):
            clock.now += 1
            assert not await limiter.allow("ip")

        clock.now += 5  # 10 s after the only recorded request
        assert await limiter.allow("ip")

    async def test_idle_clients_are_evicted(self) -> None:
        """Clients whose windows have expired do not stay in memory."""
        clock = FakeClock(now=0.0)
        limiter = InMemoryRateLimiter(max_requests=10, window_seconds=60, clock=clock)

        for i in range(1000):
            assert await limiter.allow(f"10.0.{i // 256}.{i % 256}")
        assert limiter.tracked_clients == 1000

        clock.now = 3600
        assert await limiter.allow("192.0.2.1")
        assert limiter.tracked_clients == 1

    async def test_active_clients_survive_sweep(self) -> None:
        clock = FakeClock(now=0.0)
        limiter = InMemoryRateLimiter(max_requests=2, window_seconds=60, clock=clock)

        assert await limiter.allow("idle")
        clock.now = 30
        assert await limiter.allow("busy")
        assert await limiter.allow("busy")

        clock.now = 61
        assert not await limiter.allow("busy")
        assert limiter.tracked_clients == 1

    async def test_reset_clears_state(self) -> None:
        limiter = InMemoryRateLimiter(max_requests=1, window_seconds=60)
        assert await limiter.allow("ip")
        assert not await limiter.allow("ip")
        limiter.reset()
        assert await limiter.allow("ip")


# ---------------------------------------------------------------------------
# Redis limiter
# ---------------------------------------------------------------------------


class TestRedisRateLimiter:
    """Tests for RedisRateLimiter against fakeredis."""

    async def test_eleventh_request_in_window_is_rejected(
        self, fake_redis: fakeredis.aioredis.FakeRedis
    ) -> None:
        limiter = RedisRateLimiter(fake_redis, max_requests=10, window_seconds=60)
        results = [await limiter.allow("1.2.3.4") for _ in range(11)]
        assert results == [True] * 10 + [False]

    async def test_window_slides(self, fake_redis: fakeredis.aioredis.FakeRedis) -> None:
        clock = FakeClock(now=1_700_000_000.0)
        limiter = RedisRateLimiter(fake_redis, max_requests=2, window_seconds=60, clock=clock)

        assert await limiter.allow("ip")
        assert await limiter.allow("ip")
        assert not await limiter.allow("ip")

        clock.now += 61
        assert await limiter.allow("ip")

    async def test_rejections_are_not_recorded(
        self, fake_redis: fakeredis.aioredis.FakeRedis
    ) -> None:
        limiter = RedisRateLimiter(fake_redis, max_requests=1, window_seconds=60)
        assert await limiter.allow("ip")
        assert not await limiter.allow("ip")
        assert not await limiter.allow("ip")
        assert await fake_redis.zcard("unsub:ratelimit:ip") == 1

    async def test_key_expires_with_window(
        self, fake_redis: fakeredis.aioredis.FakeRedis
    ) -> None:
        limiter = RedisRateLimiter(fake_redis, max_requests=5, window_seconds=60)
        await limiter.allow("ip")
        ttl = await fake_redis.ttl("unsub:ratelimit:ip")
        assert 0 < ttl <= 60

    async def test_clients_are_counted_separately(
        self, fake_redis: fakeredis.aioredis.FakeRedis
    ) -> None:
        limiter = RedisRateLimiter(fake_redis, max_requests=1, window_seconds=60)
        assert await limiter.allow("a")
        assert not await limiter.allow("a")
        assert await limiter.allow("b")


# ---------------------------------------------------------------------------
# Client identification
# ---------------------------------------------------------------------------


class TestClientIp:
    """Tests for get_client_ip."""

    def test_uses_first_forwarded_for_entry(self) -> None:
        request = _request({"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})
        assert get_client_ip(request) == "203.0.113.7"

    def test_prefers_cloudflare_header(self) -> None:
        request = _request(
            {"CF-Connecting-IP": "198.51.100.2", "X-Forwarded-For": "203.0.113.7"}
        )
        assert get_client_ip(request) == "198.51.100.2"

    def test_falls_back_to_peer_address(self) -> None:
        assert get_client_ip(_request({})) == "10.0.0.9"

    def test_defaults_to_loopback_without_peer(self) -> None:
        assert get_client_ip(_request({}, client=None)) == "127.0.0.1"
