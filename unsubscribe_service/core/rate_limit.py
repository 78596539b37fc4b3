"""Sliding-window rate limiting keyed by client identifier."""

import logging
import threading
import time
import uuid
from collections import deque
from collections.abc import Callable
from typing import Protocol

import redis.asyncio as aioredis
from starlette.requests import Request

logger = logging.getLogger(__name__)


def get_client_ip(request: Request) -> str:
    """Extract the real client IP behind Cloudflare Tunnel / reverse proxy."""
    return (
        request.headers.get("CF-Connecting-IP")
        or request.headers.get("X-Forwarded-For", "").split(",")[0].strip()
        or (request.client.host if request.client else "127.0.0.1")
    )


class RateLimiter(Protocol):
    """Admits or rejects a request for a client."""

    async def allow(self, client_id: str) -> bool: ...


class InMemoryRateLimiter:
    """Per-process sliding window.

    State lives only as long as the process and is not shared between
    server instances; use ``RedisRateLimiter`` when running more than one.
    """

    def __init__(
        self,
        max_requests: int = 10,
        window_seconds: float = 60.0,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, deque[float]] = {}
        self._lock = threading.Lock()
        self._last_sweep: float | None = None

    async def allow(self, client_id: str) -> bool:
        now = self._clock()
        cutoff = now - self.window_seconds
        with self._lock:
            if self._last_sweep is None or now - self._last_sweep >= self.window_seconds:
                self._sweep(cutoff)
                self._last_sweep = now
            window = self._windows.setdefault(client_id, deque())
            while window and window[0] <= cutoff:
                window.popleft()
            if len(window) >= self.max_requests:
                logger.warning("Rate limit exceeded for %s", client_id)
                return False
            window.append(now)
            return True

    def _sweep(self, cutoff: float) -> None:
        """Drop clients whose newest request has left the window. Caller holds the lock."""
        stale = [
            cid for cid, window in self._windows.items() if not window or window[-1] <= cutoff
        ]
        for cid in stale:
            del self._windows[cid]
        if stale:
            logger.debug("Evicted %d idle rate limit windows", len(stale))

    @property
    def tracked_clients(self) -> int:
        """Number of clients currently holding a window."""
        with self._lock:
            return len(self._windows)

    def reset(self) -> None:
        """Forget every client window."""
        with self._lock:
            self._windows.clear()
            self._last_sweep = None


class RedisRateLimiter:
    """Sliding window stored in a Redis sorted set per client.

    Scores are request timestamps in seconds. The prune/count/add sequence is
    not atomic, so two instances racing on the same client may each admit
    one request past the limit.
    """

    def __init__(
        self,
        redis: aioredis.Redis,
        max_requests: int = 10,
        window_seconds: float = 60.0,
        *,
        key_prefix: str = "unsub:ratelimit:",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.redis = redis
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.key_prefix = key_prefix
        self._clock = clock

    async def allow(self, client_id: str) -> bool:
        key = f"{self.key_prefix}{client_id}"
        now = self._clock()

        await self.redis.zremrangebyscore(key, "-inf", now - self.window_seconds)
        count = await self.redis.zcard(key)
        if count >= self.max_requests:
            logger.warning("Rate limit exceeded for %s", client_id)
            return False

        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.zadd(key, {f"{now}:{uuid.uuid4().hex}": now})
            pipe.expire(key, max(1, int(self.window_seconds)))
            await pipe.execute()
        return True
