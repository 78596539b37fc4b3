"""Dependency injection for FastAPI routes."""

from collections.abc import AsyncGenerator
from datetime import timedelta
from functools import lru_cache
from typing import Annotated

import redis.asyncio as aioredis
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from unsubscribe_service.core.config import settings
from unsubscribe_service.core.database import get_async_session
from unsubscribe_service.core.rate_limit import (
    InMemoryRateLimiter,
    RateLimiter,
    RedisRateLimiter,
)
from unsubscribe_service.core.tokens import TokenCodec
from unsubscribe_service.services.page_service import PageRenderer


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Alias for get_async_session so tests can override one dependency."""
    async for session in get_async_session():
        yield session


# Shared Redis connection pool
_redis_pool: aioredis.ConnectionPool | None = None


def _get_redis_pool() -> aioredis.ConnectionPool:
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is None:
        _redis_pool = aioredis.ConnectionPool.from_url(
            str(settings.redis_url), decode_responses=True
        )
    return _redis_pool


def create_rate_limiter() -> RateLimiter:
    """Build the limiter selected by ``RATE_LIMIT_BACKEND``."""
    if settings.rate_limit_backend == "redis":
        return RedisRateLimiter(
            aioredis.Redis(connection_pool=_get_redis_pool()),
            max_requests=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )
    return InMemoryRateLimiter(
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )


def get_rate_limiter(request: Request) -> RateLimiter:
    """Return the limiter instance owned by the running application."""
    limiter: RateLimiter = request.app.state.rate_limiter
    return limiter


@lru_cache
def get_token_codec() -> TokenCodec:
    """Codec keyed with the shared signing secret."""
    return TokenCodec(settings.secret_key, default_ttl=timedelta(days=settings.token_ttl_days))


@lru_cache
def get_page_renderer() -> PageRenderer:
    return PageRenderer()


# Type aliases for route signatures
DBSession = Annotated[AsyncSession, Depends(get_db)]
Codec = Annotated[TokenCodec, Depends(get_token_codec)]
Limiter = Annotated[RateLimiter, Depends(get_rate_limiter)]
Renderer = Annotated[PageRenderer, Depends(get_page_renderer)]


__all__ = [
    "Codec",
    "DBSession",
    "Limiter",
    "Renderer",
    "create_rate_limiter",
    "get_db",
    "get_page_renderer",
    "get_rate_limiter",
    "get_token_codec",
]
