"""Pytest configuration and fixtures for the unsubscribe service test suite.

Provides:
- In-memory SQLite database (aiosqlite) with tables created per test
- A deterministic token codec keyed with a test secret
- A fresh in-memory rate limiter per test
- Async HTTP client with DB, codec and limiter dependencies overridden
- A user factory fixture
"""

from collections.abc import AsyncGenerator, Callable
from typing import Any

import fakeredis.aioredis
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from unsubscribe_service.core.deps import get_db, get_rate_limiter, get_token_codec
from unsubscribe_service.core.rate_limit import InMemoryRateLimiter
from unsubscribe_service.core.tokens import TokenCodec
from unsubscribe_service.main import app
from unsubscribe_service.models.base import Base
from unsubscribe_service.models.user import User

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
TEST_SECRET_KEY = "test-secret-key-for-demo-only-change-in-production"
TEST_USER_ID = 999
TEST_EMAIL = "test@example.com"
TEST_USER_AGENT = "pytest-agent/1.0"


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory SQLite database with all tables created.

    StaticPool keeps a single connection so every session sees the same
    in-memory database.
    """
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Session for test setup and assertions."""
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Codec & rate limiting
# ---------------------------------------------------------------------------


@pytest.fixture
def codec() -> TokenCodec:
    """Token codec keyed with the test secret."""
    return TokenCodec(TEST_SECRET_KEY)


@pytest.fixture
def rate_limiter() -> InMemoryRateLimiter:
    """Fresh limiter with the production defaults (10 requests / 60 s)."""
    return InMemoryRateLimiter(max_requests=10, window_seconds=60)


@pytest.fixture
def fake_redis() -> fakeredis.aioredis.FakeRedis:
    """Provide a fresh fakeredis instance per test."""
    return fakeredis.aioredis.FakeRedis(decode_responses=True)


# ---------------------------------------------------------------------------
# HTTP client (overrides DB, codec and limiter)
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    codec: TokenCodec,
    rate_limiter: InMemoryRateLimiter,
) -> AsyncGenerator[AsyncClient, None]:
    """Async test client with all dependencies overridden."""

    async def _override_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as s:
            yield s

    app.dependency_overrides[get_db] = _override_session
    app.dependency_overrides[get_token_codec] = lambda: codec
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"User-Agent": TEST_USER_AGENT},
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def plain_client() -> AsyncGenerator[AsyncClient, None]:
    """Minimal async test client with NO dependency overrides."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ---------------------------------------------------------------------------
# Model Factories
# ---------------------------------------------------------------------------


@pytest.fixture
def user_factory(db_session: AsyncSession) -> Callable[..., Any]:
    """Factory that creates User rows in the test database."""

    async def _create(
        *,
        user_id: int = TEST_USER_ID,
        email: str = TEST_EMAIL,
        unsubscribed: bool = False,
    ) -> User:
        user = User(id=user_id, email=email, unsubscribed=unsubscribed)
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _create


@pytest_asyncio.fixture
async def user(user_factory: Callable[..., Any]) -> User:
    """The default subscribed test user (999, test@example.com)."""
    result: User = await user_factory()
    return result
