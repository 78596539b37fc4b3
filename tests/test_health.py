"""Tests for health check endpoints."""

from typing import Any
from unittest.mock import AsyncMock

from httpx import AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from unsubscribe_service.core.deps import get_db
from unsubscribe_service.main import app


async def test_root(plain_client: AsyncClient) -> None:
    """Test root endpoint returns service info."""
    response = await plain_client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Unsubscribe Service"
    assert "version" in data
    assert data["health"] == "/health"


async def test_liveness(plain_client: AsyncClient) -> None:
    """Test liveness probe endpoint."""
    response = await plain_client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["service"] == "unsubscribe"
    assert "timestamp" in data


async def test_readiness(client: AsyncClient) -> None:
    """Test readiness probe with a reachable database."""
    response = await client.get("/health/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert data["checks"]["database"] == "healthy"


async def test_readiness_database_down(client: AsyncClient) -> None:
    """Readiness reports 503 when the database query fails."""
    broken = AsyncMock(spec=AsyncSession)
    broken.execute.side_effect = OperationalError("SELECT 1", {}, Exception("refused"))

    async def _broken_session() -> Any:
        yield broken

    app.dependency_overrides[get_db] = _broken_session

    response = await client.get("/health/ready")
    assert response.status_code == 503
    data = response.json()
    assert data["status"] == "unavailable"
    assert data["checks"]["database"].startswith("unhealthy")


async def test_request_id_is_echoed(plain_client: AsyncClient) -> None:
    response = await plain_client.get("/health", headers={"X-Request-ID": "abc123"})
    assert response.headers["X-Request-ID"] == "abc123"


async def test_request_id_is_generated(plain_client: AsyncClient) -> None:
    response = await plain_client.get("/health")
    assert response.headers.get("X-Request-ID")
