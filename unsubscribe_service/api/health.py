"""Health check endpoints."""

from datetime import UTC, datetime

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from unsubscribe_service.core.config import settings
from unsubscribe_service.core.deps import DBSession
from unsubscribe_service.schemas.common import HealthResponse, ReadinessResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def liveness_check() -> HealthResponse:
    """
    Liveness probe.

    Simple check that the service is running; touches no dependencies.
    """
    return HealthResponse(
        status="ok",
        service=settings.service_name,
        timestamp=datetime.now(UTC),
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check(
    db: DBSession,
) -> ReadinessResponse | JSONResponse:
    """
    Readiness probe for container orchestration.

    Checks database connectivity before the instance receives traffic.
    """
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        body = ReadinessResponse(status="unavailable", checks={"database": f"unhealthy: {e}"})
        return JSONResponse(status_code=503, content=body.model_dump())

    return ReadinessResponse(status="ready", checks={"database": "healthy"})
