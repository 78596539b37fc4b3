"""Common Pydantic schemas used across the API."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
    )


class HealthResponse(BaseSchema):
    """Liveness response schema."""

    status: str
    service: str
    timestamp: datetime


class ReadinessResponse(BaseSchema):
    """Readiness response schema."""

    status: str
    checks: dict[str, str]
