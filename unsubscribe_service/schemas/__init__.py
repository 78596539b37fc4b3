"""Pydantic schemas."""

from unsubscribe_service.schemas.common import BaseSchema, HealthResponse, ReadinessResponse
from unsubscribe_service.schemas.unsubscribe import (
    UnsubscribeLogEntry,
    UnsubscribeOutcome,
    UnsubscribeResult,
    UserSnapshot,
)

__all__ = [
    "BaseSchema",
    "HealthResponse",
    "ReadinessResponse",
    "UnsubscribeLogEntry",
    "UnsubscribeOutcome",
    "UnsubscribeResult",
    "UserSnapshot",
]
