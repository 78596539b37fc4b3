"""Schemas passed between the unsubscribe workflow, store and renderer."""

import enum
from datetime import datetime

from unsubscribe_service.schemas.common import BaseSchema


class UnsubscribeOutcome(str, enum.Enum):
    """Terminal outcome of a single unsubscribe request."""

    NO_TOKEN = "no_token"
    INVALID = "invalid"
    EXPIRED = "expired"
    USER_NOT_FOUND = "user_not_found"
    ALREADY_UNSUBSCRIBED = "already_unsubscribed"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    DECLINED = "declined"
    CONFIRMED = "confirmed"
    RATE_LIMITED = "rate_limited"
    STORAGE_FAILURE = "storage_failure"


class UserSnapshot(BaseSchema):
    """Read-only view of a user row."""

    id: int
    email: str
    unsubscribed: bool
    unsubscribed_at: datetime | None = None


class UnsubscribeLogEntry(BaseSchema):
    """Audit record written once per completed unsubscribe."""

    user_id: int
    email: str
    token: str
    ip_address: str | None = None
    user_agent: str | None = None
    timestamp: datetime


class UnsubscribeResult(BaseSchema):
    """What the workflow decided, plus what the page needs to render it."""

    outcome: UnsubscribeOutcome
    email: str | None = None
    token: str | None = None
    detail: str | None = None
