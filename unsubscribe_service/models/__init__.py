"""SQLAlchemy models."""

from unsubscribe_service.models.base import Base
from unsubscribe_service.models.unsubscribe_log import UnsubscribeLog
from unsubscribe_service.models.unsubscribe_token import UnsubscribeToken
from unsubscribe_service.models.user import User

__all__ = [
    "Base",
    "User",
    "UnsubscribeLog",
    "UnsubscribeToken",
]
