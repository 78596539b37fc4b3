"""User model holding the marketing subscription flag."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, false
from sqlalchemy.orm import Mapped, mapped_column

from unsubscribe_service.models.base import Base, TimestampMixin


class User(TimestampMixin, Base):
    """Email recipient.

    Only the unsubscribe workflow writes to ``unsubscribed`` and
    ``unsubscribed_at``; everything else treats the row as read-only.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    unsubscribed: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default=false(),
        nullable=False,
    )
    unsubscribed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        state = "unsubscribed" if self.unsubscribed else "subscribed"
        return f"<User {self.id} {self.email} ({state})>"
