"""Persistence for users, the unsubscribe log and issued tokens."""

import logging
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from datetime import datetime
from typing import Protocol

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from unsubscribe_service.core.exceptions import StorageError
from unsubscribe_service.models.unsubscribe_log import UnsubscribeLog
from unsubscribe_service.models.unsubscribe_token import UnsubscribeToken
from unsubscribe_service.models.user import User
from unsubscribe_service.schemas.unsubscribe import UnsubscribeLogEntry, UserSnapshot

logger = logging.getLogger(__name__)


class UnsubscribeStore(Protocol):
    """Storage operations the unsubscribe workflow depends on."""

    async def find_user(self, user_id: int, email: str) -> UserSnapshot | None: ...

    async def mark_unsubscribed(self, user_id: int, timestamp: datetime) -> bool: ...

    async def append_log(self, entry: UnsubscribeLogEntry) -> None: ...

    async def mark_token_used(self, user_id: int, token: str, timestamp: datetime) -> None: ...

    def transaction(self) -> AbstractAsyncContextManager[None]: ...


class SqlUnsubscribeStore:
    """SQLAlchemy implementation of ``UnsubscribeStore``.

    Writes are flushed but not committed; callers group them inside
    ``transaction()`` so the flag update and the log row commit together.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def find_user(self, user_id: int, email: str) -> UserSnapshot | None:
        try:
            result = await self.db.execute(
                select(User).where(User.id == user_id, User.email == email)
            )
            user = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StorageError("find_user", str(exc)) from exc
        return UserSnapshot.model_validate(user) if user else None

    async def mark_unsubscribed(self, user_id: int, timestamp: datetime) -> bool:
        """Flip the flag if it is not already set.

        Returns False when no row changed, which means another request
        unsubscribed the user first.
        """
        stmt = (
            update(User)
            .where(User.id == user_id, User.unsubscribed.is_(False))
            .values(unsubscribed=True, unsubscribed_at=timestamp)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as exc:
            raise StorageError("mark_unsubscribed", str(exc)) from exc
        return bool(result.rowcount)

    async def append_log(self, entry: UnsubscribeLogEntry) -> None:
        self.db.add(UnsubscribeLog(**entry.model_dump()))
        try:
            await self.db.flush()
        except SQLAlchemyError as exc:
            raise StorageError("append_log", str(exc)) from exc

    async def mark_token_used(self, user_id: int, token: str, timestamp: datetime) -> None:
        stmt = (
            update(UnsubscribeToken)
            .where(UnsubscribeToken.user_id == user_id, UnsubscribeToken.token == token)
            .values(used=True, used_at=timestamp)
            .execution_options(synchronize_session=False)
        )
        try:
            await self.db.execute(stmt)
        except SQLAlchemyError as exc:
            raise StorageError("mark_token_used", str(exc)) from exc

    async def register_token(self, user_id: int, token: str) -> UnsubscribeToken:
        """Record an issued token so a later unsubscribe can flag it used."""
        record = UnsubscribeToken(user_id=user_id, token=token)
        self.db.add(record)
        try:
            await self.db.commit()
            await self.db.refresh(record)
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise StorageError("register_token", str(exc)) from exc
        return record

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Commit everything written inside the block, or roll it all back."""
        try:
            yield
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise StorageError("commit", str(exc)) from exc
        except StorageError:
            await self.db.rollback()
            raise
