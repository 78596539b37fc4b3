"""Unsubscribe request handling: verify, confirm, apply."""

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from unsubscribe_service.core.exceptions import ExpiredTokenError, StorageError, TokenError
from unsubscribe_service.core.logging_config import token_prefix
from unsubscribe_service.core.tokens import TokenCodec
from unsubscribe_service.schemas.unsubscribe import (
    UnsubscribeLogEntry,
    UnsubscribeOutcome,
    UnsubscribeResult,
)
from unsubscribe_service.services.unsubscribe_store import UnsubscribeStore

logger = logging.getLogger(__name__)

CONFIRM_YES = "yes"
CONFIRM_NO = "no"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class UnsubscribeWorkflow:
    """Decides the outcome of one ``/unsubscribe`` request.

    A request without ``confirm`` only shows the confirmation page; the
    user record changes only on ``confirm=yes``. Repeating a confirmed
    request lands on ``ALREADY_UNSUBSCRIBED`` without writing again.
    """

    def __init__(
        self,
        codec: TokenCodec,
        store: UnsubscribeStore,
        *,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.codec = codec
        self.store = store
        self._now = now

    async def handle(
        self,
        token: str | None,
        confirm: str | None = None,
        *,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> UnsubscribeResult:
        if not token:
            return UnsubscribeResult(outcome=UnsubscribeOutcome.NO_TOKEN)

        try:
            payload = self.codec.verify(token)
        except ExpiredTokenError as exc:
            logger.info("Expired unsubscribe token %s", token_prefix(token))
            return UnsubscribeResult(outcome=UnsubscribeOutcome.EXPIRED, detail=exc.reason)
        except TokenError as exc:
            logger.info("Rejected unsubscribe token %s: %s", token_prefix(token), exc)
            return UnsubscribeResult(outcome=UnsubscribeOutcome.INVALID, detail=exc.reason)

        user_id, email = payload.user_id, payload.email
        try:
            user = await self.store.find_user(user_id, email)
            if user is None:
                return UnsubscribeResult(outcome=UnsubscribeOutcome.USER_NOT_FOUND, email=email)

            if user.unsubscribed:
                return self._result(UnsubscribeOutcome.ALREADY_UNSUBSCRIBED, email, token)

            if confirm == CONFIRM_NO:
                return self._result(UnsubscribeOutcome.DECLINED, email, token)

            if confirm != CONFIRM_YES:
                return self._result(UnsubscribeOutcome.AWAITING_CONFIRMATION, email, token)

            return await self._apply(user_id, email, token, ip_address, user_agent)
        except StorageError as exc:
            logger.exception(
                "Unsubscribe storage failure: user_id=%s token=%s operation=%s",
                user_id,
                token_prefix(token),
                exc.operation,
            )
            return UnsubscribeResult(outcome=UnsubscribeOutcome.STORAGE_FAILURE, email=email)

    async def _apply(
        self,
        user_id: int,
        email: str,
        token: str,
        ip_address: str | None,
        user_agent: str | None,
    ) -> UnsubscribeResult:
        now = self._now()
        async with self.store.transaction():
            # Flag before log: a crash in between may only lose the audit row.
            changed = await self.store.mark_unsubscribed(user_id, now)
            if not changed:
                return self._result(UnsubscribeOutcome.ALREADY_UNSUBSCRIBED, email, token)

            await self.store.append_log(
                UnsubscribeLogEntry(
                    user_id=user_id,
                    email=email,
                    token=token,
                    ip_address=ip_address,
                    user_agent=user_agent,
                    timestamp=now,
                )
            )
            await self.store.mark_token_used(user_id, token, now)

        logger.info("User %s unsubscribed", user_id)
        return self._result(UnsubscribeOutcome.CONFIRMED, email, token)

    @staticmethod
    def _result(outcome: UnsubscribeOutcome, email: str, token: str) -> UnsubscribeResult:
        return UnsubscribeResult(outcome=outcome, email=email, token=token)
