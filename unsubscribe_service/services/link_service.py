"""Unsubscribe links for outbound email.

Called by the email-sending side when composing a message; this service
does not expose issuance over HTTP.
"""

import logging
from datetime import timedelta
from urllib.parse import urlencode

from sqlalchemy.ext.asyncio import AsyncSession

from unsubscribe_service.core.config import settings
from unsubscribe_service.core.tokens import TokenCodec
from unsubscribe_service.services.unsubscribe_store import SqlUnsubscribeStore

logger = logging.getLogger(__name__)


def build_unsubscribe_url(
    codec: TokenCodec,
    user_id: int,
    email: str,
    ttl: timedelta | None = None,
    *,
    base_url: str | None = None,
) -> str:
    """Issue a token and return the public unsubscribe URL carrying it."""
    return unsubscribe_url_for(codec.issue(user_id, email, ttl), base_url=base_url)


def unsubscribe_url_for(token: str, *, base_url: str | None = None) -> str:
    base = (base_url or settings.public_base_url).rstrip("/")
    return f"{base}/unsubscribe?{urlencode({'token': token})}"


def list_unsubscribe_headers(url: str, mailto: str | None = None) -> dict[str, str]:
    """RFC 2369 ``List-Unsubscribe`` header pointing at the confirmation page."""
    targets = [f"<{url}>"]
    if mailto:
        targets.append(f"<mailto:{mailto}?subject=unsubscribe>")
    return {"List-Unsubscribe": ", ".join(targets)}


async def issue_registered_token(
    db: AsyncSession,
    codec: TokenCodec,
    user_id: int,
    email: str,
    ttl: timedelta | None = None,
) -> str:
    """Issue a token and store it so the unsubscribe can mark it used."""
    token = codec.issue(user_id, email, ttl)
    await SqlUnsubscribeStore(db).register_token(user_id, token)
    logger.info("Registered unsubscribe token for user %s", user_id)
    return token
