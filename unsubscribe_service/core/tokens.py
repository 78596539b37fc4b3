"""Signed, self-verifying unsubscribe tokens.

Wire format (compatible with existing issuers)::

    base64url_nopad("{user_id}:{email}:{expires_at_ms}:{hex_hmac_sha256}")

The HMAC covers ``{user_id}:{email}:{expires_at_ms}`` and is keyed with the
shared ``UNSUB_SECRET_KEY``.
"""

import base64
import binascii
import hashlib
import hmac
import re
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta

from unsubscribe_service.core.exceptions import (
    BadSignatureError,
    ExpiredTokenError,
    MalformedTokenError,
)

DELIMITER = ":"
FIELD_COUNT = 4
MAX_DIGITS = 20

_B64URL_RE = re.compile(r"[A-Za-z0-9_-]*")


@dataclass(frozen=True)
class TokenPayload:
    """Identity carried by a verified token."""

    user_id: int
    email: str


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64url_decode(token: str) -> bytes:
    stripped = token.strip().rstrip("=")
    if not _B64URL_RE.fullmatch(stripped):
        raise ValueError("token contains characters outside the base64url alphabet")
    padded = stripped + "=" * (-len(stripped) % 4)
    return base64.b64decode(padded, altchars=b"-_", validate=True)


def _is_decimal(value: str) -> bool:
    return len(value) <= MAX_DIGITS and value.isascii() and value.isdigit()


class TokenCodec:
    """Issues and verifies unsubscribe tokens with HMAC-SHA256."""

    def __init__(
        self,
        secret_key: str,
        *,
        default_ttl: timedelta = timedelta(days=90),
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret_key:
            raise ValueError("secret_key must not be empty")
        self._key = secret_key.encode()
        self.default_ttl = default_ttl
        self._clock = clock

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _sign(self, payload: str) -> str:
        return hmac.new(self._key, payload.encode(), hashlib.sha256).hexdigest()

    def issue(self, user_id: int, email: str, ttl: timedelta | None = None) -> str:
        """Create a token for ``(user_id, email)`` valid for ``ttl``.

        Raises:
            ValueError: If user_id is negative or email contains the delimiter.
        """
        if isinstance(user_id, bool) or not isinstance(user_id, int) or user_id < 0:
            raise ValueError(f"user_id must be a non-negative integer, got {user_id!r}")
        if not email or DELIMITER in email:
            raise ValueError("email must be non-empty and must not contain ':'")

        ttl = self.default_ttl if ttl is None else ttl
        expires_at = self._now_ms() + int(ttl.total_seconds() * 1000)
        payload = f"{user_id}{DELIMITER}{email}{DELIMITER}{expires_at}"
        signature = self._sign(payload)
        return _b64url_encode(f"{payload}{DELIMITER}{signature}".encode())

    def verify(self, token: str) -> TokenPayload:
        """Decode and authenticate a token.

        Raises:
            MalformedTokenError: Undecodable or not four well-formed fields.
            ExpiredTokenError: The expiry timestamp has passed.
            BadSignatureError: The signature does not match.
        """
        try:
            decoded = _b64url_decode(token).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
            raise MalformedTokenError("token is not valid base64url text") from exc

        parts = decoded.split(DELIMITER)
        if len(parts) != FIELD_COUNT:
            raise MalformedTokenError(f"expected {FIELD_COUNT} fields, got {len(parts)}")

        raw_user_id, email, raw_expires_at, signature = parts
        if not _is_decimal(raw_user_id) or not _is_decimal(raw_expires_at) or not email:
            raise MalformedTokenError("user id and expiry must be decimal integers")

        if self._now_ms() > int(raw_expires_at):
            raise ExpiredTokenError(f"token expired at {raw_expires_at}")

        expected = self._sign(f"{raw_user_id}{DELIMITER}{email}{DELIMITER}{raw_expires_at}")
        if not hmac.compare_digest(expected.encode(), signature.encode()):
            raise BadSignatureError("signature mismatch")

        return TokenPayload(user_id=int(raw_user_id), email=email)
