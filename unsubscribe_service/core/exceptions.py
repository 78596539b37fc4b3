"""Exception hierarchy for token and storage failures."""


class UnsubscribeError(Exception):
    """Base class for all errors raised by the unsubscribe service."""


class TokenError(UnsubscribeError):
    """An unsubscribe token could not be accepted."""

    reason = "The unsubscribe link is invalid or has expired."


class MalformedTokenError(TokenError):
    """Token is not valid base64 or does not decode to four fields."""

    reason = "Invalid token format"


class ExpiredTokenError(TokenError):
    """Token expiry timestamp is in the past."""

    reason = "Token expired"


class BadSignatureError(TokenError):
    """Recomputed HMAC does not match the signature carried by the token."""

    reason = "Invalid signature"


class StorageError(UnsubscribeError):
    """A persistence operation failed.

    ``operation`` names the store call that failed so log lines can be
    traced back to a specific step of the workflow.
    """

    def __init__(self, operation: str, message: str | None = None) -> None:
        self.operation = operation
        super().__init__(message or f"Storage operation failed: {operation}")
