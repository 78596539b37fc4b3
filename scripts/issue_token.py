"""Print a signed unsubscribe URL for a user.

Uses UNSUB_SECRET_KEY from the environment (or .env file), so the link
verifies against any server sharing that key.

Usage:
    uv run python -m scripts.issue_token 999 test@example.com
    uv run python -m scripts.issue_token 999 test@example.com --ttl-days 1 --register
"""

import argparse
import asyncio
import sys
from datetime import timedelta

from unsubscribe_service.core.database import get_session_factory
from unsubscribe_service.core.deps import get_token_codec
from unsubscribe_service.core.exceptions import StorageError
from unsubscribe_service.services.link_service import (
    build_unsubscribe_url,
    issue_registered_token,
    unsubscribe_url_for,
)


async def _register(user_id: int, email: str, ttl: timedelta | None) -> str:
    async with get_session_factory()() as session:
        return await issue_registered_token(session, get_token_codec(), user_id, email, ttl)


def main() -> None:
    parser = argparse.ArgumentParser(description="Issue a signed unsubscribe link")
    parser.add_argument("user_id", type=int)
    parser.add_argument("email")
    parser.add_argument(
        "--ttl-days", type=float, default=None,
        help="Link lifetime in days (defaults to TOKEN_TTL_DAYS)",
    )
    parser.add_argument(
        "--base-url", default=None,
        help="Public base URL of the unsubscribe server (defaults to PUBLIC_BASE_URL)",
    )
    parser.add_argument(
        "--register", action="store_true",
        help="Store the token in unsubscribe_tokens so it is flagged used on unsubscribe",
    )
    args = parser.parse_args()

    ttl = timedelta(days=args.ttl_days) if args.ttl_days is not None else None
    codec = get_token_codec()

    try:
        if args.register:
            token = asyncio.run(_register(args.user_id, args.email, ttl))
            print(unsubscribe_url_for(token, base_url=args.base_url))
        else:
            url = build_unsubscribe_url(
                codec, args.user_id, args.email, ttl, base_url=args.base_url
            )
            print(url)
    except ValueError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        sys.exit(1)
    except StorageError as exc:
        print(f"ERROR: could not register token ({exc.operation}): {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
