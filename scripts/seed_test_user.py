"""Insert (or reset) the test recipient used by the smoke test.

Usage:
    uv run python -m scripts.seed_test_user
    uv run python -m scripts.seed_test_user --user-id 42 --email someone@example.com
"""

import argparse
import asyncio

from sqlalchemy import delete

from unsubscribe_service.core.database import get_session_factory
from unsubscribe_service.models.unsubscribe_log import UnsubscribeLog
from unsubscribe_service.models.user import User

TEST_USER_ID = 999
TEST_EMAIL = "test@example.com"


async def seed(user_id: int, email: str) -> None:
    async with get_session_factory()() as session:
        await session.execute(delete(UnsubscribeLog).where(UnsubscribeLog.user_id == user_id))
        user = await session.get(User, user_id)
        if user is None:
            session.add(User(id=user_id, email=email))
        else:
            user.email = email
            user.unsubscribed = False
            user.unsubscribed_at = None
        await session.commit()


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the smoke-test recipient")
    parser.add_argument("--user-id", type=int, default=TEST_USER_ID)
    parser.add_argument("--email", default=TEST_EMAIL)
    args = parser.parse_args()

    asyncio.run(seed(args.user_id, args.email))
    print(f"Seeded subscribed user {args.user_id} <{args.email}>")


if __name__ == "__main__":
    main()
