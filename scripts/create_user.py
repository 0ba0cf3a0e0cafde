#!/usr/bin/env python3
"""Create or update an App Hub user account.

Accounts are provisioned out of band; the API has no self-registration.

Usage:
    python scripts/create_user.py maria --password 's3cret' --role 1
    python scripts/create_user.py admin --password 's3cret' --role 6 --img-url https://...
"""

import argparse
import asyncio
import getpass
import sys

from sqlalchemy import select

from apphub.config import get_config
from apphub.database import close_engine, create_tables, get_session_factory
from apphub.models.user import User
from apphub.utils.logging import get_logger, setup_logging
from apphub.utils.security import hash_password

logger = get_logger("scripts.create_user")


async def upsert_user(username: str, password: str, role: int, img_url: str) -> bool:
    """Create the user, or reset password/role/avatar if it exists. Returns True if created."""
    config = get_config()
    await create_tables(config)
    factory = get_session_factory(config)
    try:
        async with factory() as session:
            user = (await session.execute(
                select(User).where(User.username == username)
            )).scalar_one_or_none()
            created = user is None
            if created:
                user = User(username=username, password_hash="")
                session.add(user)
            user.password_hash = hash_password(password)
            user.role = role
            user.img_url = img_url
            await session.commit()
    finally:
        await close_engine()
    return created


def main() -> int:
    parser = argparse.ArgumentParser(description="App Hub user provisioning")
    parser.add_argument("username")
    parser.add_argument("--password", default=None, help="Prompted for when omitted")
    parser.add_argument("--role", type=int, default=0, help="Numeric role level")
    parser.add_argument("--img-url", default="", help="Avatar image URL")
    args = parser.parse_args()

    setup_logging(debug=True)
    password = args.password or getpass.getpass(f"Password for {args.username}: ")
    if not password:
        logger.error("empty_password", username=args.username)
        return 1

    created = asyncio.run(upsert_user(args.username, password, args.role, args.img_url))
    logger.info("user_created" if created else "user_updated", username=args.username, role=args.role)
    return 0


if __name__ == "__main__":
    sys.exit(main())
