"""Bootstrap script: create an admin account, or promote and reset an existing one.

Usage:
    python scripts/create_admin.py --email admin@example.com --name "Admin" --password secret123
"""

import argparse
import asyncio
import logging
import os
import sys

# Ensure src is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

logging.basicConfig(level=logging.INFO, format="%(levelname)s  %(message)s")
logger = logging.getLogger(__name__)


async def create_or_update_admin(email: str, name: str, password: str) -> None:
    from loyal_auto.domain.enums import UserRole
    from loyal_auto.domain.models import utcnow
    from loyal_auto.infra.database import async_session, init_db
    from loyal_auto.services.auth_service import get_user_by_email, hash_password
    from loyal_auto.services.user_service import UserService

    await init_db()

    async with async_session() as session:
        user = await get_user_by_email(session, email)
        if user:
            user.password_hash = hash_password(password)
            user.role = UserRole.ADMIN.value
            user.is_active = True
            user.updated_at = utcnow()
            logger.info("Updated existing user %s (%s) to admin.", user.id, user.email)
        else:
            user = await UserService(session).create_user(name, email, password, UserRole.ADMIN.value)
            logger.info("Created admin %s (%s).", user.id, user.email)
        await session.commit()


def main() -> None:
    parser = argparse.ArgumentParser(description="Create or update an admin user.")
    parser.add_argument("--email", required=True)
    parser.add_argument("--name", default="Admin")
    parser.add_argument("--password", required=True)
    args = parser.parse_args()

    if len(args.password) < 6:
        parser.error("password must be at least 6 characters")

    asyncio.run(create_or_update_admin(args.email, args.name, args.password))


if __name__ == "__main__":
    main()
