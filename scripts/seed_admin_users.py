"""Provision the back-office users with temporary passwords.

Usage:
    python -m scripts.seed_admin_users
Both users start with password_setup_required=True: the first login walks them
through email confirmation and a new password. Existing usernames are skipped.
All imports use app.*.
"""

import asyncio
import sys

from app.core.config import get_settings
from app.domain.enums import UserRole
from app.infrastructure.persistence.database import get_session_factory
from app.infrastructure.persistence.repositories import UserRepository

SEED_USERS: tuple[tuple[str, str, UserRole], ...] = (
    ("dev", "dev2026!Temp", UserRole.DEVELOPER),
    ("admin", "admin2026!Temp", UserRole.ADMIN),
)


async def main() -> None:
    """Create each seed user unless the username is already taken."""
    settings = get_settings()
    session_factory = get_session_factory()

    async with session_factory() as session:
        async with session.begin():
            user_repo = UserRepository(session, bcrypt_rounds=settings.bcrypt_rounds)
            for username, password, role in SEED_USERS:
                if await user_repo.get_by_username(username):
                    print(f"Skipped {username}: already exists")
                    continue
                user = await user_repo.create_user(username, password, role)
                print(f"Created user: {user.id} ({username}, {role.value})")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except Exception as e:
        print(f"Seeding failed: {e}", file=sys.stderr)
        sys.exit(1)
