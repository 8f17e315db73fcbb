"""User repository (credential store). Interface methods return application DTOs."""

from __future__ import annotations

import asyncio
from datetime import datetime

from sqlalchemy import case, literal, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.user import UserResult
from app.domain.enums import UserRole
from app.domain.exceptions import EmailInUseException
from app.infrastructure.persistence.models.user import User
from app.infrastructure.persistence.repositories.base import BaseRepository
from app.infrastructure.security.password import (
    DEFAULT_ROUNDS,
    get_password_hash,
    verify_password,
)
from app.shared.utils.datetime import ensure_utc, utc_now

# Lazy dummy hash for constant-time comparison when user is not found (timing-attack mitigation).
# Computed on first use in a thread to avoid blocking the event loop at import.
_dummy_hash_cache: str | None = None


async def _get_dummy_hash() -> str:
    """Return a valid bcrypt hash for dummy comparison; computed once in thread pool."""
    global _dummy_hash_cache
    if _dummy_hash_cache is None:
        _dummy_hash_cache = await asyncio.to_thread(
            get_password_hash, "not-a-real-password"
        )
    return _dummy_hash_cache


def _user_to_result(u: User) -> UserResult:
    """Map ORM User to application UserResult (no password hash)."""
    return UserResult(
        id=u.id,
        username=u.username,
        email=u.email,
        role=u.role,
        password_setup_required=u.password_setup_required,
        otp_attempts=u.otp_attempts,
        otp_blocked_until=ensure_utc(u.otp_blocked_until),
    )


class UserRepository(BaseRepository[User]):
    """User repository. Lookups, authenticate, OTP counters, email and password setup."""

    def __init__(self, db: AsyncSession, *, bcrypt_rounds: int = DEFAULT_ROUNDS) -> None:
        super().__init__(db, User)
        self._bcrypt_rounds = bcrypt_rounds

    async def _get_one(self, *criteria: object) -> User | None:
        result = await self.db.execute(
            select(User).where(*criteria).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_id(self, user_id: str) -> UserResult | None:  # type: ignore[override]
        user = await super().get_by_id(user_id)
        return _user_to_result(user) if user else None

    async def get_by_username(self, username: str) -> UserResult | None:
        user = await self._get_one(User.username == username)
        return _user_to_result(user) if user else None

    async def get_by_email(self, email: str) -> UserResult | None:
        user = await self._get_one(User.email == email.strip().lower())
        return _user_to_result(user) if user else None

    async def authenticate(self, username: str, password: str | None) -> UserResult | None:
        """Return the user when password matches; None for unknown user, missing or wrong password."""
        user = await self._get_one(User.username == username)
        if not user or not user.password_hash or not password:
            dummy_hash = await _get_dummy_hash()
            await asyncio.to_thread(verify_password, password or "", dummy_hash)
            return None
        if not await asyncio.to_thread(verify_password, password, user.password_hash):
            return None
        return _user_to_result(user)

    async def lock_for_update(self, user_id: str) -> None:
        """SELECT ... FOR UPDATE on the user row (a no-op on SQLite)."""
        await self.db.execute(select(User.id).where(User.id == user_id).with_for_update())

    async def register_failed_otp_attempt(
        self, user_id: str, max_attempts: int, blocked_until: datetime
    ) -> int | None:
        """Single conditional UPDATE ... RETURNING; no read-then-write.

        When the incremented counter reaches max_attempts the counter is reset
        to 0 and otp_blocked_until is set, in the same statement.
        """
        next_attempts = User.otp_attempts + 1
        reached = next_attempts >= max_attempts
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(
                otp_attempts=case((reached, 0), else_=next_attempts),
                otp_blocked_until=case(
                    (reached, literal(blocked_until, User.otp_blocked_until.type)),
                    else_=User.otp_blocked_until,
                ),
            )
            .returning(User.otp_attempts)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        row = result.first()
        return None if row is None else int(row[0])

    async def reset_otp_attempts(self, user_id: str) -> None:
        await self.execute_rowcount(
            update(User)
            .where(User.id == user_id)
            .values(otp_attempts=0, otp_blocked_until=None)
        )

    async def set_email(self, user_id: str, email: str) -> None:
        """Store email; raise EmailInUseException on unique constraint violation."""
        try:
            await self.execute_rowcount(
                update(User).where(User.id == user_id).values(email=email)
            )
        except IntegrityError:
            raise EmailInUseException() from None

    async def complete_password_setup(self, user_id: str, password_hash: str) -> None:
        await self.execute_rowcount(
            update(User)
            .where(User.id == user_id)
            .values(
                password_hash=password_hash,
                temp_password_set_at=None,
                password_setup_required=False,
            )
        )

    async def create_user(
        self,
        username: str,
        password: str,
        role: UserRole | str = UserRole.CUSTOMER,
        *,
        email: str | None = None,
        password_setup_required: bool = True,
    ) -> UserResult:
        """Provision a user with a temporary password (hashed here).

        Raises IntegrityError when the username or email already exists.
        """
        hashed = await asyncio.to_thread(
            get_password_hash, password, self._bcrypt_rounds
        )
        user = User(
            username=username,
            email=email.strip().lower() if email else None,
            password_hash=hashed,
            role=UserRole(role).value,
            password_setup_required=password_setup_required,
            temp_password_set_at=utc_now() if password_setup_required else None,
            otp_attempts=0,
        )
        created = await self.create(user)
        return _user_to_result(created)
