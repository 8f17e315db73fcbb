"""OTP service: issue, verify and rate-limit one-time codes.

Codes are 8 digits, stored as bcrypt hashes and valid for a few minutes.
Wrong codes are counted on the user record with a single conditional UPDATE;
reaching the threshold resets the counter and blocks the user for a while.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from app.application.dtos.user import UserResult
from app.application.interfaces.repositories import IOtpTokenRepository, IUserRepository
from app.application.interfaces.services import ISecretHasher
from app.domain.enums import OtpPurpose, OtpVerificationStatus
from app.domain.exceptions import TooManyAttemptsException
from app.shared.telemetry.logging import get_logger
from app.shared.utils.datetime import ensure_utc, minutes_until, utc_now
from app.shared.utils.generators import generate_numeric_code

logger = get_logger(__name__)


@dataclass(frozen=True)
class OtpPolicy:
    """Expiry, lockout and resend-cooldown parameters."""

    expire_minutes: int = 5
    max_attempts: int = 3
    block_minutes: int = 15
    resend_cooldowns: tuple[int, ...] = (30, 60, 120, 300)


@dataclass(frozen=True)
class OtpCheck:
    """Outcome of verify(); attempts_remaining is only meaningful for INVALID."""

    status: OtpVerificationStatus
    attempts_remaining: int = 0


class OtpService:
    """Generate, persist, verify and throttle one-time codes."""

    def __init__(
        self,
        user_repo: IUserRepository,
        otp_repo: IOtpTokenRepository,
        hasher: ISecretHasher,
        policy: OtpPolicy | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._user_repo = user_repo
        self._otp_repo = otp_repo
        self._hasher = hasher
        self.policy = policy or OtpPolicy()
        self._clock = clock

    @staticmethod
    def generate_code() -> str:
        return generate_numeric_code()

    async def issue(self, user_id: str, purpose: OtpPurpose) -> str:
        """Create a new code for (user, purpose) and return it in clear.

        Earlier unused codes of the same purpose are marked used under a row
        lock on the user, then the new hash is inserted, so at most one code
        per (user, purpose) is ever valid.
        """
        code = self.generate_code()
        hashed = await asyncio.to_thread(self._hasher.hash, code)
        expires_at = self._clock() + timedelta(minutes=self.policy.expire_minutes)
        await self._user_repo.lock_for_update(user_id)
        superseded = await self._otp_repo.invalidate_unused(user_id, purpose.value)
        await self._otp_repo.create_token(user_id, purpose.value, hashed, expires_at)
        logger.info(
            "Issued %s code for user %s (superseded %d)",
            purpose.value,
            user_id,
            superseded,
        )
        return code

    async def verify(self, user_id: str, code: str, purpose: OtpPurpose) -> OtpCheck:
        """Check code against the latest valid token of (user, purpose)."""
        now = self._clock()
        token = await self._otp_repo.get_latest_valid(user_id, purpose.value, now)
        if token is None:
            return OtpCheck(OtpVerificationStatus.EXPIRED)

        matches = await asyncio.to_thread(self._hasher.verify, code, token.hashed_code)
        if not matches:
            blocked_until = now + timedelta(minutes=self.policy.block_minutes)
            attempts = await self._user_repo.register_failed_otp_attempt(
                user_id, self.policy.max_attempts, blocked_until
            )
            if attempts is None:
                return OtpCheck(OtpVerificationStatus.EXPIRED)
            if attempts == 0:
                logger.warning("User %s blocked after repeated wrong codes", user_id)
                return OtpCheck(OtpVerificationStatus.JUST_BLOCKED)
            return OtpCheck(
                OtpVerificationStatus.INVALID,
                attempts_remaining=self.policy.max_attempts - attempts,
            )

        if not await self._otp_repo.mark_used(token.id):
            return OtpCheck(OtpVerificationStatus.EXPIRED)
        await self._user_repo.reset_otp_attempts(user_id)
        return OtpCheck(OtpVerificationStatus.VALID)

    def blocked_minutes(self, user: UserResult) -> int:
        """Whole minutes left on the user's block; 0 when not blocked.

        The block ends exactly at otp_blocked_until.
        """
        blocked_until = ensure_utc(user.otp_blocked_until)
        if blocked_until is None:
            return 0
        now = self._clock()
        if now >= blocked_until:
            return 0
        return minutes_until(blocked_until, now)

    def assert_not_blocked(self, user: UserResult) -> None:
        """Raise TooManyAttemptsException while the user is blocked."""
        wait = self.blocked_minutes(user)
        if wait:
            raise TooManyAttemptsException(wait)

    def resend_cooldown(self, resend_count: int) -> int:
        """Seconds the client should wait before the next resend (non-decreasing in resend_count)."""
        schedule = self.policy.resend_cooldowns
        return schedule[min(max(resend_count, 0), len(schedule) - 1)]
