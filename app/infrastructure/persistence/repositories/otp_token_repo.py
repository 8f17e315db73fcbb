"""OTP token store. Codes are stored as bcrypt hashes; used marks consumption or supersession."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.otp_token import OtpTokenResult
from app.infrastructure.persistence.models.otp_token import OtpToken
from app.infrastructure.persistence.repositories.base import BaseRepository
from app.shared.utils.datetime import ensure_utc


def _token_to_result(t: OtpToken) -> OtpTokenResult:
    return OtpTokenResult(
        id=t.id,
        user_id=t.user_id,
        purpose=t.purpose,
        hashed_code=t.hashed_code,
        expires_at=ensure_utc(t.expires_at),
        used=t.used,
        created_at=ensure_utc(t.created_at),
    )


class OtpTokenRepository(BaseRepository[OtpToken]):
    """Invalidate, create, look up and consume one-time codes."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, OtpToken)

    async def invalidate_unused(self, user_id: str, purpose: str) -> int:
        return await self.execute_rowcount(
            update(OtpToken)
            .where(
                OtpToken.user_id == user_id,
                OtpToken.purpose == purpose,
                OtpToken.used.is_(False),
            )
            .values(used=True)
        )

    async def create_token(
        self, user_id: str, purpose: str, hashed_code: str, expires_at: datetime
    ) -> OtpTokenResult:
        row = OtpToken(
            user_id=user_id,
            purpose=purpose,
            hashed_code=hashed_code,
            expires_at=expires_at,
            used=False,
        )
        created = await self.create(row)
        return _token_to_result(created)

    async def get_latest_valid(
        self, user_id: str, purpose: str, now: datetime
    ) -> OtpTokenResult | None:
        result = await self.db.execute(
            select(OtpToken)
            .where(
                OtpToken.user_id == user_id,
                OtpToken.purpose == purpose,
                OtpToken.used.is_(False),
                OtpToken.expires_at > now,
            )
            .order_by(OtpToken.created_at.desc(), OtpToken.id.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return _token_to_result(row) if row else None

    async def mark_used(self, token_id: str) -> bool:
        """Conditional update so a code is consumed at most once under concurrency."""
        count = await self.execute_rowcount(
            update(OtpToken)
            .where(OtpToken.id == token_id, OtpToken.used.is_(False))
            .values(used=True)
        )
        return count == 1
