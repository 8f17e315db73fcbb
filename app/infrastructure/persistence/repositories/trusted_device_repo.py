"""Trusted device store. Stored by token_hash; the raw token only travels in the device cookie."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.trusted_device import TrustedDeviceResult
from app.infrastructure.persistence.models.trusted_device import TrustedDevice
from app.infrastructure.persistence.repositories.base import BaseRepository
from app.infrastructure.security.password import hash_token
from app.shared.utils.datetime import ensure_utc


def _device_to_result(d: TrustedDevice) -> TrustedDeviceResult:
    return TrustedDeviceResult(
        id=d.id,
        user_id=d.user_id,
        expires_at=ensure_utc(d.expires_at),
        user_agent=d.user_agent,
        ip_address=d.ip_address,
        created_at=ensure_utc(d.created_at),
        last_used_at=ensure_utc(d.last_used_at),
    )


class TrustedDeviceRepository(BaseRepository[TrustedDevice]):
    """Create, look up, touch and revoke trusted devices."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, TrustedDevice)

    @staticmethod
    def _hash_token(token: str) -> str:
        return hash_token(token)

    async def create_device(
        self,
        user_id: str,
        device_token: str,
        expires_at: datetime,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> TrustedDeviceResult:
        row = TrustedDevice(
            user_id=user_id,
            token_hash=self._hash_token(device_token),
            expires_at=expires_at,
            user_agent=user_agent[:512] if user_agent else None,
            ip_address=ip_address[:64] if ip_address else None,
        )
        created = await self.create(row)
        return _device_to_result(created)

    async def get_valid(
        self, user_id: str, device_token: str, now: datetime
    ) -> TrustedDeviceResult | None:
        result = await self.db.execute(
            select(TrustedDevice).where(
                TrustedDevice.token_hash == self._hash_token(device_token),
                TrustedDevice.user_id == user_id,
                TrustedDevice.expires_at > now,
            )
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return _device_to_result(row) if row else None

    async def touch(self, device_id: str, now: datetime) -> None:
        await self.execute_rowcount(
            update(TrustedDevice)
            .where(TrustedDevice.id == device_id)
            .values(last_used_at=now)
        )

    async def delete_all_for_user(self, user_id: str) -> int:
        return await self.execute_rowcount(
            delete(TrustedDevice).where(TrustedDevice.user_id == user_id)
        )
