"""Trusted device service: skip the login code on devices the user chose to trust."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta

from app.application.interfaces.repositories import ITrustedDeviceRepository
from app.shared.telemetry.logging import get_logger
from app.shared.utils.datetime import utc_now
from app.shared.utils.generators import generate_opaque_token

logger = get_logger(__name__)


class TrustedDeviceService:
    """Issue, check and revoke device trust tokens (opaque, stored hashed)."""

    def __init__(
        self,
        device_repo: ITrustedDeviceRepository,
        trusted_days: int = 30,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._device_repo = device_repo
        self._trusted_days = trusted_days
        self._clock = clock

    @property
    def max_age_seconds(self) -> int:
        """Cookie lifetime matching the stored expiry."""
        return int(timedelta(days=self._trusted_days).total_seconds())

    async def is_trusted(self, user_id: str, device_token: str | None) -> bool:
        """True only for a live device record of this exact user."""
        if not device_token:
            return False
        now = self._clock()
        device = await self._device_repo.get_valid(user_id, device_token, now)
        if device is None:
            return False
        await self._device_repo.touch(device.id, now)
        return True

    async def trust(
        self,
        user_id: str,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> str:
        """Register a new device for user_id and return the cookie value."""
        token = generate_opaque_token()
        expires_at = self._clock() + timedelta(days=self._trusted_days)
        await self._device_repo.create_device(
            user_id, token, expires_at, user_agent=user_agent, ip_address=ip_address
        )
        logger.info("Trusted new device for user %s", user_id)
        return token

    async def revoke_all(self, user_id: str) -> int:
        count = await self._device_repo.delete_all_for_user(user_id)
        logger.info("Revoked %d trusted devices for user %s", count, user_id)
        return count
