"""Persistence repositories. Re-exports for dependency injection."""

from app.infrastructure.persistence.repositories.base import BaseRepository
from app.infrastructure.persistence.repositories.otp_token_repo import (
    OtpTokenRepository,
)
from app.infrastructure.persistence.repositories.trusted_device_repo import (
    TrustedDeviceRepository,
)
from app.infrastructure.persistence.repositories.user_repo import UserRepository

__all__ = [
    "BaseRepository",
    "OtpTokenRepository",
    "TrustedDeviceRepository",
    "UserRepository",
]
