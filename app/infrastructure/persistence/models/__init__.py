"""Persistence models: ORM entities and mixins."""

from app.infrastructure.persistence.models.mixins import (
    CreatedAtMixin,
    CuidMixin,
    TimestampMixin,
)
from app.infrastructure.persistence.models.otp_token import OtpToken
from app.infrastructure.persistence.models.trusted_device import TrustedDevice
from app.infrastructure.persistence.models.user import User

__all__ = [
    "CreatedAtMixin",
    "CuidMixin",
    "OtpToken",
    "TimestampMixin",
    "TrustedDevice",
    "User",
]
