"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference application DTOs only; no infrastructure imports.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from app.application.dtos.otp_token import OtpTokenResult
    from app.application.dtos.trusted_device import TrustedDeviceResult
    from app.application.dtos.user import UserResult


# User repository interface
class IUserRepository(Protocol):
    """Protocol for the credential store (DIP)."""

    async def get_by_id(self, user_id: str) -> UserResult | None:
        """Return user by ID."""

    async def get_by_username(self, username: str) -> UserResult | None:
        """Return user by username."""

    async def get_by_email(self, email: str) -> UserResult | None:
        """Return user owning email (normalized lowercase)."""

    async def authenticate(self, username: str, password: str | None) -> UserResult | None:
        """Return the user when username exists, has a password and it matches; else None."""

    async def lock_for_update(self, user_id: str) -> None:
        """Take a row lock on the user until the end of the transaction."""

    async def register_failed_otp_attempt(
        self, user_id: str, max_attempts: int, blocked_until: datetime
    ) -> int | None:
        """Atomically count a wrong code; on reaching max_attempts reset the counter and block.

        Returns the counter after the update (0 means the block just started),
        or None when the user does not exist.
        """

    async def reset_otp_attempts(self, user_id: str) -> None:
        """Reset the attempt counter and clear any block."""

    async def set_email(self, user_id: str, email: str) -> None:
        """Store the verified email; raise EmailInUseException on a uniqueness clash."""

    async def complete_password_setup(self, user_id: str, password_hash: str) -> None:
        """Replace the password hash and clear the temporary-password and setup flags."""


# OTP token repository interface
class IOtpTokenRepository(Protocol):
    """Protocol for the OTP token store (DIP)."""

    async def invalidate_unused(self, user_id: str, purpose: str) -> int:
        """Mark every unused token of (user, purpose) as used; return how many."""

    async def create_token(
        self, user_id: str, purpose: str, hashed_code: str, expires_at: datetime
    ) -> OtpTokenResult:
        """Persist a new unused token."""

    async def get_latest_valid(
        self, user_id: str, purpose: str, now: datetime
    ) -> OtpTokenResult | None:
        """Return the most recent unused token of (user, purpose) expiring after now."""

    async def mark_used(self, token_id: str) -> bool:
        """Mark the token used; False when it was already used."""


# Trusted device repository interface
class ITrustedDeviceRepository(Protocol):
    """Protocol for the trusted device store (DIP)."""

    async def create_device(
        self,
        user_id: str,
        device_token: str,
        expires_at: datetime,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> TrustedDeviceResult:
        """Persist a trusted device; only the hash of device_token is stored."""

    async def get_valid(
        self, user_id: str, device_token: str, now: datetime
    ) -> TrustedDeviceResult | None:
        """Return the device of this user matching device_token and expiring after now."""

    async def touch(self, device_id: str, now: datetime) -> None:
        """Record the last successful use of a device."""

    async def delete_all_for_user(self, user_id: str) -> int:
        """Delete every device of the user; return how many."""
