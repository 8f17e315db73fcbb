"""Domain enumerations for the auth core.

Kept as str Enums so values round-trip through the database, JWT claims
and JSON bodies unchanged.
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class UserRole(_ValuesMixin, str, Enum):
    """Role stored on the user record. The back-office only distinguishes developer vs others."""

    CUSTOMER = "customer"
    ADMIN = "admin"
    DEVELOPER = "developer"


class OtpPurpose(_ValuesMixin, str, Enum):
    """What a one-time code proves: email ownership during setup, or a login second factor."""

    SETUP = "setup"
    LOGIN = "login"


class PendingStep(_ValuesMixin, str, Enum):
    """Purpose claim of a pending-step token (which handler may consume it)."""

    SETUP_OTP = "setup-otp"
    PASSWORD_SETUP = "password-setup"
    LOGIN_OTP = "login-otp"


class OtpVerificationStatus(_ValuesMixin, str, Enum):
    """Outcome of checking a submitted code against the stored token."""

    VALID = "valid"
    INVALID = "invalid"
    EXPIRED = "expired"
    JUST_BLOCKED = "just_blocked"
