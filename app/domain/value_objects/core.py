"""Domain value objects for the auth core.

Value objects are immutable types that represent domain concepts with
self-validation. They have no identity, only value.

Pending-step tokens are modelled as a closed set of tagged variants. The
signed claim set is decoded once, the purpose tag is matched, and only then
are the remaining claims read (see pending_step_from_claims).
"""

import re
from dataclasses import dataclass
from typing import Any, ClassVar

from app.domain.enums import PendingStep

_OTP_CODE_RE = re.compile(r"[0-9]{8}")
# Same shape check the storefront admin applies: something@something.tld, no spaces.
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class OtpCode:
    """Value object for a submitted one-time code: exactly 8 ASCII digits."""

    value: str

    LENGTH: ClassVar[int] = 8

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not _OTP_CODE_RE.fullmatch(self.value):
            raise ValueError("OTP code must be exactly 8 digits")


@dataclass(frozen=True)
class EmailAddress:
    """Value object for an email address, normalized to lowercase."""

    value: str

    def __post_init__(self) -> None:
        normalized = (self.value or "").strip().lower()
        if not _EMAIL_RE.match(normalized):
            raise ValueError("Invalid email address")
        object.__setattr__(self, "value", normalized)

    def masked(self) -> str:
        """Return the address with the local part reduced to first/last character (t***t@domain)."""
        return mask_email(self.value)


def mask_email(email: str | None) -> str:
    """Mask an email for display: keep first and last character of the local part.

    'tester@example.com' -> 't***r@example.com'; a one-character local part
    keeps only that character ('t***@example.com').
    """
    if not email or "@" not in email:
        return ""
    local, domain = email.split("@", 1)
    if len(local) <= 1:
        return f"{local}***@{domain}"
    return f"{local[0]}***{local[-1]}@{domain}"


@dataclass(frozen=True)
class SetupOtpPending:
    """Progress token after initiate-setup: waiting for the email-ownership code."""

    user_id: str
    email: str
    resend_count: int = 0

    purpose: ClassVar[PendingStep] = PendingStep.SETUP_OTP

    def to_claims(self) -> dict[str, Any]:
        return {
            "purpose": self.purpose.value,
            "userId": self.user_id,
            "email": self.email,
            "resendCount": self.resend_count,
        }


@dataclass(frozen=True)
class PasswordSetupPending:
    """Progress token after the setup code was verified: waiting for the new password."""

    user_id: str
    email_verified: bool = True

    purpose: ClassVar[PendingStep] = PendingStep.PASSWORD_SETUP

    def to_claims(self) -> dict[str, Any]:
        return {
            "purpose": self.purpose.value,
            "userId": self.user_id,
            "emailVerified": self.email_verified,
        }


@dataclass(frozen=True)
class LoginOtpPending:
    """Progress token after a password login on an untrusted device: waiting for the login code."""

    user_id: str
    resend_count: int = 0

    purpose: ClassVar[PendingStep] = PendingStep.LOGIN_OTP

    def to_claims(self) -> dict[str, Any]:
        return {
            "purpose": self.purpose.value,
            "userId": self.user_id,
            "resendCount": self.resend_count,
        }


PendingStepToken = SetupOtpPending | PasswordSetupPending | LoginOtpPending


def _require_str(claims: dict[str, Any], key: str) -> str:
    value = claims.get(key)
    if not isinstance(value, str) or not value:
        raise ValueError(f"Pending token missing claim: {key}")
    return value


def _resend_count(claims: dict[str, Any]) -> int:
    value = claims.get("resendCount", 0)
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ValueError("Pending token has invalid resendCount")
    return value


def pending_step_from_claims(claims: dict[str, Any]) -> PendingStepToken:
    """Build the pending-step variant named by the purpose claim.

    The purpose tag is matched before any other claim is read. Raises
    ValueError for an unknown purpose or missing/invalid claims.
    """
    purpose = claims.get("purpose")
    if purpose == PendingStep.SETUP_OTP.value:
        return SetupOtpPending(
            user_id=_require_str(claims, "userId"),
            email=_require_str(claims, "email"),
            resend_count=_resend_count(claims),
        )
    if purpose == PendingStep.PASSWORD_SETUP.value:
        return PasswordSetupPending(
            user_id=_require_str(claims, "userId"),
            email_verified=claims.get("emailVerified") is True,
        )
    if purpose == PendingStep.LOGIN_OTP.value:
        return LoginOtpPending(
            user_id=_require_str(claims, "userId"),
            resend_count=_resend_count(claims),
        )
    raise ValueError("Pending token has unknown purpose")
