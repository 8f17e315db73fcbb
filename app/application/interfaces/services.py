"""Service interfaces (ports) for the application layer.

Protocols define contracts for collaborators the auth flow depends on (DIP).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from app.application.dtos.auth import SessionClaims
    from app.domain.enums import OtpPurpose, PendingStep
    from app.domain.value_objects import PendingStepToken


class NotificationDeliveryError(Exception):
    """Raised by a notification backend when a message could not be delivered."""


# Secret hashing interface
class ISecretHasher(Protocol):
    """Protocol for slow hashing of passwords and one-time codes (bcrypt)."""

    def hash(self, secret: str) -> str:
        """Return the hash of secret."""

    def verify(self, secret: str, hashed: str) -> bool:
        """Return True if secret matches hashed."""


# Token issuer interface
class ITokenIssuer(Protocol):
    """Protocol for signing session and pending-step tokens."""

    def pending_ttl_seconds(self, step: PendingStep) -> int:
        """Lifetime of a pending token for step, in seconds."""

    def issue_session(self, claims: SessionClaims) -> str:
        """Sign a session token."""

    def verify_session(self, token: str) -> SessionClaims:
        """Decode a session token; raise UnauthenticatedException on any failure."""

    def issue_pending(self, step: PendingStepToken) -> str:
        """Sign a pending-step token."""

    def decode_pending(
        self, token: str, *accepted: PendingStep, message: str | None = None
    ) -> PendingStepToken:
        """Decode a pending token accepted by one of the given steps."""


# Email notifier interface
class INotificationService(Protocol):
    """Protocol for delivering one-time codes by email."""

    async def send(self, address: str, code: str, purpose: OtpPurpose) -> None:
        """Deliver code to address; raise NotificationDeliveryError on failure."""


# Captcha interface
class ICaptchaVerifier(Protocol):
    """Protocol for human-verification of the login form."""

    @property
    def enabled(self) -> bool:
        """False when no secret is configured (verification skipped)."""

    async def verify(self, token: str, remote_ip: str | None = None) -> bool:
        """Return True if the provider accepts token (or fails open on outage)."""
