"""DTOs for the login / first-login setup flow.

Each flow operation returns exactly one of these result types; failures are
raised as domain exceptions instead. The API layer maps results to the JSON
response bodies.
"""

from dataclasses import dataclass

from app.application.dtos.user import UserResult


@dataclass(frozen=True)
class SessionClaims:
    """Identity carried by a session token."""

    user_id: str
    role: str
    email: str | None
    username: str

    @classmethod
    def from_user(cls, user: UserResult) -> "SessionClaims":
        return cls(
            user_id=user.id,
            role=user.role,
            email=user.email,
            username=user.username,
        )


@dataclass(frozen=True)
class SessionIssued:
    """Login completed: session token issued (trusted device, or login code verified).

    device_token is the plaintext device cookie value when the caller asked to
    trust this device; None otherwise.
    """

    token: str
    user: SessionClaims
    device_token: str | None = None

    @property
    def device_trusted(self) -> bool:
        return self.device_token is not None


@dataclass(frozen=True)
class SetupRequired:
    """Credentials valid but the first-login setup has not been completed."""

    username: str


@dataclass(frozen=True)
class OtpChallenge:
    """Login code sent; the client must submit it with the pending token."""

    pending_token: str
    masked_email: str
    expires_in: int


@dataclass(frozen=True)
class SetupStarted:
    """Setup code sent to the provisional email."""

    setup_token: str
    masked_email: str
    expires_in: int


@dataclass(frozen=True)
class EmailVerified:
    """Setup code accepted; the client may now choose a password."""

    password_setup_token: str


@dataclass(frozen=True)
class SetupCompleted:
    """Password replaced; the user must log in again (no session token)."""

    user_id: str


@dataclass(frozen=True)
class OtpResent:
    """Fresh code sent with a replacement pending token."""

    pending_token: str
    masked_email: str
    next_resend_in: int


@dataclass(frozen=True)
class DevicesRevoked:
    """All trusted devices of the user were deleted."""

    revoked: int


LoginOutcome = SessionIssued | SetupRequired | OtpChallenge
