"""Application DTOs (no ORM dependency)."""

from app.application.dtos.auth import (
    DevicesRevoked,
    EmailVerified,
    LoginOutcome,
    OtpChallenge,
    OtpResent,
    SessionClaims,
    SessionIssued,
    SetupCompleted,
    SetupRequired,
    SetupStarted,
)
from app.application.dtos.otp_token import OtpTokenResult
from app.application.dtos.trusted_device import TrustedDeviceResult
from app.application.dtos.user import UserResult

__all__ = [
    "DevicesRevoked",
    "EmailVerified",
    "LoginOutcome",
    "OtpChallenge",
    "OtpResent",
    "OtpTokenResult",
    "SessionClaims",
    "SessionIssued",
    "SetupCompleted",
    "SetupRequired",
    "SetupStarted",
    "TrustedDeviceResult",
    "UserResult",
]
