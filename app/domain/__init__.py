"""Domain layer: value objects, enums, and exceptions.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from app.domain.enums import OtpPurpose, OtpVerificationStatus, PendingStep, UserRole
from app.domain.exceptions import StorefrontException
from app.domain.value_objects import (
    EmailAddress,
    LoginOtpPending,
    OtpCode,
    PasswordSetupPending,
    PendingStepToken,
    SetupOtpPending,
)

__all__ = [
    # Enums
    "OtpPurpose",
    "OtpVerificationStatus",
    "PendingStep",
    "UserRole",
    # Exceptions
    "StorefrontException",
    # Value objects
    "EmailAddress",
    "LoginOtpPending",
    "OtpCode",
    "PasswordSetupPending",
    "PendingStepToken",
    "SetupOtpPending",
]
