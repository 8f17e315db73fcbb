"""Domain value objects and shared value types."""

from app.domain.value_objects.core import (
    EmailAddress,
    LoginOtpPending,
    OtpCode,
    PasswordSetupPending,
    PendingStepToken,
    SetupOtpPending,
    mask_email,
    pending_step_from_claims,
)

__all__ = [
    "EmailAddress",
    "LoginOtpPending",
    "OtpCode",
    "PasswordSetupPending",
    "PendingStepToken",
    "SetupOtpPending",
    "mask_email",
    "pending_step_from_claims",
]
