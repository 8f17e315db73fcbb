"""Auth API schemas.

Request and response bodies use camelCase on the wire (the admin client's
field names); Python attributes stay snake_case.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model: camelCase aliases, accepts either name on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


def _code_as_text(v: Any) -> str:
    """Codes are checked as text; JSON numbers are accepted, other values fail the format check."""
    if isinstance(v, str):
        return v
    if isinstance(v, int) and not isinstance(v, bool):
        return str(v)
    return ""


class LoginRequest(CamelModel):
    """Request body for login. turnstileToken is required only when captcha is enabled."""

    username: str = Field(..., min_length=1, max_length=150)
    password: str | None = Field(default=None, max_length=256)
    turnstile_token: str | None = Field(default=None, max_length=4096)


class InitiateSetupRequest(CamelModel):
    """Request body for POST /auth/initiate-setup (first-login email registration)."""

    username: str = Field(..., min_length=1, max_length=150)
    email: str = Field(..., min_length=1, max_length=255)


class VerifySetupOtpRequest(CamelModel):
    """Request body for POST /auth/verify-setup-otp."""

    setup_token: str = Field(..., min_length=1)
    otp: str = Field(..., description="8-digit code from the email")

    @field_validator("otp", mode="before")
    @classmethod
    def _otp_to_str(cls, v: Any) -> str:
        return _code_as_text(v)


class CompleteSetupRequest(CamelModel):
    """Request body for POST /auth/complete-setup."""

    password_setup_token: str = Field(..., min_length=1)
    password: str = Field(..., max_length=256)
    confirm_password: str = Field(..., max_length=256)


class VerifyLoginOtpRequest(CamelModel):
    """Request body for POST /auth/verify-login-otp."""

    otp_pending_token: str = Field(..., min_length=1)
    otp: str = Field(..., description="8-digit code from the email")
    trust_device: bool = Field(default=False, description="Skip the code on this device for 30 days")

    @field_validator("otp", mode="before")
    @classmethod
    def _otp_to_str(cls, v: Any) -> str:
        return _code_as_text(v)


class ResendOtpRequest(CamelModel):
    """Request body for POST /auth/resend-otp (login-otp or setup-otp token)."""

    otp_pending_token: str = Field(..., min_length=1)


class UserSummary(CamelModel):
    """Identity returned with a session token."""

    id: str
    username: str
    email: str | None = None
    role: str


class LoginResponse(CamelModel):
    """One of three shapes: session issued, setup required, or OTP required.

    Unset fields are excluded from the response (response_model_exclude_none).
    """

    success: bool | None = None
    token: str | None = None
    user: UserSummary | None = None
    setup_required: bool | None = None
    username: str | None = None
    otp_required: bool | None = None
    otp_pending_token: str | None = None
    email: str | None = None
    expires_in: int | None = None
    message: str | None = None


class InitiateSetupResponse(CamelModel):
    success: bool = True
    setup_token: str
    email: str
    message: str
    expires_in: int


class VerifySetupOtpResponse(CamelModel):
    success: bool = True
    password_setup_token: str
    message: str


class CompleteSetupResponse(CamelModel):
    """Setup done. No token: the user must log in with the new password."""

    success: bool = True
    message: str
    redirect_to: str = "/login"


class VerifyLoginOtpResponse(CamelModel):
    success: bool = True
    token: str
    user: UserSummary
    device_trusted: bool
    message: str


class ResendOtpResponse(CamelModel):
    success: bool = True
    otp_pending_token: str
    email: str
    message: str
    next_resend_in: int = Field(..., description="Seconds before another resend is allowed")


class LogoutAllResponse(CamelModel):
    success: bool = True
    message: str
    revoked_devices: int


class MeResponse(CamelModel):
    """Identity of the bearer of the session token."""

    user: UserSummary
