"""Application services: OTP, trusted devices, password policy and the auth flow."""

from app.application.services.auth_flow_service import AuthFlowService
from app.application.services.otp_service import OtpCheck, OtpPolicy, OtpService
from app.application.services.password_policy import validate_password_strength
from app.application.services.trusted_device_service import TrustedDeviceService

__all__ = [
    "AuthFlowService",
    "OtpCheck",
    "OtpPolicy",
    "OtpService",
    "TrustedDeviceService",
    "validate_password_strength",
]
