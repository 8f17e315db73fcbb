"""Application layer: interfaces, DTOs and services.

Depends only on domain and protocol definitions (DIP).
Infrastructure implements the interfaces (repositories, notifier, captcha, tokens).
"""

from app.application.interfaces import (
    ICaptchaVerifier,
    INotificationService,
    IOtpTokenRepository,
    ISecretHasher,
    ITokenIssuer,
    ITrustedDeviceRepository,
    IUserRepository,
)
from app.application.services import AuthFlowService, OtpService, TrustedDeviceService

__all__ = [
    "AuthFlowService",
    "ICaptchaVerifier",
    "INotificationService",
    "IOtpTokenRepository",
    "ISecretHasher",
    "ITokenIssuer",
    "ITrustedDeviceRepository",
    "IUserRepository",
    "OtpService",
    "TrustedDeviceService",
]
