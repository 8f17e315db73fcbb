"""Application interfaces (ports): repository and service protocols.

Define contracts for infrastructure implementations (DIP).
No runtime imports from app.infrastructure or app.api.
"""

from app.application.interfaces.repositories import (
    IOtpTokenRepository,
    ITrustedDeviceRepository,
    IUserRepository,
)
from app.application.interfaces.services import (
    ICaptchaVerifier,
    INotificationService,
    ISecretHasher,
    ITokenIssuer,
    NotificationDeliveryError,
)

__all__ = [
    "ICaptchaVerifier",
    "INotificationService",
    "IOtpTokenRepository",
    "ISecretHasher",
    "ITokenIssuer",
    "ITrustedDeviceRepository",
    "IUserRepository",
    "NotificationDeliveryError",
]
