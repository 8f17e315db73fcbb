"""Email notifiers for one-time codes (log-only for development, Resend for production)."""

from app.infrastructure.external.email.factory import NotificationServiceFactory
from app.infrastructure.external.email.log_only import LogOnlyNotificationService
from app.infrastructure.external.email.resend import ResendEmailNotificationService

__all__ = [
    "LogOnlyNotificationService",
    "NotificationServiceFactory",
    "ResendEmailNotificationService",
]
