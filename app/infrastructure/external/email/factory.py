"""Notifier factory: creates the log-only or Resend notifier from settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

from app.application.interfaces.services import INotificationService

if TYPE_CHECKING:
    from app.core.config import Settings


class NotificationServiceFactory:
    """Factory for notifier instances based on configuration."""

    @staticmethod
    def create_notification_service(
        settings: "Settings | None" = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> INotificationService:
        """Create the notifier named by settings.email_backend.

        Args:
            settings: Application settings; if None, uses get_settings().
            http_client: Optional shared httpx.AsyncClient for connection reuse.

        Returns:
            LogOnlyNotificationService or ResendEmailNotificationService.

        Raises:
            ValueError: Unknown backend or missing required config.
        """
        from app.core.config import get_settings

        s = settings or get_settings()
        backend = s.email_backend.lower()

        if backend == "log":
            from app.infrastructure.external.email.log_only import (
                LogOnlyNotificationService,
            )

            return LogOnlyNotificationService()
        if backend == "resend":
            from app.infrastructure.external.email.resend import (
                ResendEmailNotificationService,
            )

            if not s.resend_api_key:
                raise ValueError("RESEND_API_KEY required for resend backend")
            return ResendEmailNotificationService(
                s.resend_api_key.get_secret_value(),
                s.email_from,
                api_url=s.resend_api_url,
                timeout_seconds=s.email_timeout_seconds,
                expire_minutes=s.otp_expire_minutes,
                http_client=http_client,
            )
        raise ValueError(
            f"Unknown email backend: {backend}. Supported: 'log', 'resend'"
        )
