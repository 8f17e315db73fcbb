"""Development notifier: logs the code instead of sending an email."""

from __future__ import annotations

from app.domain.enums import OtpPurpose
from app.domain.value_objects import mask_email
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class LogOnlyNotificationService:
    """INotificationService implementation that logs instead of sending email.

    Use when no email provider is configured (EMAIL_BACKEND=log). The code is
    written to the log so a developer can complete the flow locally; never
    use in production.
    """

    async def send(self, address: str, code: str, purpose: OtpPurpose) -> None:
        """Log the notification; no actual email sent."""
        logger.info(
            "OTP notify (%s): would send code to %s",
            purpose.value,
            mask_email(address),
        )
        logger.warning("DEV ONLY %s code for %s: %s", purpose.value, mask_email(address), code)
