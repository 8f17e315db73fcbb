"""Email notifier backed by the Resend HTTP API (https://resend.com/docs/api-reference)."""

from __future__ import annotations

import httpx

from app.application.interfaces.services import NotificationDeliveryError
from app.domain.enums import OtpPurpose
from app.domain.value_objects import mask_email
from app.infrastructure.external.email.templates import (
    render_html,
    render_subject,
    render_text,
)
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class ResendEmailNotificationService:
    """Send one-time codes through Resend.

    Any transport error or non-2xx answer is raised as NotificationDeliveryError;
    the API key and the code are never logged.
    """

    def __init__(
        self,
        api_key: str,
        sender: str,
        *,
        api_url: str = "https://api.resend.com/emails",
        timeout_seconds: float = 10.0,
        expire_minutes: int = 5,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._sender = sender
        self._api_url = api_url
        self._timeout = timeout_seconds
        self._expire_minutes = expire_minutes
        self._http = http_client

    def _payload(self, address: str, code: str, purpose: OtpPurpose) -> dict[str, object]:
        return {
            "from": self._sender,
            "to": [address],
            "subject": render_subject(purpose),
            "text": render_text(code, purpose, self._expire_minutes),
            "html": render_html(code, purpose, self._expire_minutes),
        }

    async def _post(self, client: httpx.AsyncClient, payload: dict[str, object]) -> httpx.Response:
        return await client.post(
            self._api_url,
            json=payload,
            headers={"Authorization": f"Bearer {self._api_key}"},
            timeout=self._timeout,
        )

    async def send(self, address: str, code: str, purpose: OtpPurpose) -> None:
        payload = self._payload(address, code, purpose)
        try:
            if self._http is not None:
                response = await self._post(self._http, payload)
            else:
                async with httpx.AsyncClient() as client:
                    response = await self._post(client, payload)
        except httpx.HTTPError as e:
            logger.error(
                "Resend request failed for %s: %s", mask_email(address), type(e).__name__
            )
            raise NotificationDeliveryError(f"email transport error: {type(e).__name__}") from e
        if response.status_code >= 300:
            logger.error(
                "Resend rejected email to %s: status=%d",
                mask_email(address),
                response.status_code,
            )
            raise NotificationDeliveryError(
                f"email provider returned status {response.status_code}"
            )
        logger.info("Sent %s code email to %s", purpose.value, mask_email(address))
