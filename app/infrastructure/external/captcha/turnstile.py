"""Cloudflare Turnstile verification for the login form.

Verification is skipped when no secret is configured. When the provider
cannot be reached (or answers with a server error) the login is let through
if fail_open is set, and rejected otherwise.
"""

from __future__ import annotations

from typing import Any

import httpx

from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class TurnstileVerifier:
    """ICaptchaVerifier implementation for Cloudflare Turnstile (siteverify API)."""

    def __init__(
        self,
        secret_key: str | None,
        *,
        verify_url: str = "https://challenges.cloudflare.com/turnstile/v0/siteverify",
        fail_open: bool = True,
        timeout_seconds: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._secret_key = secret_key
        self._verify_url = verify_url
        self._fail_open = fail_open
        self._timeout = timeout_seconds
        self._http = http_client

    @property
    def enabled(self) -> bool:
        return bool(self._secret_key)

    async def _post(self, client: httpx.AsyncClient, data: dict[str, str]) -> httpx.Response:
        return await client.post(self._verify_url, data=data, timeout=self._timeout)

    async def verify(self, token: str, remote_ip: str | None = None) -> bool:
        """Return True when Turnstile accepts token (or on outage with fail_open)."""
        if not self.enabled:
            return True
        data = {"secret": self._secret_key or "", "response": token}
        if remote_ip:
            data["remoteip"] = remote_ip
        try:
            if self._http is not None:
                response = await self._post(self._http, data)
            else:
                async with httpx.AsyncClient() as client:
                    response = await self._post(client, data)
            if response.status_code >= 500:
                raise httpx.HTTPStatusError(
                    f"siteverify returned {response.status_code}",
                    request=response.request,
                    response=response,
                )
            result: dict[str, Any] = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Turnstile verification unavailable: %s", type(e).__name__)
            return self._fail_open

        if result.get("success") is True:
            return True
        logger.warning(
            "Turnstile rejected token: %s", result.get("error-codes", [])
        )
        return False
