"""Turnstile verifier and email notifiers against httpx.MockTransport."""

import json

import httpx
import pytest

from app.application.interfaces.services import NotificationDeliveryError
from app.core.config import Settings
from app.domain.enums import OtpPurpose
from app.infrastructure.external.captcha import TurnstileVerifier
from app.infrastructure.external.email import (
    LogOnlyNotificationService,
    NotificationServiceFactory,
    ResendEmailNotificationService,
)


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestTurnstileVerifier:
    async def test_disabled_without_secret(self) -> None:
        verifier = TurnstileVerifier(None)
        assert verifier.enabled is False
        assert await verifier.verify("anything") is True

    async def test_accepts_successful_siteverify(self) -> None:
        seen: dict[str, str] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(dict(httpx.QueryParams(request.content.decode())))
            return httpx.Response(200, json={"success": True})

        async with _client(handler) as client:
            verifier = TurnstileVerifier("secret", http_client=client)
            assert await verifier.verify("tok", "1.2.3.4") is True
        assert seen == {"secret": "secret", "response": "tok", "remoteip": "1.2.3.4"}

    async def test_rejects_failed_siteverify(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"success": False, "error-codes": ["invalid-input-response"]})

        async with _client(handler) as client:
            assert await TurnstileVerifier("secret", http_client=client).verify("tok") is False

    @pytest.mark.parametrize("fail_open", [True, False])
    async def test_provider_outage_follows_fail_open(self, fail_open: bool) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503)

        async with _client(handler) as client:
            verifier = TurnstileVerifier("secret", fail_open=fail_open, http_client=client)
            assert await verifier.verify("tok") is fail_open

    async def test_network_error_follows_fail_open(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        async with _client(handler) as client:
            verifier = TurnstileVerifier("secret", fail_open=False, http_client=client)
            assert await verifier.verify("tok") is False


class TestResendNotifier:
    async def test_posts_code_email(self) -> None:
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={"id": "email-1"})

        async with _client(handler) as client:
            notifier = ResendEmailNotificationService(
                "re_key", "Shop <no-reply@shop.test>", http_client=client
            )
            await notifier.send("dev@example.com", "12345678", OtpPurpose.SETUP)

        request = captured[0]
        assert request.headers["authorization"] == "Bearer re_key"
        body = json.loads(request.content)
        assert body["to"] == ["dev@example.com"]
        assert body["subject"] == "Verifica tu email"
        assert "12345678" in body["text"]
        assert "5 minutos" in body["html"]

    async def test_provider_rejection_raises_delivery_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(422, json={"message": "invalid from"})

        async with _client(handler) as client:
            notifier = ResendEmailNotificationService("re_key", "x@shop.test", http_client=client)
            with pytest.raises(NotificationDeliveryError):
                await notifier.send("dev@example.com", "12345678", OtpPurpose.LOGIN)

    async def test_transport_error_raises_delivery_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        async with _client(handler) as client:
            notifier = ResendEmailNotificationService("re_key", "x@shop.test", http_client=client)
            with pytest.raises(NotificationDeliveryError):
                await notifier.send("dev@example.com", "12345678", OtpPurpose.LOGIN)


class TestNotificationFactory:
    def test_log_backend(self) -> None:
        settings = Settings(database_url="sqlite+aiosqlite://", secret_key="k", email_backend="log")
        service = NotificationServiceFactory.create_notification_service(settings)
        assert isinstance(service, LogOnlyNotificationService)

    def test_resend_backend(self) -> None:
        settings = Settings(
            database_url="sqlite+aiosqlite://",
            secret_key="k",
            email_backend="resend",
            resend_api_key="re_key",
        )
        service = NotificationServiceFactory.create_notification_service(settings)
        assert isinstance(service, ResendEmailNotificationService)

    async def test_log_only_notifier_never_fails(self) -> None:
        await LogOnlyNotificationService().send("dev@example.com", "12345678", OtpPurpose.LOGIN)
