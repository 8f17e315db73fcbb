"""Presentation-layer dependency injection (composition root).

Provides FastAPI Depends() for the DB session, repositories, collaborators
and the auth flow service. Everything is built from infrastructure
implementations here; routes depend only on these dependencies.

get_clock and get_notification_service are the seams tests override.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.auth import SessionClaims
from app.application.interfaces.services import ICaptchaVerifier, INotificationService
from app.application.services.auth_flow_service import AuthFlowService
from app.application.services.otp_service import OtpPolicy, OtpService
from app.application.services.trusted_device_service import TrustedDeviceService
from app.core.config import get_settings
from app.domain.enums import UserRole
from app.domain.exceptions import PermissionDeniedException, UnauthenticatedException
from app.infrastructure.external.captcha import TurnstileVerifier
from app.infrastructure.external.email import NotificationServiceFactory
from app.infrastructure.persistence.database import get_db
from app.infrastructure.persistence.repositories import (
    OtpTokenRepository,
    TrustedDeviceRepository,
    UserRepository,
)
from app.infrastructure.security import BcryptHasher, JwtTokenIssuer
from app.shared.utils.datetime import utc_now

_http_bearer = HTTPBearer(auto_error=False)


def get_clock() -> Callable[[], datetime]:
    """Current-time source for expiry and lockout decisions."""
    return utc_now


def get_hasher() -> BcryptHasher:
    """Password / one-time code hasher with the configured bcrypt cost."""
    return BcryptHasher(get_settings().bcrypt_rounds)


def get_token_issuer(
    clock: Annotated[Callable[[], datetime], Depends(get_clock)],
) -> JwtTokenIssuer:
    """Session and pending-step token issuer (composition root)."""
    return JwtTokenIssuer(get_settings(), clock)


def get_notification_service(request: Request) -> INotificationService:
    """Email notifier selected by EMAIL_BACKEND, sharing the app HTTP client."""
    return NotificationServiceFactory.create_notification_service(
        get_settings(),
        http_client=getattr(request.app.state, "http_client", None),
    )


def get_captcha_verifier(request: Request) -> ICaptchaVerifier:
    """Turnstile verifier; disabled when TURNSTILE_SECRET_KEY is unset."""
    settings = get_settings()
    secret = settings.turnstile_secret_key
    return TurnstileVerifier(
        secret.get_secret_value() if secret else None,
        verify_url=settings.turnstile_verify_url,
        fail_open=settings.turnstile_fail_open,
        timeout_seconds=settings.turnstile_timeout_seconds,
        http_client=getattr(request.app.state, "http_client", None),
    )


async def get_user_repo(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserRepository:
    """User repository for the request session."""
    return UserRepository(db, bcrypt_rounds=get_settings().bcrypt_rounds)


async def get_otp_token_repo(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> OtpTokenRepository:
    return OtpTokenRepository(db)


async def get_trusted_device_repo(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TrustedDeviceRepository:
    return TrustedDeviceRepository(db)


def get_otp_service(
    user_repo: Annotated[UserRepository, Depends(get_user_repo)],
    otp_repo: Annotated[OtpTokenRepository, Depends(get_otp_token_repo)],
    hasher: Annotated[BcryptHasher, Depends(get_hasher)],
    clock: Annotated[Callable[[], datetime], Depends(get_clock)],
) -> OtpService:
    """OTP service with the configured expiry, lockout and cooldown policy."""
    settings = get_settings()
    policy = OtpPolicy(
        expire_minutes=settings.otp_expire_minutes,
        max_attempts=settings.otp_max_attempts,
        block_minutes=settings.otp_block_minutes,
        resend_cooldowns=tuple(settings.otp_resend_cooldowns),
    )
    return OtpService(user_repo, otp_repo, hasher, policy, clock=clock)


def get_trusted_device_service(
    device_repo: Annotated[TrustedDeviceRepository, Depends(get_trusted_device_repo)],
    clock: Annotated[Callable[[], datetime], Depends(get_clock)],
) -> TrustedDeviceService:
    return TrustedDeviceService(
        device_repo, trusted_days=get_settings().trusted_device_days, clock=clock
    )


def get_auth_flow_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    user_repo: Annotated[UserRepository, Depends(get_user_repo)],
    otp_service: Annotated[OtpService, Depends(get_otp_service)],
    device_service: Annotated[TrustedDeviceService, Depends(get_trusted_device_service)],
    token_issuer: Annotated[JwtTokenIssuer, Depends(get_token_issuer)],
    notifier: Annotated[INotificationService, Depends(get_notification_service)],
    hasher: Annotated[BcryptHasher, Depends(get_hasher)],
    captcha: Annotated[ICaptchaVerifier, Depends(get_captcha_verifier)],
    clock: Annotated[Callable[[], datetime], Depends(get_clock)],
) -> AuthFlowService:
    """Auth flow service (composition root). Commits through the request session."""
    return AuthFlowService(
        user_repo,
        otp_service,
        device_service,
        token_issuer,
        notifier,
        hasher,
        captcha=captcha,
        commit=db.commit,
        setup_email_write_through=get_settings().setup_email_write_through,
        clock=clock,
    )


async def get_current_session(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_http_bearer)],
    token_issuer: Annotated[JwtTokenIssuer, Depends(get_token_issuer)],
) -> SessionClaims:
    """Return the session claims from the bearer token; raise 401 if missing or invalid."""
    if credentials is None:
        raise UnauthenticatedException("Token no proporcionado.")
    return token_issuer.verify_session(credentials.credentials)


def require_role(*roles: UserRole):
    """Dependency factory: require a session whose role is one of roles."""
    allowed = {role.value for role in roles}

    async def _require(
        session: Annotated[SessionClaims, Depends(get_current_session)],
    ) -> SessionClaims:
        if session.role not in allowed:
            raise PermissionDeniedException(" o ".join(sorted(allowed)))
        return session

    return _require
