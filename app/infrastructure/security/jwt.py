"""JWT creation and verification for session and pending-step tokens.

Uses app.core.config for secret and algorithm. Two token types share the
signing key and are told apart by the "type" claim:

- "session": 30-day bearer token with identity claims (userId, role, email, username).
- "pending": short-lived progress token for the multi-step login/setup flow,
  tagged by a "purpose" claim (see app.domain.value_objects).

Every failure (bad signature, expiry, wrong type, wrong purpose, missing claim)
is reported the same way to the caller.
"""

from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any, cast

from jose import JWTError, jwt

from app.application.dtos.auth import SessionClaims
from app.core.config import Settings, get_settings
from app.domain.exceptions import (
    TokenExpiredOrInvalidException,
    UnauthenticatedException,
)
from app.domain.enums import PendingStep
from app.domain.value_objects import PendingStepToken, pending_step_from_claims
from app.shared.utils.datetime import utc_now

TOKEN_TYPE_SESSION = "session"
TOKEN_TYPE_PENDING = "pending"


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
    *,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> str:
    """Create a signed JWT with the given claims.

    Args:
        data: Claims to encode (must include sub).
        expires_delta: Optional TTL; else uses settings.session_token_expire_days.
        now: Issue time; defaults to the current UTC time.
        settings: Settings to sign with; defaults to get_settings().

    Returns:
        Encoded JWT string.
    """
    settings = settings or get_settings()
    issued_at = now or utc_now()
    if expires_delta is None:
        expires_delta = timedelta(days=settings.session_token_expire_days)
    to_encode = data.copy()
    to_encode["iat"] = issued_at
    to_encode["exp"] = issued_at + expires_delta
    encoded = jwt.encode(
        to_encode,
        settings.secret_key.get_secret_value(),
        algorithm=settings.algorithm,
    )
    return cast(str, encoded)


def verify_token(token: str, settings: Settings | None = None) -> dict[str, Any]:
    """Verify and decode a JWT. Returns the payload.

    Enforces presence of exp and sub. Raises ValueError if the token is
    invalid, expired, or missing required claims.

    Args:
        token: JWT string (e.g. from Authorization header).
        settings: Settings to verify with; defaults to get_settings().

    Returns:
        Decoded payload dict.

    Raises:
        ValueError: If token is invalid, expired, or missing required claims.
    """
    settings = settings or get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.secret_key.get_secret_value(),
            algorithms=[settings.algorithm],
            options={"require_exp": True, "require_sub": True},
        )
    except JWTError as e:
        raise ValueError(f"Invalid token: {e!s}") from e
    if "sub" not in payload:
        raise ValueError("Token missing required claim: sub")
    return payload


class JwtTokenIssuer:
    """Session Token Issuer: mints and verifies session and pending-step tokens.

    Expiry times are computed from the injected clock; signature and expiry are
    checked by python-jose on decode.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._settings = settings or get_settings()
        self._clock = clock

    def _pending_ttl(self, step: PendingStep) -> timedelta:
        s = self._settings
        minutes = {
            PendingStep.SETUP_OTP: s.setup_token_expire_minutes,
            PendingStep.PASSWORD_SETUP: s.password_setup_token_expire_minutes,
            PendingStep.LOGIN_OTP: s.login_otp_token_expire_minutes,
        }[step]
        return timedelta(minutes=minutes)

    def pending_ttl_seconds(self, step: PendingStep) -> int:
        """Lifetime in seconds of a pending token for step (reported as expiresIn)."""
        return int(self._pending_ttl(step).total_seconds())

    def issue_session(self, claims: SessionClaims) -> str:
        """Sign a session token carrying the user's identity claims."""
        return create_access_token(
            {
                "sub": claims.user_id,
                "type": TOKEN_TYPE_SESSION,
                "userId": claims.user_id,
                "role": claims.role,
                "email": claims.email,
                "username": claims.username,
            },
            timedelta(days=self._settings.session_token_expire_days),
            now=self._clock(),
            settings=self._settings,
        )

    def verify_session(self, token: str) -> SessionClaims:
        """Decode a session token; raise UnauthenticatedException on any failure."""
        try:
            payload = verify_token(token, self._settings)
        except ValueError:
            raise UnauthenticatedException() from None
        if payload.get("type") != TOKEN_TYPE_SESSION:
            raise UnauthenticatedException()
        role = payload.get("role")
        username = payload.get("username")
        if not isinstance(role, str) or not isinstance(username, str):
            raise UnauthenticatedException()
        email = payload.get("email")
        return SessionClaims(
            user_id=str(payload["sub"]),
            role=role,
            email=email if isinstance(email, str) else None,
            username=username,
        )

    def issue_pending(self, step: PendingStepToken) -> str:
        """Sign a pending-step token for the given variant."""
        claims = step.to_claims()
        claims["sub"] = step.user_id
        claims["type"] = TOKEN_TYPE_PENDING
        return create_access_token(
            claims,
            self._pending_ttl(step.purpose),
            now=self._clock(),
            settings=self._settings,
        )

    def decode_pending(
        self,
        token: str,
        *accepted: PendingStep,
        message: str | None = None,
    ) -> PendingStepToken:
        """Decode a pending token and require its purpose to be one of accepted.

        Raises TokenExpiredOrInvalidException (optionally with a step-specific
        message) for every failure; the purpose is checked before any other
        claim is trusted.
        """
        error = (
            TokenExpiredOrInvalidException(message)
            if message
            else TokenExpiredOrInvalidException()
        )
        if not token:
            raise error
        try:
            payload = verify_token(token, self._settings)
        except ValueError:
            raise error from None
        if payload.get("type") != TOKEN_TYPE_PENDING:
            raise error
        if payload.get("purpose") not in {step.value for step in accepted}:
            raise error
        try:
            step = pending_step_from_claims(payload)
        except ValueError:
            raise error from None
        if step.user_id != payload.get("sub"):
            raise error
        return step
