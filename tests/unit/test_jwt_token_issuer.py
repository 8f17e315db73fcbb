"""JwtTokenIssuer: session tokens and purpose-tagged pending-step tokens."""

from datetime import timedelta

import pytest
from jose import jwt

from app.application.dtos.auth import SessionClaims
from app.core.config import Settings
from app.domain.enums import PendingStep
from app.domain.exceptions import TokenExpiredOrInvalidException, UnauthenticatedException
from app.domain.value_objects import LoginOtpPending, PasswordSetupPending, SetupOtpPending
from app.infrastructure.security import JwtTokenIssuer, create_access_token, verify_token
from app.shared.utils.datetime import utc_now

SECRET = "unit-test-secret-0123456789abcdef0123456789"


@pytest.fixture
def settings() -> Settings:
    return Settings(database_url="sqlite+aiosqlite://", secret_key=SECRET)


@pytest.fixture
def issuer(settings: Settings) -> JwtTokenIssuer:
    return JwtTokenIssuer(settings)


CLAIMS = SessionClaims(user_id="u1", role="developer", email="dev@example.com", username="dev")


def test_session_token_round_trip(issuer: JwtTokenIssuer) -> None:
    token = issuer.issue_session(CLAIMS)
    assert issuer.verify_session(token) == CLAIMS


def test_session_token_lasts_thirty_days(issuer: JwtTokenIssuer) -> None:
    payload = jwt.get_unverified_claims(issuer.issue_session(CLAIMS))
    assert payload["exp"] - payload["iat"] == 30 * 24 * 60 * 60
    assert payload["userId"] == "u1"
    assert payload["username"] == "dev"


def test_tampered_and_foreign_tokens_rejected(issuer: JwtTokenIssuer, settings: Settings) -> None:
    token = issuer.issue_session(CLAIMS)
    signature = token.split(".")[2]
    escalated = jwt.encode(
        {**jwt.get_unverified_claims(token), "role": "admin"}, "guess", algorithm="HS256"
    )
    tampered = ".".join([*escalated.split(".")[:2], signature])
    with pytest.raises(UnauthenticatedException):
        issuer.verify_session(tampered)

    other = JwtTokenIssuer(Settings(database_url="sqlite+aiosqlite://", secret_key="another-secret-value"))
    with pytest.raises(UnauthenticatedException):
        issuer.verify_session(other.issue_session(CLAIMS))


def test_expired_session_rejected(settings: Settings) -> None:
    issued_long_ago = JwtTokenIssuer(settings, clock=lambda: utc_now() - timedelta(days=31))
    token = issued_long_ago.issue_session(CLAIMS)
    with pytest.raises(UnauthenticatedException):
        JwtTokenIssuer(settings).verify_session(token)


def test_pending_token_is_not_a_session(issuer: JwtTokenIssuer) -> None:
    token = issuer.issue_pending(LoginOtpPending(user_id="u1"))
    with pytest.raises(UnauthenticatedException):
        issuer.verify_session(token)


def test_session_token_is_not_a_pending_token(issuer: JwtTokenIssuer) -> None:
    with pytest.raises(TokenExpiredOrInvalidException):
        issuer.decode_pending(issuer.issue_session(CLAIMS), PendingStep.LOGIN_OTP)


def test_pending_token_round_trip(issuer: JwtTokenIssuer) -> None:
    step = SetupOtpPending(user_id="u1", email="dev@example.com", resend_count=1)
    token = issuer.issue_pending(step)
    assert issuer.decode_pending(token, PendingStep.SETUP_OTP) == step
    assert issuer.decode_pending(token, PendingStep.LOGIN_OTP, PendingStep.SETUP_OTP) == step


def test_pending_token_purpose_enforced(issuer: JwtTokenIssuer) -> None:
    token = issuer.issue_pending(PasswordSetupPending(user_id="u1"))
    with pytest.raises(TokenExpiredOrInvalidException):
        issuer.decode_pending(token, PendingStep.SETUP_OTP, PendingStep.LOGIN_OTP)


def test_pending_failure_uses_step_message(issuer: JwtTokenIssuer) -> None:
    with pytest.raises(TokenExpiredOrInvalidException) as exc_info:
        issuer.decode_pending("", PendingStep.PASSWORD_SETUP, message="Token expirado. Reinicia el proceso.")
    assert exc_info.value.message == "Token expirado. Reinicia el proceso."


def test_pending_token_lifetimes(issuer: JwtTokenIssuer) -> None:
    assert issuer.pending_ttl_seconds(PendingStep.SETUP_OTP) == 300
    assert issuer.pending_ttl_seconds(PendingStep.LOGIN_OTP) == 300
    assert issuer.pending_ttl_seconds(PendingStep.PASSWORD_SETUP) == 600

    payload = jwt.get_unverified_claims(issuer.issue_pending(PasswordSetupPending(user_id="u1")))
    assert payload["exp"] - payload["iat"] == 600
    assert payload["purpose"] == "password-setup"


def test_pending_token_with_mismatched_subject_rejected(issuer: JwtTokenIssuer, settings: Settings) -> None:
    forged = create_access_token(
        {"sub": "u2", "type": "pending", "purpose": "login-otp", "userId": "u1"},
        timedelta(minutes=5),
        settings=settings,
    )
    with pytest.raises(TokenExpiredOrInvalidException):
        issuer.decode_pending(forged, PendingStep.LOGIN_OTP)


def test_verify_token_requires_sub(settings: Settings) -> None:
    token = jwt.encode(
        {"exp": int((utc_now() + timedelta(minutes=5)).timestamp())},
        SECRET,
        algorithm=settings.algorithm,
    )
    with pytest.raises(ValueError):
        verify_token(token, settings)
