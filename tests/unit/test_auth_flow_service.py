"""AuthFlowService unit tests with mocked repositories, OTP service, devices and notifier."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.application.dtos.auth import OtpChallenge, SessionIssued, SetupRequired
from app.application.dtos.user import UserResult
from app.application.interfaces.services import NotificationDeliveryError
from app.application.services.auth_flow_service import AuthFlowService
from app.application.services.otp_service import OtpCheck, OtpPolicy, OtpService
from app.application.services.trusted_device_service import TrustedDeviceService
from app.core.config import Settings
from app.domain.enums import OtpPurpose, OtpVerificationStatus, PendingStep
from app.domain.exceptions import (
    CaptchaFailedException,
    CaptchaRequiredException,
    CodeExpiredException,
    CodeIncorrectException,
    EmailInUseException,
    InvalidCredentialsException,
    InvalidEmailException,
    MalformedCodeException,
    NotificationFailedException,
    OtpBlockedException,
    SetupNotAvailableException,
    TokenExpiredOrInvalidException,
    WeakPasswordException,
)
from app.domain.value_objects import LoginOtpPending, PasswordSetupPending, SetupOtpPending
from app.infrastructure.security import BcryptHasher, JwtTokenIssuer

CODE = "12345678"

ACTIVE = UserResult(
    id="u1",
    username="ops",
    email="ops@example.com",
    role="admin",
    password_setup_required=False,
)
FIRST_LOGIN = UserResult(
    id="u2",
    username="dev",
    email=None,
    role="developer",
    password_setup_required=True,
)


@pytest.fixture
def tokens() -> JwtTokenIssuer:
    return JwtTokenIssuer(
        Settings(database_url="sqlite+aiosqlite://", secret_key="flow-test-secret-0123456789abcdef")
    )


@pytest.fixture
def events() -> list[str]:
    return []


@pytest.fixture
def user_repo() -> AsyncMock:
    repo = AsyncMock()
    repo.get_by_email.return_value = None
    return repo


@pytest.fixture
def otp() -> MagicMock:
    service = MagicMock(spec=OtpService)
    service.policy = OtpPolicy()
    service.issue.return_value = CODE
    service.verify.return_value = OtpCheck(OtpVerificationStatus.VALID)
    service.resend_cooldown.side_effect = lambda n: (30, 60, 120, 300)[min(n, 3)]
    return service


@pytest.fixture
def devices() -> MagicMock:
    service = MagicMock(spec=TrustedDeviceService)
    service.is_trusted.return_value = False
    service.trust.return_value = "device-token"
    return service


@pytest.fixture
def notifier(events: list[str]) -> AsyncMock:
    mock = AsyncMock()
    mock.send.side_effect = lambda *args: events.append("send")
    return mock


@pytest.fixture
def commit(events: list[str]) -> AsyncMock:
    return AsyncMock(side_effect=lambda: events.append("commit"))


@pytest.fixture
def flow_for(user_repo, otp, devices, tokens, notifier, commit):
    def _build(**kwargs) -> AuthFlowService:
        return AuthFlowService(
            user_repo,
            otp,
            devices,
            tokens,
            notifier,
            BcryptHasher(rounds=4),
            commit=commit,
            **kwargs,
        )

    return _build


@pytest.fixture
def flow(flow_for) -> AuthFlowService:
    return flow_for()


class TestLogin:
    async def test_invalid_credentials(self, flow, user_repo) -> None:
        user_repo.authenticate.return_value = None
        with pytest.raises(InvalidCredentialsException):
            await flow.login("ops", "nope")

    async def test_first_login_requires_setup_without_code(self, flow, user_repo, otp) -> None:
        user_repo.authenticate.return_value = FIRST_LOGIN
        outcome = await flow.login("dev", "dev2026!Temp")
        assert outcome == SetupRequired(username="dev")
        otp.issue.assert_not_called()

    async def test_trusted_device_gets_session(self, flow, user_repo, devices, notifier) -> None:
        user_repo.authenticate.return_value = ACTIVE
        devices.is_trusted.return_value = True
        outcome = await flow.login("ops", "pw", device_token="device-token")
        assert isinstance(outcome, SessionIssued)
        assert outcome.user.user_id == "u1"
        assert outcome.device_trusted is False
        devices.is_trusted.assert_awaited_once_with("u1", "device-token")
        notifier.send.assert_not_called()

    async def test_code_committed_before_email_sent(
        self, flow, user_repo, otp, notifier, tokens, events
    ) -> None:
        user_repo.authenticate.return_value = ACTIVE
        outcome = await flow.login("ops", "pw")
        assert isinstance(outcome, OtpChallenge)
        assert outcome.masked_email == "o***s@example.com"
        assert outcome.expires_in == 300
        assert events == ["commit", "send"]
        otp.assert_not_blocked.assert_called_once_with(ACTIVE)
        otp.issue.assert_awaited_once_with("u1", OtpPurpose.LOGIN)
        notifier.send.assert_awaited_once_with("ops@example.com", CODE, OtpPurpose.LOGIN)
        pending = tokens.decode_pending(outcome.pending_token, PendingStep.LOGIN_OTP)
        assert pending == LoginOtpPending(user_id="u1")

    async def test_captcha_required_when_enabled(self, flow_for, user_repo) -> None:
        captcha = MagicMock(enabled=True)
        captcha.verify = AsyncMock(return_value=True)
        flow = flow_for(captcha=captcha)
        with pytest.raises(CaptchaRequiredException):
            await flow.login("ops", "pw")
        user_repo.authenticate.assert_not_called()

    async def test_captcha_rejection_stops_login(self, flow_for, user_repo) -> None:
        captcha = MagicMock(enabled=True)
        captcha.verify = AsyncMock(return_value=False)
        flow = flow_for(captcha=captcha)
        with pytest.raises(CaptchaFailedException):
            await flow.login("ops", "pw", captcha_token="t", remote_ip="1.2.3.4")
        captcha.verify.assert_awaited_once_with("t", "1.2.3.4")
        user_repo.authenticate.assert_not_called()

    async def test_delivery_failure_reports_pending_token(
        self, flow, user_repo, notifier
    ) -> None:
        user_repo.authenticate.return_value = ACTIVE
        notifier.send.side_effect = NotificationDeliveryError("down")
        with pytest.raises(NotificationFailedException) as exc_info:
            await flow.login("ops", "pw")
        assert exc_info.value.status_code == 502
        assert exc_info.value.details["otpPendingToken"]


class TestVerifyLoginOtp:
    @pytest.fixture
    def pending(self, tokens) -> str:
        return tokens.issue_pending(LoginOtpPending(user_id="u1"))

    async def test_malformed_code_checked_first(self, flow) -> None:
        with pytest.raises(MalformedCodeException):
            await flow.verify_login_otp("garbage", "12ab")

    async def test_wrong_purpose_token(self, flow, tokens) -> None:
        token = tokens.issue_pending(PasswordSetupPending(user_id="u1"))
        with pytest.raises(TokenExpiredOrInvalidException):
            await flow.verify_login_otp(token, CODE)

    async def test_incorrect_code_commits_counter(self, flow, user_repo, otp, commit, pending) -> None:
        user_repo.get_by_id.return_value = ACTIVE
        otp.verify.return_value = OtpCheck(OtpVerificationStatus.INVALID, attempts_remaining=2)
        with pytest.raises(CodeIncorrectException) as exc_info:
            await flow.verify_login_otp(pending, CODE)
        assert exc_info.value.details["attemptsRemaining"] == 2
        commit.assert_awaited_once()

    async def test_third_wrong_code_blocks(self, flow, user_repo, otp, commit, pending) -> None:
        user_repo.get_by_id.return_value = ACTIVE
        otp.verify.return_value = OtpCheck(OtpVerificationStatus.JUST_BLOCKED)
        with pytest.raises(OtpBlockedException) as exc_info:
            await flow.verify_login_otp(pending, CODE)
        assert exc_info.value.details["retryAfterMinutes"] == 15
        commit.assert_awaited_once()

    async def test_expired_code(self, flow, user_repo, otp, commit, pending) -> None:
        user_repo.get_by_id.return_value = ACTIVE
        otp.verify.return_value = OtpCheck(OtpVerificationStatus.EXPIRED)
        with pytest.raises(CodeExpiredException):
            await flow.verify_login_otp(pending, CODE)
        commit.assert_not_awaited()

    async def test_valid_code_with_trust(self, flow, user_repo, devices, tokens, pending) -> None:
        user_repo.get_by_id.return_value = ACTIVE
        issued = await flow.verify_login_otp(
            pending, CODE, trust_device=True, user_agent="UA", ip_address="10.0.0.1"
        )
        assert issued.device_token == "device-token"
        assert issued.device_trusted is True
        devices.trust.assert_awaited_once_with("u1", user_agent="UA", ip_address="10.0.0.1")
        assert tokens.verify_session(issued.token).username == "ops"

    async def test_deleted_user(self, flow, user_repo, pending) -> None:
        user_repo.get_by_id.return_value = None
        with pytest.raises(TokenExpiredOrInvalidException):
            await flow.verify_login_otp(pending, CODE)


class TestSetup:
    async def test_invalid_email_checked_before_lookup(self, flow, user_repo) -> None:
        with pytest.raises(InvalidEmailException):
            await flow.initiate_setup("dev", "nope")
        user_repo.get_by_username.assert_not_called()

    async def test_setup_not_available_for_active_user(self, flow, user_repo) -> None:
        user_repo.get_by_username.return_value = ACTIVE
        with pytest.raises(SetupNotAvailableException):
            await flow.initiate_setup("ops", "ops@example.com")

    async def test_email_owned_by_other_user(self, flow, user_repo) -> None:
        user_repo.get_by_username.return_value = FIRST_LOGIN
        user_repo.get_by_email.return_value = ACTIVE
        with pytest.raises(EmailInUseException):
            await flow.initiate_setup("dev", "ops@example.com")

    async def test_email_staged_in_token_not_written(self, flow, user_repo, otp, notifier, tokens) -> None:
        user_repo.get_by_username.return_value = FIRST_LOGIN
        started = await flow.initiate_setup("dev", " Dev@Example.com ")
        user_repo.set_email.assert_not_called()
        otp.issue.assert_awaited_once_with("u2", OtpPurpose.SETUP)
        notifier.send.assert_awaited_once_with("dev@example.com", CODE, OtpPurpose.SETUP)
        pending = tokens.decode_pending(started.setup_token, PendingStep.SETUP_OTP)
        assert pending == SetupOtpPending(user_id="u2", email="dev@example.com")

    async def test_write_through_stores_email_at_initiate(self, flow_for, user_repo) -> None:
        user_repo.get_by_username.return_value = FIRST_LOGIN
        await flow_for(setup_email_write_through=True).initiate_setup("dev", "dev@example.com")
        user_repo.set_email.assert_awaited_once_with("u2", "dev@example.com")

    async def test_verify_writes_staged_email(self, flow, user_repo, tokens) -> None:
        user_repo.get_by_id.return_value = FIRST_LOGIN
        token = tokens.issue_pending(SetupOtpPending(user_id="u2", email="dev@example.com"))
        verified = await flow.verify_setup_otp(token, CODE)
        user_repo.set_email.assert_awaited_once_with("u2", "dev@example.com")
        pending = tokens.decode_pending(verified.password_setup_token, PendingStep.PASSWORD_SETUP)
        assert pending == PasswordSetupPending(user_id="u2", email_verified=True)

    async def test_verify_rechecks_email_uniqueness(self, flow, user_repo, tokens) -> None:
        user_repo.get_by_id.return_value = FIRST_LOGIN
        user_repo.get_by_email.return_value = ACTIVE
        token = tokens.issue_pending(SetupOtpPending(user_id="u2", email="ops@example.com"))
        with pytest.raises(EmailInUseException):
            await flow.verify_setup_otp(token, CODE)
        user_repo.set_email.assert_not_called()

    async def test_weak_password_rejected_before_token(self, flow, user_repo) -> None:
        with pytest.raises(WeakPasswordException) as exc_info:
            await flow.complete_setup("garbage", "Abc12345", "Abc12345")
        assert len(exc_info.value.details["details"]) == 1
        user_repo.complete_password_setup.assert_not_called()

    async def test_complete_setup_stores_new_hash(self, flow, user_repo, tokens) -> None:
        user_repo.get_by_id.return_value = FIRST_LOGIN
        token = tokens.issue_pending(PasswordSetupPending(user_id="u2"))
        completed = await flow.complete_setup(token, "Abc123$5", "Abc123$5")
        assert completed.user_id == "u2"
        user_id, stored_hash = user_repo.complete_password_setup.await_args.args
        assert user_id == "u2"
        assert BcryptHasher(rounds=4).verify("Abc123$5", stored_hash)

    async def test_complete_setup_refused_once_done(self, flow, user_repo, tokens) -> None:
        user_repo.get_by_id.return_value = ACTIVE
        token = tokens.issue_pending(PasswordSetupPending(user_id="u1"))
        with pytest.raises(TokenExpiredOrInvalidException):
            await flow.complete_setup(token, "Abc123$5", "Abc123$5")


class TestResendAndLogout:
    async def test_resend_setup_code_increments_count(self, flow, user_repo, otp, notifier, tokens) -> None:
        user_repo.get_by_id.return_value = FIRST_LOGIN
        token = tokens.issue_pending(
            SetupOtpPending(user_id="u2", email="dev@example.com", resend_count=1)
        )
        resent = await flow.resend_otp(token)
        assert resent.next_resend_in == 120
        assert resent.masked_email == "d***v@example.com"
        otp.issue.assert_awaited_once_with("u2", OtpPurpose.SETUP)
        notifier.send.assert_awaited_once_with("dev@example.com", CODE, OtpPurpose.SETUP)
        replacement = tokens.decode_pending(resent.pending_token, PendingStep.SETUP_OTP)
        assert replacement.resend_count == 2

    async def test_resend_login_code(self, flow, user_repo, otp, tokens) -> None:
        user_repo.get_by_id.return_value = ACTIVE
        resent = await flow.resend_otp(tokens.issue_pending(LoginOtpPending(user_id="u1")))
        assert resent.next_resend_in == 60
        otp.issue.assert_awaited_once_with("u1", OtpPurpose.LOGIN)

    async def test_resend_failure_uses_pending_token_field(
        self, flow, user_repo, notifier, tokens
    ) -> None:
        user_repo.get_by_id.return_value = ACTIVE
        notifier.send.side_effect = NotificationDeliveryError("down")
        with pytest.raises(NotificationFailedException) as exc_info:
            await flow.resend_otp(tokens.issue_pending(LoginOtpPending(user_id="u1")))
        assert "otpPendingToken" in exc_info.value.details

    async def test_logout_all(self, flow, devices) -> None:
        devices.revoke_all.return_value = 3
        revoked = await flow.logout_all("u1")
        assert revoked.revoked == 3
        devices.revoke_all.assert_awaited_once_with("u1")
