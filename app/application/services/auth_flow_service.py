"""Auth flow: login, first-login setup, OTP verification, device trust, resend, logout-all.

State travels between requests only in signed pending-step tokens; each
handler accepts exactly the token purpose of its step. Every operation
returns one result DTO or raises a StorefrontException subclass.

Codes are committed before they are emailed, and failed OTP attempts are
committed before the error propagates, so the request-scoped rollback never
undoes either.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime

from app.application.dtos.auth import (
    DevicesRevoked,
    EmailVerified,
    LoginOutcome,
    OtpChallenge,
    OtpResent,
    SessionClaims,
    SessionIssued,
    SetupCompleted,
    SetupRequired,
    SetupStarted,
)
from app.application.dtos.user import UserResult
from app.application.interfaces.repositories import IUserRepository
from app.application.interfaces.services import (
    ICaptchaVerifier,
    INotificationService,
    ISecretHasher,
    ITokenIssuer,
    NotificationDeliveryError,
)
from app.application.services.otp_service import OtpService
from app.application.services.password_policy import validate_password_strength
from app.application.services.trusted_device_service import TrustedDeviceService
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
    PasswordMismatchException,
    SetupNotAvailableException,
    TokenExpiredOrInvalidException,
    WeakPasswordException,
)
from app.domain.value_objects import (
    EmailAddress,
    LoginOtpPending,
    OtpCode,
    PasswordSetupPending,
    SetupOtpPending,
    mask_email,
)
from app.shared.telemetry.logging import get_logger
from app.shared.utils.datetime import utc_now

logger = get_logger(__name__)

OTP_PENDING_TOKEN_FIELD = "otpPendingToken"
SETUP_TOKEN_FIELD = "setupToken"


async def _no_commit() -> None:
    return None


class AuthFlowService:
    """State machine of the back-office login and first-login setup."""

    def __init__(
        self,
        user_repo: IUserRepository,
        otp_service: OtpService,
        device_service: TrustedDeviceService,
        token_issuer: ITokenIssuer,
        notifier: INotificationService,
        hasher: ISecretHasher,
        *,
        captcha: ICaptchaVerifier | None = None,
        commit: Callable[[], Awaitable[None]] = _no_commit,
        setup_email_write_through: bool = False,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._user_repo = user_repo
        self._otp = otp_service
        self._devices = device_service
        self._tokens = token_issuer
        self._notifier = notifier
        self._hasher = hasher
        self._captcha = captcha
        self._commit = commit
        self._write_through = setup_email_write_through
        self._clock = clock

    async def login(
        self,
        username: str,
        password: str | None,
        *,
        captcha_token: str | None = None,
        remote_ip: str | None = None,
        device_token: str | None = None,
    ) -> LoginOutcome:
        """Check credentials, then branch: setup required, trusted device, or login code."""
        await self._verify_captcha(captcha_token, remote_ip)
        user = await self._user_repo.authenticate(username, password)
        if user is None:
            logger.info("Login rejected: invalid credentials")
            raise InvalidCredentialsException()
        if user.password_setup_required:
            logger.info("Login for user %s requires first-login setup", user.id)
            return SetupRequired(username=user.username)
        if await self._devices.is_trusted(user.id, device_token):
            logger.info("Login for user %s from trusted device", user.id)
            return self._session_for(user)

        self._otp.assert_not_blocked(user)
        code = await self._otp.issue(user.id, OtpPurpose.LOGIN)
        pending_token = self._tokens.issue_pending(LoginOtpPending(user_id=user.id))
        await self._deliver(
            user.email, code, OtpPurpose.LOGIN, pending_token, OTP_PENDING_TOKEN_FIELD
        )
        return OtpChallenge(
            pending_token=pending_token,
            masked_email=mask_email(user.email),
            expires_in=self._tokens.pending_ttl_seconds(PendingStep.LOGIN_OTP),
        )

    async def verify_login_otp(
        self,
        pending_token: str,
        code: str,
        *,
        trust_device: bool = False,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> SessionIssued:
        """Second factor of the login; optionally trust this device for 30 days."""
        self._require_code_format(code)
        pending = self._tokens.decode_pending(pending_token, PendingStep.LOGIN_OTP)
        user = await self._load_user(pending.user_id)
        if user.password_setup_required:
            raise TokenExpiredOrInvalidException()
        self._otp.assert_not_blocked(user)
        await self._check_code(user.id, code, OtpPurpose.LOGIN)

        device_token = None
        if trust_device:
            device_token = await self._devices.trust(
                user.id, user_agent=user_agent, ip_address=ip_address
            )
        logger.info("Login completed for user %s", user.id)
        return self._session_for(user, device_token)

    async def initiate_setup(self, username: str, email: str) -> SetupStarted:
        """Send a setup code to the email the user wants to register."""
        try:
            address = EmailAddress(email).value
        except ValueError:
            raise InvalidEmailException() from None
        user = await self._user_repo.get_by_username(username)
        if user is None or not user.password_setup_required:
            raise SetupNotAvailableException()
        await self._ensure_email_free(address, user.id)
        self._otp.assert_not_blocked(user)

        if self._write_through:
            await self._user_repo.set_email(user.id, address)
        code = await self._otp.issue(user.id, OtpPurpose.SETUP)
        setup_token = self._tokens.issue_pending(
            SetupOtpPending(user_id=user.id, email=address)
        )
        await self._deliver(
            address, code, OtpPurpose.SETUP, setup_token, SETUP_TOKEN_FIELD
        )
        return SetupStarted(
            setup_token=setup_token,
            masked_email=mask_email(address),
            expires_in=self._tokens.pending_ttl_seconds(PendingStep.SETUP_OTP),
        )

    async def verify_setup_otp(self, setup_token: str, code: str) -> EmailVerified:
        """Prove ownership of the email; store it and allow choosing a password."""
        self._require_code_format(code)
        pending = self._tokens.decode_pending(setup_token, PendingStep.SETUP_OTP)
        if not isinstance(pending, SetupOtpPending):
            raise TokenExpiredOrInvalidException()
        user = await self._load_user(pending.user_id)
        if not user.password_setup_required:
            raise SetupNotAvailableException()
        self._otp.assert_not_blocked(user)
        await self._check_code(user.id, code, OtpPurpose.SETUP)

        if not self._write_through:
            await self._ensure_email_free(pending.email, user.id)
            await self._user_repo.set_email(user.id, pending.email)
        logger.info("Email verified for user %s", user.id)
        return EmailVerified(
            password_setup_token=self._tokens.issue_pending(
                PasswordSetupPending(user_id=user.id, email_verified=True)
            )
        )

    async def complete_setup(
        self, password_setup_token: str, password: str, confirm_password: str
    ) -> SetupCompleted:
        """Replace the temporary password. Never issues a session token."""
        if password != confirm_password:
            raise PasswordMismatchException()
        violations = validate_password_strength(password)
        if violations:
            raise WeakPasswordException(violations)
        pending = self._tokens.decode_pending(
            password_setup_token,
            PendingStep.PASSWORD_SETUP,
            message="Token expirado. Reinicia el proceso.",
        )
        if not isinstance(pending, PasswordSetupPending) or not pending.email_verified:
            raise TokenExpiredOrInvalidException()
        user = await self._load_user(pending.user_id)
        if not user.password_setup_required:
            raise TokenExpiredOrInvalidException()

        password_hash = await asyncio.to_thread(self._hasher.hash, password)
        await self._user_repo.complete_password_setup(user.id, password_hash)
        logger.info("Password setup completed for user %s", user.id)
        return SetupCompleted(user_id=user.id)

    async def resend_otp(self, pending_token: str) -> OtpResent:
        """Send a fresh code for a login-otp or setup-otp token and replace the token."""
        pending = self._tokens.decode_pending(
            pending_token, PendingStep.LOGIN_OTP, PendingStep.SETUP_OTP
        )
        user = await self._load_user(pending.user_id)
        self._otp.assert_not_blocked(user)
        replacement: SetupOtpPending | LoginOtpPending
        if isinstance(pending, SetupOtpPending):
            if not user.password_setup_required:
                raise SetupNotAvailableException()
            address: str | None = pending.email
            purpose = OtpPurpose.SETUP
            replacement = SetupOtpPending(
                user_id=user.id,
                email=pending.email,
                resend_count=pending.resend_count + 1,
            )
        elif isinstance(pending, LoginOtpPending):
            if user.password_setup_required:
                raise TokenExpiredOrInvalidException()
            address = user.email
            purpose = OtpPurpose.LOGIN
            replacement = LoginOtpPending(
                user_id=user.id, resend_count=pending.resend_count + 1
            )
        else:
            raise TokenExpiredOrInvalidException()

        code = await self._otp.issue(user.id, purpose)
        new_token = self._tokens.issue_pending(replacement)
        await self._deliver(address, code, purpose, new_token, OTP_PENDING_TOKEN_FIELD)
        logger.info(
            "Resent %s code for user %s (resend #%d)",
            purpose.value,
            user.id,
            replacement.resend_count,
        )
        return OtpResent(
            pending_token=new_token,
            masked_email=mask_email(address),
            next_resend_in=self._otp.resend_cooldown(replacement.resend_count),
        )

    async def logout_all(self, user_id: str) -> DevicesRevoked:
        """Forget every trusted device of the authenticated user."""
        return DevicesRevoked(revoked=await self._devices.revoke_all(user_id))

    async def _verify_captcha(self, token: str | None, remote_ip: str | None) -> None:
        if self._captcha is None or not self._captcha.enabled:
            return
        if not token:
            raise CaptchaRequiredException()
        if not await self._captcha.verify(token, remote_ip):
            logger.info("Login rejected: captcha verification failed")
            raise CaptchaFailedException()

    async def _load_user(self, user_id: str) -> UserResult:
        user = await self._user_repo.get_by_id(user_id)
        if user is None:
            raise TokenExpiredOrInvalidException()
        return user

    async def _ensure_email_free(self, address: str, user_id: str) -> None:
        owner = await self._user_repo.get_by_email(address)
        if owner is not None and owner.id != user_id:
            raise EmailInUseException()

    @staticmethod
    def _require_code_format(code: str) -> None:
        try:
            OtpCode(code)
        except ValueError:
            raise MalformedCodeException() from None

    async def _check_code(self, user_id: str, code: str, purpose: OtpPurpose) -> None:
        check = await self._otp.verify(user_id, code, purpose)
        if check.status is OtpVerificationStatus.VALID:
            return
        if check.status is OtpVerificationStatus.EXPIRED:
            raise CodeExpiredException()
        # Persist the counter/block before the error rolls the request back.
        await self._commit()
        if check.status is OtpVerificationStatus.JUST_BLOCKED:
            raise OtpBlockedException(self._otp.policy.block_minutes)
        raise CodeIncorrectException(check.attempts_remaining)

    async def _deliver(
        self,
        address: str | None,
        code: str,
        purpose: OtpPurpose,
        pending_token: str,
        token_field: str,
    ) -> None:
        await self._commit()
        if not address:
            logger.error("No email on record for %s code delivery", purpose.value)
            raise NotificationFailedException(pending_token, token_field)
        try:
            await self._notifier.send(address, code, purpose)
        except NotificationDeliveryError as e:
            logger.warning(
                "Could not deliver %s code to %s: %s", purpose.value, mask_email(address), e
            )
            raise NotificationFailedException(pending_token, token_field) from e

    def _session_for(
        self, user: UserResult, device_token: str | None = None
    ) -> SessionIssued:
        claims = SessionClaims.from_user(user)
        return SessionIssued(
            token=self._tokens.issue_session(claims),
            user=claims,
            device_token=device_token,
        )
