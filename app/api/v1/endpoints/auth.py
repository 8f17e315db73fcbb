"""Auth API: login, first-login setup, OTP verification, resend, logout-all and me.

Uses only injected dependencies (get_auth_flow_service, get_current_session).
Domain failures propagate as StorefrontException and are rendered by the
registered exception handlers. The trusted-device token only travels in an
httpOnly cookie scoped to the auth routes.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response

from app.api.v1.dependencies import get_auth_flow_service, get_current_session
from app.application.dtos.auth import (
    OtpChallenge,
    SessionClaims,
    SessionIssued,
    SetupRequired,
)
from app.application.services.auth_flow_service import AuthFlowService
from app.core.config import get_settings
from app.core.limiter import limit_auth, limit_otp
from app.schemas.auth import (
    CompleteSetupRequest,
    CompleteSetupResponse,
    InitiateSetupRequest,
    InitiateSetupResponse,
    LoginRequest,
    LoginResponse,
    LogoutAllResponse,
    MeResponse,
    ResendOtpRequest,
    ResendOtpResponse,
    UserSummary,
    VerifyLoginOtpRequest,
    VerifyLoginOtpResponse,
    VerifySetupOtpRequest,
    VerifySetupOtpResponse,
)

router = APIRouter()

AuthFlow = Annotated[AuthFlowService, Depends(get_auth_flow_service)]


def _user_summary(claims: SessionClaims) -> UserSummary:
    return UserSummary(
        id=claims.user_id,
        username=claims.username,
        email=claims.email,
        role=claims.role,
    )


def _client_ip(request: Request) -> str | None:
    return request.client.host if request.client else None


def _set_device_cookie(response: Response, device_token: str, max_age: int) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.device_cookie_name,
        value=device_token,
        max_age=max_age,
        path=settings.device_cookie_path,
        httponly=True,
        secure=settings.device_cookie_secure,
        samesite=settings.device_cookie_samesite,
    )


def _clear_device_cookie(response: Response) -> None:
    settings = get_settings()
    response.delete_cookie(
        key=settings.device_cookie_name,
        path=settings.device_cookie_path,
        httponly=True,
        secure=settings.device_cookie_secure,
        samesite=settings.device_cookie_samesite,
    )


@router.post("/login", response_model=LoginResponse, response_model_exclude_none=True)
@limit_auth
async def login(request: Request, body: LoginRequest, flow: AuthFlow):
    """Check username and password.

    Returns a session token (trusted device), a setup-required signal
    (first login), or an OTP challenge (code emailed).
    """
    settings = get_settings()
    outcome = await flow.login(
        body.username,
        body.password,
        captcha_token=body.turnstile_token,
        remote_ip=_client_ip(request),
        device_token=request.cookies.get(settings.device_cookie_name),
    )
    if isinstance(outcome, SetupRequired):
        return LoginResponse(
            setup_required=True,
            username=outcome.username,
            message="Primer inicio de sesión - ingresa tu email para validación",
        )
    if isinstance(outcome, OtpChallenge):
        return LoginResponse(
            otp_required=True,
            otp_pending_token=outcome.pending_token,
            email=outcome.masked_email,
            expires_in=outcome.expires_in,
            message="Código de verificación enviado a tu email",
        )
    return LoginResponse(
        success=True,
        token=outcome.token,
        user=_user_summary(outcome.user),
    )


@router.post("/initiate-setup", response_model=InitiateSetupResponse)
@limit_auth
async def initiate_setup(request: Request, body: InitiateSetupRequest, flow: AuthFlow):
    """Register the email of a first-login user and send it a setup code."""
    started = await flow.initiate_setup(body.username, body.email)
    return InitiateSetupResponse(
        setup_token=started.setup_token,
        email=started.masked_email,
        message="Código de verificación enviado a tu email",
        expires_in=started.expires_in,
    )


@router.post("/verify-setup-otp", response_model=VerifySetupOtpResponse)
@limit_otp
async def verify_setup_otp(request: Request, body: VerifySetupOtpRequest, flow: AuthFlow):
    """Verify the setup code; returns the token that allows choosing a password."""
    verified = await flow.verify_setup_otp(body.setup_token, body.otp)
    return VerifySetupOtpResponse(
        password_setup_token=verified.password_setup_token,
        message="Email verificado. Ahora configura tu contraseña.",
    )


@router.post("/complete-setup", response_model=CompleteSetupResponse)
@limit_otp
async def complete_setup(request: Request, body: CompleteSetupRequest, flow: AuthFlow):
    """Set the definitive password. The user must then log in again."""
    await flow.complete_setup(
        body.password_setup_token, body.password, body.confirm_password
    )
    return CompleteSetupResponse(
        message="Contraseña configurada exitosamente. Por favor inicia sesión.",
    )


@router.post("/verify-login-otp", response_model=VerifyLoginOtpResponse)
@limit_otp
async def verify_login_otp(
    request: Request,
    response: Response,
    body: VerifyLoginOtpRequest,
    flow: AuthFlow,
):
    """Verify the login code and issue a session token.

    With trustDevice, also sets the long-lived device cookie so later logins
    from this browser skip the code.
    """
    issued: SessionIssued = await flow.verify_login_otp(
        body.otp_pending_token,
        body.otp,
        trust_device=body.trust_device,
        user_agent=request.headers.get("user-agent"),
        ip_address=_client_ip(request),
    )
    if issued.device_token is not None:
        _set_device_cookie(
            response,
            issued.device_token,
            get_settings().trusted_device_days * 24 * 60 * 60,
        )
    return VerifyLoginOtpResponse(
        token=issued.token,
        user=_user_summary(issued.user),
        device_trusted=issued.device_trusted,
        message="Inicio de sesión exitoso",
    )


@router.post("/resend-otp", response_model=ResendOtpResponse)
@limit_otp
async def resend_otp(request: Request, body: ResendOtpRequest, flow: AuthFlow):
    """Send a fresh code for a pending login or setup step."""
    resent = await flow.resend_otp(body.otp_pending_token)
    return ResendOtpResponse(
        otp_pending_token=resent.pending_token,
        email=resent.masked_email,
        message="Nuevo código enviado a tu email",
        next_resend_in=resent.next_resend_in,
    )


@router.post("/logout-all", response_model=LogoutAllResponse)
@limit_auth
async def logout_all(
    request: Request,
    response: Response,
    session: Annotated[SessionClaims, Depends(get_current_session)],
    flow: AuthFlow,
):
    """Revoke every trusted device of the authenticated user and clear this device's cookie.

    Requires Authorization: Bearer <token>.
    """
    revoked = await flow.logout_all(session.user_id)
    _clear_device_cookie(response)
    return LogoutAllResponse(
        message="Sesión cerrada en todos los dispositivos",
        revoked_devices=revoked.revoked,
    )


@router.get("/me", response_model=MeResponse)
async def get_me(session: Annotated[SessionClaims, Depends(get_current_session)]):
    """Return the identity carried by the session token.

    Requires Authorization: Bearer <token>.
    """
    return MeResponse(user=_user_summary(session))
