"""Subject and body of the one-time code emails, per purpose."""

from app.domain.enums import OtpPurpose

_SUBJECTS = {
    OtpPurpose.SETUP: "Verifica tu email",
    OtpPurpose.LOGIN: "Tu código de acceso",
}

_INTROS = {
    OtpPurpose.SETUP: "Usa este código para verificar tu email y configurar tu contraseña:",
    OtpPurpose.LOGIN: "Usa este código para completar tu inicio de sesión:",
}


def render_subject(purpose: OtpPurpose) -> str:
    return _SUBJECTS[purpose]


def render_text(code: str, purpose: OtpPurpose, expire_minutes: int) -> str:
    """Plain-text body. The code expires after expire_minutes."""
    return (
        f"{_INTROS[purpose]}\n\n"
        f"    {code}\n\n"
        f"El código expira en {expire_minutes} minutos. "
        "Si no solicitaste este código, ignora este mensaje."
    )


def render_html(code: str, purpose: OtpPurpose, expire_minutes: int) -> str:
    return (
        f"<p>{_INTROS[purpose]}</p>"
        f'<p style="font-size:28px;font-weight:bold;letter-spacing:4px">{code}</p>'
        f"<p>El código expira en {expire_minutes} minutos. "
        "Si no solicitaste este código, ignora este mensaje.</p>"
    )
