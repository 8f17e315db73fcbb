"""Domain exceptions for the storefront auth core.

Defines domain-level exceptions that represent business rule violations in
the login / setup / OTP flow. These exceptions are independent of
infrastructure concerns. The presentation layer maps them to HTTP responses
in exception handlers using status_code, error_code, message and details.

Messages are user-facing and written in the operator's language (Spanish).
"""

from typing import Any


class StorefrontException(Exception):
    """Base exception for all application errors.

    Attributes:
        message: Human-readable error description (shown to the user).
        error_code: Machine-readable error code.
        details: Additional response fields (e.g. hint, details, flags).
        status_code: HTTP status the presentation layer should use.
    """

    status_code: int = 400

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra response fields.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON error body: error message, code, then extra fields."""
        return {"error": self.message, "code": self.error_code, **self.details}


class InvalidCredentialsException(StorefrontException):
    """Raised for unknown username, missing password or wrong password (same message for all)."""

    status_code = 401

    def __init__(self) -> None:
        super().__init__("Credenciales inválidas", "INVALID_CREDENTIALS")


class SetupNotAvailableException(StorefrontException):
    """Raised when first-login setup is requested for a user that does not need it."""

    def __init__(self) -> None:
        super().__init__(
            "Setup no disponible para este usuario", "SETUP_NOT_AVAILABLE"
        )


class EmailInUseException(StorefrontException):
    """Raised when the email chosen during setup belongs to another user."""

    def __init__(self) -> None:
        super().__init__("Este email ya está en uso", "EMAIL_IN_USE")


class InvalidEmailException(StorefrontException):
    """Raised when the email chosen during setup is not a valid address."""

    def __init__(self) -> None:
        super().__init__("Email inválido", "INVALID_EMAIL")


class TooManyAttemptsException(StorefrontException):
    """Raised while a user is blocked from OTP operations (otp_blocked_until in the future)."""

    status_code = 429

    def __init__(self, wait_minutes: int) -> None:
        """Initialize with the remaining wait, rounded up to whole minutes."""
        super().__init__(
            f"Demasiados intentos. Espera {wait_minutes} minutos.",
            "TOO_MANY_ATTEMPTS",
            {"retryAfterMinutes": wait_minutes},
        )


class OtpBlockedException(StorefrontException):
    """Raised by the wrong attempt that reaches the threshold and starts the block."""

    status_code = 429

    def __init__(self, block_minutes: int) -> None:
        super().__init__(
            f"Código incorrecto. Has sido bloqueado por {block_minutes} minutos.",
            "OTP_BLOCKED",
            {"retryAfterMinutes": block_minutes},
        )


class MalformedCodeException(StorefrontException):
    """Raised when the submitted OTP is not exactly 8 digits."""

    def __init__(self) -> None:
        super().__init__("Código debe ser de 8 dígitos", "MALFORMED_CODE")


class TokenExpiredOrInvalidException(StorefrontException):
    """Raised for any pending-step token that fails signature, expiry or purpose checks."""

    status_code = 401

    def __init__(self, message: str = "Token expirado o inválido") -> None:
        super().__init__(message, "TOKEN_EXPIRED_OR_INVALID")


class CodeIncorrectException(StorefrontException):
    """Raised for a wrong OTP below the lockout threshold."""

    status_code = 401

    def __init__(self, attempts_remaining: int) -> None:
        """Initialize with the number of attempts left before the block."""
        plural = "" if attempts_remaining == 1 else "s"
        super().__init__(
            f"Código incorrecto, te quedan {attempts_remaining} intento{plural}",
            "CODE_INCORRECT",
            {
                "attemptsRemaining": attempts_remaining,
                "hint": "Revisa tu bandeja de spam",
            },
        )


class CodeExpiredException(StorefrontException):
    """Raised when no unused, unexpired OTP exists for the user and purpose."""

    status_code = 401

    def __init__(self) -> None:
        super().__init__("Código expirado. Solicita uno nuevo.", "CODE_EXPIRED")


class PasswordMismatchException(StorefrontException):
    """Raised when password and confirmation differ."""

    def __init__(self) -> None:
        super().__init__("Las contraseñas no coinciden", "PASSWORD_MISMATCH")


class WeakPasswordException(StorefrontException):
    """Raised when the new password violates one or more strength rules."""

    def __init__(self, violations: list[str]) -> None:
        """Initialize with the itemized rule violations."""
        super().__init__(
            "Contraseña no cumple los requisitos",
            "WEAK_PASSWORD",
            {"details": list(violations)},
        )


class NotificationFailedException(StorefrontException):
    """Raised when the code was issued and stored but the email could not be delivered.

    details carries the pending token so the client can retry via resend.
    """

    status_code = 502

    def __init__(self, pending_token: str, token_field: str) -> None:
        """Initialize with the pending token and the response field name it travels in."""
        super().__init__(
            "No pudimos enviar el código a tu email. Intenta reenviarlo.",
            "NOTIFICATION_FAILED",
            {token_field: pending_token},
        )


class UnauthenticatedException(StorefrontException):
    """Raised when a protected operation lacks a valid session token."""

    status_code = 401

    def __init__(self, message: str = "Token inválido.") -> None:
        super().__init__(message, "UNAUTHENTICATED")


class PermissionDeniedException(StorefrontException):
    """Raised when the session role is not allowed to perform the operation."""

    status_code = 403

    def __init__(self, required_role: str) -> None:
        super().__init__(
            f"Acceso denegado: requiere rol {required_role}.",
            "PERMISSION_DENIED",
            {"requiredRole": required_role},
        )


class CaptchaRequiredException(StorefrontException):
    """Raised when captcha verification is enabled and the login carries no token."""

    def __init__(self) -> None:
        super().__init__(
            "Verificación de seguridad requerida",
            "CAPTCHA_REQUIRED",
            {"turnstileRequired": True},
        )


class CaptchaFailedException(StorefrontException):
    """Raised when the captcha provider rejects the token."""

    def __init__(self) -> None:
        super().__init__(
            "Verificación de seguridad fallida. Intenta de nuevo.",
            "CAPTCHA_FAILED",
            {"turnstileError": True},
        )


class DatabaseNotConfiguredException(StorefrontException):
    """Raised when an operation needs the database but no engine could be created."""

    status_code = 503

    def __init__(self) -> None:
        super().__init__(
            "Servicio no disponible temporalmente",
            "SERVICE_UNAVAILABLE",
        )
