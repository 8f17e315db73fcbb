"""ID and secret value generators (CUID, one-time codes, opaque tokens)."""

import secrets

from cuid2 import cuid_wrapper

cuid_generator = cuid_wrapper()

# Inclusive bounds of the 8-digit one-time code range.
OTP_CODE_MIN = 10_000_000
OTP_CODE_MAX = 99_999_999


def generate_cuid() -> str:
    """Generate a collision-resistant unique identifier (CUID2).

    Returns:
        A new CUID string.
    """
    result = cuid_generator()
    if not isinstance(result, str):
        raise TypeError(
            f"Expected str from cuid_generator, got {type(result).__name__}"
        )
    return result


def generate_numeric_code() -> str:
    """Return an 8-digit code drawn uniformly from [10_000_000, 99_999_999] with a CSPRNG."""
    return str(OTP_CODE_MIN + secrets.randbelow(OTP_CODE_MAX - OTP_CODE_MIN + 1))


def generate_opaque_token(nbytes: int = 32) -> str:
    """Return a URL-safe random token with nbytes of entropy (device cookies)."""
    return secrets.token_urlsafe(nbytes)
