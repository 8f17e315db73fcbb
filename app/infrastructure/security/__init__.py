"""Security: JWT session/pending tokens and password, code and token hashing."""

from app.infrastructure.security.jwt import (
    JwtTokenIssuer,
    create_access_token,
    verify_token,
)
from app.infrastructure.security.password import (
    BcryptHasher,
    get_password_hash,
    hash_token,
    verify_password,
)

__all__ = [
    "BcryptHasher",
    "JwtTokenIssuer",
    "create_access_token",
    "get_password_hash",
    "hash_token",
    "verify_password",
    "verify_token",
]
