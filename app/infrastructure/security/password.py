"""Password and one-time code hashing (bcrypt with SHA-256 pre-hash).

Bcrypt truncates inputs at 72 bytes; pre-hashing with SHA-256 yields a fixed-length
input so long passwords are not silently truncated. The same slow hash is used for
OTP codes: an 8-digit code space is small enough that a fast hash would be
brute-forced offline from a leaked table.

High-entropy opaque tokens (trusted-device cookies) use hash_token (plain SHA-256),
which is enough for 256-bit random values and allows lookup by hash.
"""

import base64
import hashlib

import bcrypt

DEFAULT_ROUNDS = 12


def _prehash(password: str) -> bytes:
    """SHA-256 pre-hash to avoid bcrypt's 72-byte truncation."""
    return base64.b64encode(hashlib.sha256(password.encode("utf-8")).digest())


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Return True if plain_password matches hashed_password."""
    try:
        result = bcrypt.checkpw(
            _prehash(plain_password),
            hashed_password.encode("utf-8"),
        )
        return bool(result)
    except (ValueError, TypeError):
        return False


def get_password_hash(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Return bcrypt hash of password (SHA-256 pre-hashed before bcrypt)."""
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(_prehash(password), salt)
    return hashed.decode("utf-8")


def hash_token(token: str) -> str:
    """Hex SHA-256 of a high-entropy token, for storage and lookup."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class BcryptHasher:
    """Slow hasher for passwords and one-time codes with a configured cost factor.

    Methods are blocking; callers run them in a worker thread.
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        self.rounds = rounds

    def hash(self, secret: str) -> str:
        return get_password_hash(secret, self.rounds)

    def verify(self, secret: str, hashed: str) -> bool:
        return verify_password(secret, hashed)
