"""Password strength rules for the first-login password setup.

Each rule yields one user-facing violation message (Spanish); an empty list
means the password is acceptable.
"""

import re

MIN_PASSWORD_LENGTH = 8

_DIGIT_RE = re.compile(r"[0-9]")
_UPPER_RE = re.compile(r"[A-Z]")
_LOWER_RE = re.compile(r"[a-z]")
_SYMBOL_RE = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]")


def validate_password_strength(password: str) -> list[str]:
    """Return the itemized violations for password (empty when it passes every rule)."""
    violations: list[str] = []
    if len(password) < MIN_PASSWORD_LENGTH:
        violations.append(f"Debe tener al menos {MIN_PASSWORD_LENGTH} caracteres")
    if not _DIGIT_RE.search(password):
        violations.append("Debe incluir al menos 1 número")
    if not _UPPER_RE.search(password):
        violations.append("Debe incluir al menos 1 mayúscula")
    if not _LOWER_RE.search(password):
        violations.append("Debe incluir al menos 1 minúscula")
    if not _SYMBOL_RE.search(password):
        violations.append("Debe incluir al menos 1 caracter especial (!@#$%^&*...)")
    return violations
