"""DTOs for user use cases (no dependency on ORM)."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class UserResult:
    """User read-model (result of get_by_id, authenticate, etc.). No password hash."""

    id: str
    username: str
    email: str | None
    role: str
    password_setup_required: bool
    otp_attempts: int = 0
    otp_blocked_until: datetime | None = None
