"""DTOs for stored one-time codes (no dependency on ORM)."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class OtpTokenResult:
    """Stored OTP read-model. hashed_code is the bcrypt hash, never the code."""

    id: str
    user_id: str
    purpose: str
    hashed_code: str
    expires_at: datetime
    used: bool
    created_at: datetime | None = None
