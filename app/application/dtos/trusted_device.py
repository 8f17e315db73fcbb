"""DTOs for trusted devices (no dependency on ORM)."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class TrustedDeviceResult:
    """Trusted device read-model. Only the token hash is stored."""

    id: str
    user_id: str
    expires_at: datetime
    user_agent: str | None = None
    ip_address: str | None = None
    created_at: datetime | None = None
    last_used_at: datetime | None = None
