"""Shared utilities: datetime and generators."""

from app.shared.utils.datetime import ensure_utc, minutes_until, utc_now
from app.shared.utils.generators import (
    generate_cuid,
    generate_numeric_code,
    generate_opaque_token,
)

__all__ = [
    "ensure_utc",
    "generate_cuid",
    "generate_numeric_code",
    "generate_opaque_token",
    "minutes_until",
    "utc_now",
]
