"""Shared utilities: logging and cross-cutting helpers.

Used by domain, application, and infrastructure. No business logic.
"""

from app.shared.utils import (
    ensure_utc,
    generate_cuid,
    minutes_until,
    utc_now,
)

__all__ = [
    "ensure_utc",
    "generate_cuid",
    "minutes_until",
    "utc_now",
]
