"""Shared telemetry: logging setup and correlation-id context."""

from app.shared.telemetry.logging import (
    get_logger,
    set_correlation_id,
    setup_logging,
)

__all__ = [
    "get_logger",
    "set_correlation_id",
    "setup_logging",
]
