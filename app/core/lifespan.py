"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic (SRP). Used by main.py;
no business logic here, only wiring of infrastructure (logging, shared
HTTP client, optional schema creation, DB engine dispose).
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI

from app.core.config import get_settings
from app.infrastructure.persistence import database
from app.shared.telemetry.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup: logging, shared HTTP client for email and captcha calls,
    create_all when DATABASE_CREATE_ALL is set. Shutdown: HTTP client close,
    SQL engine dispose.
    """
    settings = get_settings()
    setup_logging()

    # Shared HTTP client for outbound calls (connection reuse); per-call timeouts apply.
    app.state.http_client = httpx.AsyncClient(timeout=settings.email_timeout_seconds)

    if settings.database_create_all:
        await database.create_all()
        logger.info("Database tables created (DATABASE_CREATE_ALL)")

    logger.info("%s %s started", settings.app_name, settings.app_version)

    yield

    if getattr(app.state, "http_client", None) is not None:
        await app.state.http_client.aclose()
        app.state.http_client = None
        logger.info("HTTP client closed")

    await database.dispose_engine()
    logger.info("Database engine disposed")
