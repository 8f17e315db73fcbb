"""Centralized exception handlers for the FastAPI app.

Register with register_exception_handlers(app). Maps domain and framework
exceptions to JSON bodies of the form {"error": message, "code": CODE, ...}.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import get_settings
from app.domain.exceptions import StorefrontException

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Error interno del servidor"


def _storefront_exception_handler(
    request: Request, exc: StorefrontException
) -> JSONResponse:
    """Return JSON from StorefrontException.to_dict() with the exception's status code."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def _validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return 422 with validation error details."""
    return JSONResponse(
        status_code=422,
        content={
            "error": "Datos de solicitud inválidos",
            "code": "VALIDATION_ERROR",
            "details": jsonable_encoder(exc.errors()),
        },
    )


def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Return JSON for Starlette HTTP exceptions (status + detail)."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail), "code": "HTTP_ERROR"},
        headers=getattr(exc, "headers", None),
    )


def _database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Return 503 without leaking statements or connection details."""
    logger.exception("Database error: %s", type(exc).__name__)
    return JSONResponse(
        status_code=503,
        content={
            "error": "Servicio no disponible temporalmente",
            "code": "SERVICE_UNAVAILABLE",
        },
    )


def _generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return 500; include detail only when debug is True."""
    logger.exception("Unhandled exception: %s", exc)
    settings = get_settings()
    content: dict[str, Any] = {"error": INTERNAL_ERROR_MESSAGE, "code": "INTERNAL_ERROR"}
    if settings.debug:
        content["detail"] = str(exc)
    return JSONResponse(status_code=500, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app.

    Call once after creating the app. Handlers: StorefrontException (and
    subclasses), RequestValidationError, StarletteHTTPException, slowapi
    RateLimitExceeded, SQLAlchemyError, generic Exception.
    """
    app.add_exception_handler(StorefrontException, _storefront_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(SQLAlchemyError, _database_exception_handler)
    app.add_exception_handler(Exception, _generic_exception_handler)
