"""Correlation ID middleware.

Propagates X-Correlation-ID (forwarded from the client, else the request id)
and publishes it to the logging context so every log line of the request
carries it. A multi-step login reuses one id when the client forwards it.
Uses raw ASGI (no BaseHTTPMiddleware) for production-safe streaming and background tasks.
"""

from typing import Callable

from app.middleware.headers import get_header, new_trace_id, sanitize_trace_id, with_header
from app.shared.telemetry.logging import set_correlation_id


def CorrelationIDMiddleware(
    app: Callable, header_name: str = "X-Correlation-ID"
) -> Callable:
    """Add or forward X-Correlation-ID; fall back to request_id if set on scope state. Raw ASGI."""

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        correlation_id = (
            sanitize_trace_id(get_header(scope, header_name))
            or scope.get("state", {}).get("request_id")
            or new_trace_id()
        )
        scope.setdefault("state", {})["correlation_id"] = correlation_id
        set_correlation_id(correlation_id)

        async def send_wrapper(message: dict) -> None:
            if message["type"] == "http.response.start":
                with_header(message, header_name, correlation_id)
            await send(message)

        await app(scope, receive, send_wrapper)

    return asgi_app
