"""Request body size limit middleware.

Auth endpoints only take small JSON bodies; anything above max_bytes is
rejected with 413, whether announced by Content-Length or streamed chunked.
Uses raw ASGI (no BaseHTTPMiddleware) for production-safe streaming and background tasks.
"""

import json
from typing import Callable

from app.middleware.headers import get_header


async def _send_413(send: Callable, max_bytes: int) -> None:
    body = json.dumps(
        {
            "error": "La solicitud es demasiado grande",
            "code": "PAYLOAD_TOO_LARGE",
            "maxBytes": max_bytes,
        }
    ).encode()
    await send({
        "type": "http.response.start",
        "status": 413,
        "headers": [(b"content-type", b"application/json")],
    })
    await send({"type": "http.response.body", "body": body, "more_body": False})


def RequestSizeLimitMiddleware(app: Callable, max_bytes: int) -> Callable:
    """Reject requests whose body exceeds max_bytes. Raw ASGI."""

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return

        declared = get_header(scope, "content-length")
        if declared is not None:
            try:
                too_large = int(declared) > max_bytes
            except ValueError:
                too_large = False
            if too_large:
                await _send_413(send, max_bytes)
                return
            await app(scope, receive, send)
            return

        # No Content-Length: buffer the stream up to the limit, then replay it.
        messages: list[dict] = []
        total = 0
        while True:
            message = await receive()
            messages.append(message)
            if message["type"] != "http.request":
                break
            total += len(message.get("body", b""))
            if total > max_bytes:
                await _send_413(send, max_bytes)
                return
            if not message.get("more_body", False):
                break

        async def replay() -> dict:
            if messages:
                return messages.pop(0)
            return await receive()

        await app(scope, replay, send)

    return asgi_app
