"""Header helpers shared by the raw ASGI middlewares."""

import re
import uuid

# Safe for logging: alphanumeric, hyphen, underscore; bounded length.
TRACE_ID_MAX_LENGTH = 64
TRACE_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{1," + str(TRACE_ID_MAX_LENGTH) + r"}$")


def get_header(scope: dict, name: str) -> str | None:
    """Return first header value for name (case-insensitive). Headers are (bytes, bytes)."""
    want = name.lower().encode()
    for k, v in scope.get("headers", []):
        if k.lower() == want:
            return v.decode("utf-8", errors="replace")
    return None


def sanitize_trace_id(raw: str | None) -> str | None:
    """Return raw (stripped) when it is a safe trace id, else None. Prevents log injection."""
    if not raw:
        return None
    value = raw.strip()
    if not TRACE_ID_PATTERN.match(value):
        return None
    return value


def new_trace_id() -> str:
    return str(uuid.uuid4())


def with_header(message: dict, name: str, value: str) -> None:
    """Append a header to an http.response.start message in place."""
    headers = list(message.get("headers", []))
    headers.append((name.encode(), value.encode()))
    message["headers"] = headers
