"""Request-scoped context using contextvars.

The request-id middleware sets the id for each HTTP request or WebSocket
connection; the logging filter reads it so every log line can be traced
back to the request that produced it.
"""

from contextvars import ContextVar

_current_request_id: ContextVar[str | None] = ContextVar("current_request_id", default=None)


def set_request_id(request_id: str | None) -> object:
    """Set the request id for this context. Returns a token for reset_request_id."""
    return _current_request_id.set(request_id)


def reset_request_id(token: object) -> None:
    _current_request_id.reset(token)  # type: ignore[arg-type]


def get_request_id() -> str | None:
    """Return the current request id, or None outside a request."""
    return _current_request_id.get()
