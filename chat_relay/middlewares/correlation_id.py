"""
Correlation ID tracking for HTTP requests and WebSocket connections.

HTTP requests get their id from the X-Correlation-ID header (or a fresh
one) through CorrelationIDMiddleware. WebSocket connections call
set_correlation_id() once when the connection opens, so every log line of
that connection's task carries the same id.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from chat_relay.constants import CORRELATION_ID_LENGTH

# Context variable for storing correlation ID per request or connection
correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add correlation IDs to HTTP requests.

    This middleware:
    - Extracts correlation ID from X-Correlation-ID header or generates new 8-char UUID
    - Stores correlation ID in request.state.request_id
    - Stores correlation ID in context variable for logging
    - Adds correlation ID to response headers for client tracking
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        cid = request.headers.get("X-Correlation-ID") or new_correlation_id()
        cid = cid[:CORRELATION_ID_LENGTH]

        request.state.request_id = cid
        correlation_id.set(cid)

        response = await call_next(request)
        response.headers["X-Correlation-ID"] = cid

        return response


def new_correlation_id() -> str:
    """Generate a fresh short correlation id."""
    return str(uuid.uuid4())[:CORRELATION_ID_LENGTH]


def set_correlation_id(cid: str) -> None:
    """
    Bind a correlation ID to the current context.

    Args:
        cid: Correlation id, truncated to CORRELATION_ID_LENGTH characters.
    """
    correlation_id.set(cid[:CORRELATION_ID_LENGTH])


def get_correlation_id() -> str:
    """
    Get the correlation ID for the current request or connection context.

    Returns:
        The correlation ID string, or empty string if not set.
    """
    return correlation_id.get()
