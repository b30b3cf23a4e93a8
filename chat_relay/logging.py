"""
Logging setup for the relay.

The root logger gets a console handler for people, a JSON error file for
machines and, when enabled, a Loki handler. WebSocket connections put their
user id and connection id into a context variable when they open; both
formatters pick it up so every line of a connection can be told apart.
"""

import json
import logging
import os
import sys
from contextvars import ContextVar
from typing import Any

from chat_relay.constants import LOKI_MAX_LOG_SIZE_BYTES
from chat_relay.middlewares.correlation_id import get_correlation_id
from chat_relay.settings import app_settings

SERVICE_NAME = "chat-relay"
TRUNCATED_SUFFIX = "... [TRUNCATED]"

# Per-connection fields, set once by the WebSocket endpoint
log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})

# Attributes every LogRecord carries; anything else came from `extra=`
_STANDARD_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "correlation_id", "connection"}


def set_log_context(**kwargs: Any) -> None:
    """
    Add fields to the current connection's log context.

    Example:
        >>> set_log_context(user_id="u1", connection_id="3f2a9c1e")
    """
    log_context.set({**log_context.get(), **kwargs})


def get_log_context() -> dict[str, Any]:
    return log_context.get()


def clear_log_context() -> None:
    log_context.set({})


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _STANDARD_RECORD_ATTRS
    }


class StructuredJSONFormatter(logging.Formatter):
    """
    One JSON object per record, for the error file and Loki.

    Carries the record basics, the correlation id as ``request_id``, the
    connection context, ``extra=`` fields and the exception text. Records
    longer than Loki accepts get their message cut.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "service": SERVICE_NAME,
            "environment": app_settings.ENVIRONMENT,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        if request_id := get_correlation_id():
            entry["request_id"] = request_id
        entry.update(get_log_context())
        entry.update(_extra_fields(record))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        text = json.dumps(entry, default=str)
        overflow = len(text) - LOKI_MAX_LOG_SIZE_BYTES
        if overflow > 0:
            keep = max(len(entry["message"]) - overflow - len(TRUNCATED_SUFFIX), 0)
            entry["message"] = entry["message"][:keep] + TRUNCATED_SUFFIX
            text = json.dumps(entry, default=str)
        return text


class HumanReadableFormatter(logging.Formatter):
    """
    Console formatter.

    Lines are tagged ``[<correlation id>|<user id>]`` with ``-`` for a
    missing part. INFO lines stay short; every other level also shows where
    the record was emitted.
    """

    SHORT_FMT = "%(asctime)s - [%(connection)s] %(levelname)s: %(message)s"
    LONG_FMT = (
        "%(asctime)s - [%(connection)s] %(levelname)s: "
        "%(module)s.%(funcName)s:%(lineno)d - %(message)s"
    )
    DATE_FMT = "%Y-%m-%d %H:%M:%S"

    def __init__(self) -> None:
        super().__init__()
        self._short = logging.Formatter(self.SHORT_FMT, datefmt=self.DATE_FMT)
        self._long = logging.Formatter(self.LONG_FMT, datefmt=self.DATE_FMT)

    def format(self, record: logging.LogRecord) -> str:
        user_id = get_log_context().get("user_id")
        record.connection = f"{get_correlation_id() or '-'}|{user_id or '-'}"
        formatter = self._short if record.levelno == logging.INFO else self._long
        return formatter.format(record)


def _error_file_handler() -> logging.Handler | None:
    log_dir = os.path.dirname(app_settings.LOG_FILE_PATH)
    try:
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handler = logging.FileHandler(app_settings.LOG_FILE_PATH)
    except OSError as e:
        logging.getLogger().warning(f"Could not create file handler: {e}")
        return None
    handler.setLevel(logging.ERROR)
    return handler


def _loki_handler() -> logging.Handler | None:
    try:
        from logging_loki import LokiHandler

        handler = LokiHandler(
            url=f"{app_settings.LOKI_URL}/loki/api/v{app_settings.LOKI_VERSION}/push",
            tags={
                "application": SERVICE_NAME,
                "environment": app_settings.ENVIRONMENT,
            },
            version=app_settings.LOKI_VERSION,
        )
    except Exception as e:
        logging.getLogger().warning(f"Could not configure Loki handler: {e}")
        return None
    handler.setLevel(logging.INFO)
    return handler


def setup_logging() -> logging.Logger:
    """
    Configure the root logger and return it.

    Handlers are replaced, not appended, so calling this twice does not
    duplicate output.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, app_settings.LOG_LEVEL.upper()))
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(HumanReadableFormatter())
    root.addHandler(console)

    structured = [_error_file_handler()]
    if app_settings.LOKI_ENABLED:
        structured.append(_loki_handler())
    for handler in filter(None, structured):
        handler.setFormatter(StructuredJSONFormatter())
        root.addHandler(handler)

    if os.path.basename(sys.argv[0]) == "pytest":
        logging.disable(logging.ERROR)

    return root


logger = setup_logging()
