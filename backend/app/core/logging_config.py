"""
Structured logging configuration.

Provides:
    • JSON-formatted logs for production (machine-parseable)
    • Pretty console logs for development (human-readable)
    • A process default logger, replaced once at startup
    • Request-scoped loggers carried in a ContextVar

Structured fields travel as LoggerAdapter extras, so every record emitted
through a bound logger carries the request path, method and request id.

Usage:
    from backend.app.core.logging_config import setup_logging, logger_from_context

    setup_logging("INFO", json_output=True, version="1.2.0")
    log = logger_from_context().bind(post_id=str(post_id))
    log.info("post created")
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Dict, MutableMapping, Optional, Tuple

APP_LOGGER_NAME = "backend.app"

# Attributes every LogRecord carries; anything else came in through `extra`.
_RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class ContextLogger(logging.LoggerAdapter):
    """LoggerAdapter that merges bound fields with call-site extras."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> Tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs

    def bind(self, **fields: Any) -> "ContextLogger":
        """Return a child logger with additional structured fields."""
        return ContextLogger(self.logger, {**self.extra, **fields})


_default_logger = ContextLogger(logging.getLogger(APP_LOGGER_NAME), {})

_request_logger: ContextVar[Optional[ContextLogger]] = ContextVar(
    "request_logger", default=None
)


def default_logger() -> ContextLogger:
    return _default_logger


def logger_from_context() -> ContextLogger:
    """Request-scoped logger, or the process default outside a request."""
    logger = _request_logger.get()
    return logger if logger is not None else _default_logger


def logger_to_context(logger: Optional[ContextLogger]) -> Token:
    """Bind a logger to the current context; pass the token to reset."""
    return _request_logger.set(logger if logger is not None else _default_logger)


def reset_logger_context(token: Token) -> None:
    _request_logger.reset(token)


def record_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """Structured fields attached to a record via `extra`."""
    return {k: v for k, v in record.__dict__.items() if k not in _RESERVED_ATTRS}


# ── JSON Formatter (Production) ──

class JSONFormatter(logging.Formatter):
    """Machine-parseable JSON log output for log aggregation (ELK, Datadog)."""

    def __init__(self, *, add_source: bool = False):
        super().__init__()
        self.add_source = add_source

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        if self.add_source:
            log_entry["source"] = {
                "module": record.module,
                "function": record.funcName,
                "line": record.lineno,
            }

        log_entry.update(record_fields(record))

        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = {
                "type": type(record.exc_info[1]).__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(log_entry, default=str)


# ── Pretty Formatter (Development) ──

class PrettyFormatter(logging.Formatter):
    """Coloured human-readable format for local development."""

    COLORS = {
        "DEBUG": "\033[36m",    # Cyan
        "INFO": "\033[32m",     # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",    # Red
        "CRITICAL": "\033[35m", # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        ts = self.formatTime(record, "%H:%M:%S")
        fields = record_fields(record)

        ctx_str = ""
        request_id = fields.pop("request_id", None)
        if request_id:
            ctx_str = f" [{str(request_id)[:8]}]"
        fields.pop("version", None)
        fields.pop("build_time", None)

        formatted = (
            f"{color}{ts} {record.levelname:8s}{self.RESET}"
            f"{ctx_str} {record.name}: {record.getMessage()}"
        )
        if fields:
            formatted += " " + " ".join(f"{k}={v}" for k, v in fields.items())

        if record.exc_info and record.exc_info[1]:
            formatted += "\n" + self.formatException(record.exc_info)

        return formatted


# ── Setup ──

def setup_logging(
    level: str = "INFO",
    *,
    json_output: bool = True,
    version: str = "dev",
    build_time: str = "unknown",
) -> ContextLogger:
    """Configure the root handler and replace the process default logger."""
    global _default_logger

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(numeric_level)

    # Remove existing handlers
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    if json_output:
        handler.setFormatter(JSONFormatter(add_source=numeric_level == logging.DEBUG))
    else:
        handler.setFormatter(PrettyFormatter())
    root.addHandler(handler)

    # Quieten noisy libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    _default_logger = ContextLogger(
        logging.getLogger(APP_LOGGER_NAME),
        {"version": version, "build_time": build_time},
    )
    return _default_logger


def get_logger(name: str) -> logging.Logger:
    """Get a named logger — call once per module."""
    return logging.getLogger(name)
