"""Structured logging configuration for the wellnest application."""

import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

# Context variables for request/household tracking
request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
household_id_ctx: ContextVar[str | None] = ContextVar("household_id", default=None)
plan_id_ctx: ContextVar[str | None] = ContextVar("plan_id", default=None)

_CONTEXT_VARS: dict[str, ContextVar[str | None]] = {
    "request_id": request_id_ctx,
    "household_id": household_id_ctx,
    "plan_id": plan_id_ctx,
}


def _current_context() -> dict[str, str]:
    return {name: value for name, var in _CONTEXT_VARS.items() if (value := var.get())}


class StructuredJsonFormatter(logging.Formatter):
    """JSON formatter for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        log_data.update(_current_context())

        # Add extra fields from the record
        if hasattr(record, "extra_data"):
            log_data.update(record.extra_data)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        log_data["location"] = {
            "file": record.filename,
            "line": record.lineno,
            "function": record.funcName,
        }

        return json.dumps(log_data, default=str)


class ContextualFormatter(logging.Formatter):
    """Human-readable formatter with context for development."""

    def format(self, record: logging.LogRecord) -> str:
        context_parts = []
        if request_id := request_id_ctx.get():
            context_parts.append(f"req={request_id[:8]}")
        if household_id := household_id_ctx.get():
            context_parts.append(f"household={household_id}")
        if plan_id := plan_id_ctx.get():
            context_parts.append(f"plan={plan_id[:8]}")

        context_str = f" [{', '.join(context_parts)}]" if context_parts else ""

        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        level = record.levelname.ljust(8)
        message = record.getMessage()

        formatted = f"{timestamp} | {level} | {record.name}{context_str} | {message}"

        if record.exc_info:
            formatted += "\n" + self.formatException(record.exc_info)

        return formatted


class ContextLogger(logging.LoggerAdapter):
    """Logger adapter that automatically includes context variables."""

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        extra = kwargs.get("extra", {})
        extra.update(_current_context())
        kwargs["extra"] = extra
        return msg, kwargs


def get_logger(name: str) -> ContextLogger:
    """Get a context-aware logger for the given module name."""
    logger = logging.getLogger(name)
    return ContextLogger(logger, {})


def configure_logging(
    log_level: str = "INFO",
    json_format: bool | None = None,
    log_file: str | None = None,
) -> None:
    """
    Configure logging for the application.

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON format for logs. If None, auto-detect based on environment.
        log_file: Optional file path to write logs to.
    """
    if json_format is None:
        # Use JSON in production (when not running interactively)
        json_format = os.getenv("LOG_FORMAT", "").lower() == "json" or (
            not sys.stdout.isatty() and os.getenv("ENVIRONMENT", "development") == "production"
        )

    level_str = os.getenv("LOG_LEVEL", log_level).upper()
    level = getattr(logging, level_str, logging.INFO)

    formatter: logging.Formatter
    if json_format:
        formatter = StructuredJsonFormatter()
    else:
        formatter = ContextualFormatter()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        root_logger.addHandler(file_handler)

    module_levels = {
        "wellnest": level,
        "wellnest.plan": level,
        "sqlalchemy.engine": logging.WARNING,
        "uvicorn": logging.INFO,
        "uvicorn.access": logging.WARNING,
    }

    for module_name, module_level in module_levels.items():
        logging.getLogger(module_name).setLevel(module_level)

    logger = get_logger(__name__)
    logger.info(
        f"Logging configured: level={level_str}, format={'json' if json_format else 'text'}"
    )


class LoggingContext:
    """Context manager for setting logging context."""

    def __init__(
        self,
        request_id: str | None = None,
        household_id: str | None = None,
        plan_id: str | None = None,
    ):
        self.values = {
            "request_id": request_id,
            "household_id": household_id,
            "plan_id": plan_id,
        }
        self._tokens: dict[str, Any] = {}

    def __enter__(self) -> "LoggingContext":
        for name, value in self.values.items():
            if value is not None:
                self._tokens[name] = _CONTEXT_VARS[name].set(value)
        return self

    def __exit__(self, *args: Any) -> None:
        for name, token in self._tokens.items():
            _CONTEXT_VARS[name].reset(token)
        self._tokens.clear()
