"""Structured logging configuration for the workflow builder backend.

Provides:
- JSON structured logs for files and production consoles
- Coloured console output when ``DEBUG`` is on
- Rotating file handler (10MB max, 5 backups)
- Redaction of secrets (webhook tokens, API keys) before any handler sees them
- ``LogContext`` for attaching structured context to every record in a scope

Workflow action params may carry webhook URLs with embedded tokens, which is
why redaction runs on every handler rather than only on the file handler.
"""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, ClassVar

from workflow_builder.core.config import settings


class SensitiveDataFilter(logging.Filter):
    """Redact credentials from log messages and string arguments.

    Examples:
        >>> logger = logging.getLogger("workflow_builder")
        >>> logger.addFilter(SensitiveDataFilter())
        >>> logger.info("webhook token=abc123")
        # Logs: "webhook token: [REDACTED]"
    """

    SENSITIVE_PATTERNS: ClassVar[list[str]] = [
        "password",
        "secret",
        "token",
        "api_key",
        "apikey",
        "authorization",
        "bearer",
        "credential",
    ]

    _REGEXES: ClassVar[list[tuple[str, re.Pattern[str]]]] = [
        (pattern, re.compile(rf"{pattern}[:=]\s*[\"']?[^\s\"',]+", re.IGNORECASE))
        for pattern in SENSITIVE_PATTERNS
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = self.redact(str(record.msg))
        if record.args and isinstance(record.args, tuple):
            record.args = tuple(
                self.redact(arg) if isinstance(arg, str) else arg for arg in record.args
            )
        return True

    @classmethod
    def redact(cls, text: str) -> str:
        """Replace ``key: value`` / ``key=value`` secrets with a marker."""
        for pattern, regex in cls._REGEXES:
            text = regex.sub(f"{pattern}: [REDACTED]", text)
        return text


def record_context(record: logging.LogRecord) -> dict[str, Any]:
    """Merged ``LogContext`` scope and per-call ``extra={"context": ...}``."""
    return {
        **getattr(record, "scope_context", {}),
        **(getattr(record, "context", None) or {}),
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per record.

    Format:
        {
            "timestamp": "2026-01-12T10:30:45.123Z",
            "level": "INFO",
            "logger": "workflow_builder.services.workflow.session",
            "message": "Workflow rule saved",
            "service": "Returns Workflow Builder",
            "context": {"rule_id": "...", "nodes": 4}
        }
    """

    def __init__(self, service_name: str = "Returns Workflow Builder") -> None:
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC)
            .isoformat()
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
        }

        context = record_context(record)
        if context:
            log_entry["context"] = context

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        if record.levelno >= logging.ERROR:
            log_entry["source"] = {
                "function": record.funcName,
                "line": record.lineno,
                "file": record.pathname,
            }

        return json.dumps(log_entry, default=str, ensure_ascii=False)


class ColoredConsoleFormatter(logging.Formatter):
    """Human-readable coloured console output for development."""

    COLORS: ClassVar[dict[str, str]] = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[41m",
    }
    RESET: ClassVar[str] = "\033[0m"

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        context = record_context(record)
        if context:
            record.msg = f"{record.msg} | Context: {json.dumps(context, default=str)}"
        return super().format(record)


def setup_logging(
    log_level: str | None = None,
    log_file: str | None = None,
    service_name: str = "Returns Workflow Builder",
    enable_json: bool = True,
    enable_console: bool = True,
) -> logging.Logger:
    """Configure the root logger with file and console handlers.

    Args:
        log_level: Logging level name. Defaults to ``settings.LOG_LEVEL``.
        log_file: Path to the log file. Defaults to ``logs/app.log``.
        service_name: Service name written into JSON records.
        enable_json: Use JSON formatting for the file handler.
        enable_console: Attach a stdout handler.

    Returns:
        The configured root logger.
    """
    if log_level is None:
        log_level = settings.LOG_LEVEL

    if log_file is None:
        log_file_path = Path("logs") / "app.log"
    else:
        log_file_path = Path(log_file)
    log_file_path.parent.mkdir(parents=True, exist_ok=True)

    level = getattr(logging, log_level.upper(), logging.INFO)
    logger = logging.getLogger()
    logger.setLevel(level)
    logger.handlers.clear()

    sensitive_filter = SensitiveDataFilter() if settings.LOG_SENSITIVE_FILTER else None

    file_handler = RotatingFileHandler(
        filename=str(log_file_path),
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    if enable_json:
        file_handler.setFormatter(JSONFormatter(service_name=service_name))
    else:
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    if sensitive_filter is not None:
        file_handler.addFilter(sensitive_filter)
    logger.addHandler(file_handler)

    if enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        if settings.DEBUG:
            console_handler.setFormatter(ColoredConsoleFormatter())
        else:
            console_handler.setFormatter(JSONFormatter(service_name=service_name))
        if sensitive_filter is not None:
            console_handler.addFilter(sensitive_filter)
        logger.addHandler(console_handler)

    logger.info(
        f"Logging initialized - Level: {log_level}, File: {log_file_path}",
        extra={
            "context": {
                "log_level": log_level,
                "log_file": str(log_file_path),
                "service": service_name,
            }
        },
    )
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger that inherits the configuration from ``setup_logging``."""
    return logging.getLogger(name)


class LogContext:
    """Attach structured context to every record created inside the block.

    Examples:
        >>> logger = get_logger(__name__)
        >>> with LogContext(rule_id="123", action="save"):
        ...     logger.info("Saving workflow rule")
    """

    def __init__(self, **context: Any) -> None:
        self.context = context
        self.old_factory = logging.getLogRecordFactory()

    def __enter__(self) -> LogContext:
        old_factory = self.old_factory
        context = self.context

        def record_factory(*args: Any, **kwargs: Any) -> logging.LogRecord:
            record = old_factory(*args, **kwargs)
            record.scope_context = {**getattr(record, "scope_context", {}), **context}
            return record

        logging.setLogRecordFactory(record_factory)
        return self

    def __exit__(self, *args: Any) -> None:
        logging.setLogRecordFactory(self.old_factory)


__all__ = [
    "ColoredConsoleFormatter",
    "JSONFormatter",
    "LogContext",
    "SensitiveDataFilter",
    "get_logger",
    "record_context",
    "setup_logging",
]
