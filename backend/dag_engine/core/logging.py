"""Structured logging configuration for the DAG execution engine.

TAG: [INFRA] [LOGGING]

Provides:
- JSON structured logs for files and non-debug consoles
- Colored console output while DEBUG is enabled
- Rotating file handler (10MB max, 5 backups)
- Redaction of credentials that end up in node parameters or input data
- LogContext for attaching run-scoped context (execution_id, graph_id, ...)
"""

from __future__ import annotations

import json
import logging
import re
import sys
from contextvars import ContextVar, Token
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, ClassVar

from dag_engine.core.config import settings


class SensitiveDataFilter(logging.Filter):
    """Redact secrets from log messages before any handler writes them.

    Node parameters and request input data are user supplied and are
    logged at DEBUG level, so values such as ``api_key=...`` must never
    reach the log files verbatim.

    Examples:
        >>> logger = logging.getLogger("dag_engine")
        >>> logger.addFilter(SensitiveDataFilter())
        >>> logger.info("calling endpoint with api_key=abc123")
        # Logs: "calling endpoint with api_key: [REDACTED]"
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
        (pattern, re.compile(rf"{pattern}[:=]\s*[\"']?[^\s\"',}}]+", re.IGNORECASE))
        for pattern in SENSITIVE_PATTERNS
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        """Redact the record in place; never drops it."""
        record.msg = self.redact(str(record.msg))
        if record.args:
            record.args = tuple(
                self.redact(arg) if isinstance(arg, str) else arg
                for arg in record.args
            )
        return True

    @classmethod
    def redact(cls, text: str) -> str:
        """Replace ``key: value`` / ``key=value`` pairs of sensitive keys."""
        for pattern, regex in cls._REGEXES:
            text = regex.sub(f"{pattern}: [REDACTED]", text)
        return text


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Format:
        {
            "timestamp": "2025-01-12T10:30:45.123Z",
            "level": "INFO",
            "logger": "dag_engine.services.dag.coordinator",
            "message": "DAG execution completed",
            "service": "DAG Execution Engine",
            "context": {"execution_id": "...", "status": "completed"}
        }
    """

    def __init__(self, service_name: str = "DAG Execution Engine") -> None:
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
    """Human-readable colored console output for development."""

    COLORS: ClassVar[dict[str, str]] = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[41m",  # Red background
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
    service_name: str = "DAG Execution Engine",
    enable_json: bool = True,
    enable_console: bool = True,
) -> logging.Logger:
    """Configure root logging with file and console handlers.

    Args:
        log_level: Logging level name. Defaults to settings.LOG_LEVEL.
        log_file: Path to log file. Defaults to logs/app.log.
        service_name: Service name written into JSON records.
        enable_json: Use JSONFormatter for the file handler.
        enable_console: Attach a stdout handler.

    Returns:
        Configured root logger instance.
    """
    if log_level is None:
        log_level = settings.LOG_LEVEL
    level = getattr(logging, log_level.upper(), logging.INFO)

    if log_file is None:
        log_file_path = Path("logs") / "app.log"
    else:
        log_file_path = Path(log_file)
    log_file_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger()
    logger.setLevel(level)
    logger.handlers.clear()

    sensitive_filter = SensitiveDataFilter()

    file_handler = RotatingFileHandler(
        filename=str(log_file_path),
        maxBytes=10 * 1024 * 1024,  # 10MB
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
    file_handler.addFilter(sensitive_filter)
    logger.addHandler(file_handler)

    if enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        if settings.DEBUG:
            console_handler.setFormatter(ColoredConsoleFormatter())
        else:
            console_handler.setFormatter(JSONFormatter(service_name=service_name))
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
    """Get a logger instance with the specified name.

    Examples:
        >>> from dag_engine.core.logging import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("Batch scheduled", extra={"context": {"batch": 0}})
    """
    return logging.getLogger(name)


_run_context: ContextVar[dict[str, Any]] = ContextVar("dag_run_context", default={})
_base_factory = logging.getLogRecordFactory()


def _record_factory(*args: Any, **kwargs: Any) -> logging.LogRecord:
    record = _base_factory(*args, **kwargs)
    record.run_context = _run_context.get()
    return record


logging.setLogRecordFactory(_record_factory)


def record_context(record: logging.LogRecord) -> dict[str, Any]:
    """Merge LogContext values with the record's own ``extra`` context."""
    merged = dict(getattr(record, "run_context", None) or {})
    merged.update(getattr(record, "context", None) or {})
    return merged


class LogContext:
    """Attach structured context to every record created inside the block.

    Context is stored in a ContextVar, so concurrent runs on the same event
    loop keep their own values and node tasks inherit the run's context.

    Examples:
        >>> logger = get_logger(__name__)
        >>> with LogContext(logger, execution_id="abc", graph_id="pricing"):
        ...     logger.info("Executing batch")
        # Record carries context {"execution_id": "abc", "graph_id": "pricing"}
    """

    def __init__(self, logger: logging.Logger, **context: Any) -> None:
        self.logger = logger
        self.context = context
        self._token: Token[dict[str, Any]] | None = None

    def __enter__(self) -> LogContext:
        self._token = _run_context.set({**_run_context.get(), **self.context})
        return self

    def __exit__(self, *args: Any) -> None:
        if self._token is not None:
            _run_context.reset(self._token)
            self._token = None


__all__ = [
    "ColoredConsoleFormatter",
    "JSONFormatter",
    "LogContext",
    "SensitiveDataFilter",
    "get_logger",
    "record_context",
    "setup_logging",
]
