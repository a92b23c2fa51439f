"""
Logging configuration for the SiteInspect application.

Request and report context (request id, collection, report id) is held in a
context variable, so concurrent requests each see their own values.
``LogContextFilter`` copies that context onto every record a handler
receives; ``setup_logging`` attaches it to every handler it creates.

Console output is colored in development and plain elsewhere. When a log file
is given, records are also written there with rotation, as JSON lines in
production.
"""

import json
import logging
import logging.handlers
import sys
from contextvars import ContextVar, Token
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from siteinspect.core.config import settings
from siteinspect.core.errors import ConfigurationError

_log_context: ContextVar[Mapping[str, Any]] = ContextVar("siteinspect_log_context", default={})

# Context fields promoted to top-level keys of JSON log lines
CONTEXT_FIELDS = (
    "request_id",
    "http_method",
    "request_path",
    "collection",
    "report_id",
    "duration_ms",
)

_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}

_LEVELS = {
    name: getattr(logging, name) for name in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
}

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


def current_log_context() -> Dict[str, Any]:
    """Return a copy of the context bound in the current task."""
    return dict(_log_context.get())


class LogContext:
    """
    Bind fields to every record logged inside the ``with`` block.

    Nested contexts add to the enclosing one and restore it on exit. The
    binding is per task, so it never leaks into concurrently handled requests.

    Usage:
        with LogContext(collection="soil_reports", report_id="abc"):
            logger.info("Updating report")
    """

    def __init__(self, **fields: Any):
        self.fields = fields
        self._token: Optional[Token] = None

    def __enter__(self) -> "LogContext":
        self._token = _log_context.set({**_log_context.get(), **self.fields})
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._token is not None:
            _log_context.reset(self._token)
            self._token = None


def add_log_context(**fields: Any) -> LogContext:
    """
    Create a log context with additional fields.

    Example:
        with add_log_context(collection="surveyor_reports"):
            logger.info("Listing reports")
    """
    return LogContext(**fields)


class LogContextFilter(logging.Filter):
    """Stamp the bound log context onto records; explicit ``extra`` values win."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    Context fields appear at the top level; any other ``extra`` values are
    grouped under ``"extra"``.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_data[field] = value

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS and key not in CONTEXT_FIELDS
        }
        if extra:
            log_data["extra"] = extra

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class ColoredFormatter(logging.Formatter):
    """Console formatter that colors the level name."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        original = record.levelname
        color = self.COLORS.get(original)
        if color:
            record.levelname = f"{color}{original}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


def get_log_level(level_name: str) -> int:
    """Map a level name, case-insensitively, to its constant; INFO if unknown."""
    return _LEVELS.get(level_name.upper(), logging.INFO)


def _check_log_file_location(log_file: Path) -> None:
    """Refuse to write logs where the static upload mount would serve them."""
    uploads_dir = settings.uploads_dir.resolve()
    if log_file.resolve().is_relative_to(uploads_dir):
        raise ConfigurationError(
            f"Log file {log_file} is inside the public uploads directory",
            config_key="SITEINSPECT_LOG_DIR",
            details={"uploads_dir": str(settings.uploads_dir)},
        )


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    if settings.environment == "development":
        handler.setFormatter(
            ColoredFormatter(
                "%(levelname)s | %(asctime)s | %(name)s:%(lineno)d | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(levelname)s - %(asctime)s - %(name)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    return handler


def _file_handler(log_file: Path, json_logs: bool) -> logging.Handler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    if json_logs:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    return handler


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[Path] = None,
    json_logs: bool = False,
    enable_console: bool = True,
) -> None:
    """
    Configure application-wide logging.

    Args:
        log_level: Level name; DEBUG in development, INFO otherwise
        log_file: Rotating log file to write as well, if any
        json_logs: Write the log file as JSON lines
        enable_console: Log to stdout

    Raises:
        ConfigurationError: If ``log_file`` lies inside the uploads directory
    """
    if log_level is None:
        log_level = "DEBUG" if settings.environment == "development" else "INFO"
    level = get_log_level(log_level)

    handlers = []
    if enable_console:
        handlers.append(_console_handler())
    if log_file is not None:
        _check_log_file_location(log_file)
        handlers.append(_file_handler(log_file, json_logs))

    root_logger = logging.getLogger()
    for handler in root_logger.handlers:
        if isinstance(handler, logging.FileHandler):
            handler.close()
    root_logger.handlers.clear()
    root_logger.setLevel(level)

    context_filter = LogContextFilter()
    for handler in handlers:
        handler.setLevel(level)
        handler.addFilter(context_filter)
        root_logger.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    root_logger.info(
        f"Logging initialized: level={log_level}, environment={settings.environment}, "
        f"file={log_file}"
    )
