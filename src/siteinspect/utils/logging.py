"""
Logging helpers: secret redaction and timing.
"""

import logging
import re
import time
from typing import Any, List, Optional, Pattern, Set

logger = logging.getLogger(__name__)

# Patterns for secrets embedded in URLs or free text
SENSITIVE_PATTERNS: List[Pattern[str]] = [
    re.compile(r"(appid=)[^&\s]+", re.IGNORECASE),
    re.compile(r"(api[_-]?key[\"']?\s*[:=]\s*[\"']?)[^\"'\s,&}]+", re.IGNORECASE),
    re.compile(r"(token[\"']?\s*[:=]\s*[\"']?)[^\"'\s,&}]+", re.IGNORECASE),
]

# Fields that should always be redacted
SENSITIVE_FIELDS: Set[str] = {
    "appid",
    "api_key",
    "weather_api_key",
    "token",
    "authorization",
}


def redact_sensitive(data: Any, redaction_text: str = "***REDACTED***") -> Any:
    """
    Redact secrets from strings, dicts, lists and tuples.

    Example:
        >>> redact_sensitive("weather?lat=1&appid=abc")
        'weather?lat=1&appid=***REDACTED***'
    """
    if isinstance(data, dict):
        return {
            key: (
                redaction_text
                if key.lower() in SENSITIVE_FIELDS
                else redact_sensitive(value, redaction_text)
            )
            for key, value in data.items()
        }
    elif isinstance(data, list):
        return [redact_sensitive(item, redaction_text) for item in data]
    elif isinstance(data, tuple):
        return tuple(redact_sensitive(item, redaction_text) for item in data)
    elif isinstance(data, str):
        redacted = data
        for pattern in SENSITIVE_PATTERNS:
            redacted = pattern.sub(lambda m: m.group(1) + redaction_text, redacted)
        return redacted
    else:
        return data


class PerformanceTimer:
    """
    Context manager for timing code blocks.

    Usage:
        with PerformanceTimer("pdf_export") as timer:
            exporter.render(kind, reports)
    """

    def __init__(
        self,
        operation_name: str,
        log_level: int = logging.DEBUG,
        threshold_ms: Optional[float] = None,
    ):
        self.operation_name = operation_name
        self.log_level = log_level
        self.threshold_ms = threshold_ms
        self.start_time: Optional[float] = None
        self.duration_ms: Optional[float] = None

    def __enter__(self) -> "PerformanceTimer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self.start_time is None:
            return
        self.duration_ms = (time.perf_counter() - self.start_time) * 1000

        if self.threshold_ms is None or self.duration_ms >= self.threshold_ms:
            logger.log(
                self.log_level,
                f"{self.operation_name} completed in {self.duration_ms:.2f}ms",
                extra={
                    "duration_ms": self.duration_ms,
                    "operation": self.operation_name,
                },
            )
