"""Logging Setup.

``configure_logging()`` installs one stdout handler on the root logger:
JSON lines in production, coloured single lines in development. Every
record passes through :class:`SecretRedactionFilter` first, so a token
that slips into a message or exception is masked before it is written.
"""

import json
import logging
import os
import re
import sys
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from src.logging_config.config import DEFAULT_LOGGING_CONFIG, LogFormat, LoggingConfig, LogLevel
from src.logging_config.context import get_context_dict

# GitHub token shapes, anywhere in a string
TOKEN_PATTERN = re.compile(r"\b(ghp|gho|ghu|ghs|ghr)_[A-Za-z0-9]{20,}\b|\bgithub_pat_[A-Za-z0-9_]{10,}")
REDACTED = "[REDACTED]"

NOISY_LOGGERS = ("asyncio", "aiohttp.access", "sqlalchemy.engine", "uvicorn.access")


def redact(text: str) -> str:
    return TOKEN_PATTERN.sub(REDACTED, text)


class SecretRedactionFilter(logging.Filter):
    """Masks GitHub tokens in the rendered message and exception text."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        cleaned = redact(message)
        if cleaned != message:
            record.msg, record.args = cleaned, None
        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            if TOKEN_PATTERN.search(str(exc)):
                record.exc_text = redact(logging.Formatter().formatException(record.exc_info))
        return True


class StructuredFormatter(logging.Formatter):
    """One JSON object per record.

    Always present: timestamp, level, logger, message, service. Added
    when available: caller location, bound request context, the
    whitelisted ``extra=`` fields below, and exception details.
    """

    EXTRA_FIELDS = (
        "duration_ms", "status_code", "method", "path",
        "partition_key", "page_count", "record_count",
    )

    def __init__(self, service_name: str = "repodeck", include_caller: bool = True):
        super().__init__()
        self.service_name = service_name
        self.include_caller = include_caller

    def _payload(self, record: logging.LogRecord) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
        }
        if self.include_caller:
            payload.update(module=record.module, function=record.funcName, line=record.lineno)
        payload.update(get_context_dict())
        payload.update({k: getattr(record, k) for k in self.EXTRA_FIELDS if hasattr(record, k)})
        return payload

    def format(self, record: logging.LogRecord) -> str:
        payload = self._payload(record)

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, _ = record.exc_info
            payload["exception"] = {
                "type": exc_type.__name__,
                "message": redact(str(exc_value)),
                "traceback": record.exc_text or self.formatException(record.exc_info),
            }

        return json.dumps(payload, default=str)


class ConsoleFormatter(logging.Formatter):
    """``HH:MM:SS.mmm LEVEL logger: message [ctx]`` with ANSI colour by level."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created, timezone.utc).strftime("%H:%M:%S.%f")[:-3]
        color = self.LEVEL_COLORS.get(record.levelno, "")
        ctx = get_context_dict()
        suffix = " [" + ", ".join(f"{k}={v}" for k, v in ctx.items()) + "]" if ctx else ""

        line = f"{color}{stamp} {record.levelname:<8}{self.RESET} {record.name}: {record.getMessage()}{suffix}"
        if record.exc_info and record.exc_info[0] is not None:
            line = f"{line}\n{record.exc_text or self.formatException(record.exc_info)}"
        return line


def _apply_env_overrides(config: LoggingConfig) -> LoggingConfig:
    level = os.environ.get("REPODECK_LOG_LEVEL", "").upper()
    if level in LogLevel.__members__:
        config = replace(config, level=LogLevel(level))

    fmt = os.environ.get("REPODECK_LOG_FORMAT", "").lower()
    if fmt in {f.value for f in LogFormat}:
        config = replace(config, format=LogFormat(fmt))
    return config


def configure_logging(config: Optional[LoggingConfig] = None) -> None:
    """Install the RepoDeck handler on the root logger.

    Safe to call more than once; previous root handlers are replaced.
    ``REPODECK_LOG_LEVEL`` and ``REPODECK_LOG_FORMAT`` override the config.
    """
    config = _apply_env_overrides(config or DEFAULT_LOGGING_CONFIG)

    if config.format is LogFormat.JSON:
        formatter: logging.Formatter = StructuredFormatter(config.service_name, config.include_caller)
    else:
        formatter = ConsoleFormatter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(SecretRedactionFilter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(config.level.value)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
