"""Structured Logging & Request Tracing.

Provides structured JSON logging, request ID propagation,
and performance timing for the RepoDeck backend.
"""

from src.logging_config.config import LogFormat, LoggingConfig, LogLevel
from src.logging_config.context import RequestContext, generate_request_id
from src.logging_config.performance import PerformanceTimer
from src.logging_config.setup import SecretRedactionFilter, configure_logging, get_logger, redact

__all__ = [
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "PerformanceTimer",
    "RequestContext",
    "SecretRedactionFilter",
    "configure_logging",
    "generate_request_id",
    "get_logger",
    "redact",
]
