"""Logging configuration: level, output format, and what to leave out."""

from dataclasses import dataclass, field
from enum import Enum


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """JSON lines for shipping, coloured text for a terminal."""

    JSON = "json"
    CONSOLE = "console"


@dataclass
class LoggingConfig:
    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.JSON
    service_name: str = "repodeck"
    # Adds module/function/line to JSON records
    include_caller: bool = True
    # PerformanceTimer warns at or above this
    slow_threshold_ms: float = 1000.0
    # Paths the request tracer does not log
    exclude_paths: list[str] = field(default_factory=lambda: ["/health"])

    @classmethod
    def for_environment(cls, environment: str) -> "LoggingConfig":
        """Console output at DEBUG for local work, JSON at INFO everywhere else."""
        if environment.lower() in ("development", "dev", "local"):
            return cls(level=LogLevel.DEBUG, format=LogFormat.CONSOLE)
        return cls()


DEFAULT_LOGGING_CONFIG = LoggingConfig()
