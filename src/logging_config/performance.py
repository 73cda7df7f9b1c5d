"""Timing for named operations.

Used around the aggregator's page loop so a slow or failed GitHub run
leaves one log line with its duration and page count.
"""

import logging
import time
from typing import Any, Optional

from src.logging_config.config import DEFAULT_LOGGING_CONFIG

logger = logging.getLogger(__name__)


class PerformanceTimer:
    """Context manager that logs how long its block took.

    Failures are logged at ERROR and re-raised, blocks at or over
    ``threshold_ms`` at WARNING, everything else at DEBUG. Keyword
    arguments are attached to the record as ``extra`` fields.

    Example:
        with PerformanceTimer("fetch_all", log=logger, partition_key=pk) as timer:
            ...
        timer.duration_ms
    """

    def __init__(
        self,
        operation_name: str,
        threshold_ms: Optional[float] = None,
        log: Optional[logging.Logger] = None,
        **extra: Any,
    ):
        self.operation_name = operation_name
        self.threshold_ms = threshold_ms or DEFAULT_LOGGING_CONFIG.slow_threshold_ms
        self.log = log or logger
        self.extra = extra
        self._started = 0.0
        self.duration_ms = 0.0

    def __enter__(self) -> "PerformanceTimer":
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.duration_ms = (time.perf_counter() - self._started) * 1000
        fields = dict(self.extra, duration_ms=round(self.duration_ms, 2))

        if exc_type is not None:
            self.log.error(
                "%s failed after %.1fms: %s",
                self.operation_name, self.duration_ms, exc_type.__name__, extra=fields,
            )
        elif self.duration_ms >= self.threshold_ms:
            self.log.warning(
                "Slow operation: %s took %.1fms", self.operation_name, self.duration_ms, extra=fields,
            )
        else:
            self.log.debug("%s took %.1fms", self.operation_name, self.duration_ms, extra=fields)
