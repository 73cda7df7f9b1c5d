"""Error codes, their HTTP status and log severity, and handler options.

The two maps below must cover every ErrorCode; the handlers look codes
up in both.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict


class ErrorCode(Enum):
    """The `code` field of every error envelope."""

    # Validation errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_TOKEN_FORMAT = "INVALID_TOKEN_FORMAT"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"

    # Stored or supplied credential problems
    NO_CREDENTIALS = "NO_CREDENTIALS"
    BAD_CREDENTIALS = "BAD_CREDENTIALS"
    DECRYPTION_FAILED = "DECRYPTION_FAILED"

    # GitHub failures, classified by the aggregator
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    UPSTREAM_TIMEOUT = "UPSTREAM_TIMEOUT"
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
    FETCH_ERROR = "FETCH_ERROR"

    # Server errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"


class ErrorSeverity(Enum):
    """Decides the log level an error is reported at."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# Upstream failures surface as 5xx gateway codes, never 500
ERROR_STATUS_MAP: Dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.INVALID_TOKEN_FORMAT: 400,
    ErrorCode.MISSING_REQUIRED_FIELD: 400,
    ErrorCode.NO_CREDENTIALS: 401,
    ErrorCode.BAD_CREDENTIALS: 401,
    ErrorCode.DECRYPTION_FAILED: 422,
    ErrorCode.RATE_LIMIT_EXCEEDED: 429,
    ErrorCode.UPSTREAM_TIMEOUT: 504,
    ErrorCode.UPSTREAM_UNAVAILABLE: 502,
    ErrorCode.FETCH_ERROR: 502,
    ErrorCode.INTERNAL_ERROR: 500,
    ErrorCode.DATABASE_ERROR: 500,
}


ERROR_SEVERITY_MAP: Dict[ErrorCode, ErrorSeverity] = {
    ErrorCode.VALIDATION_ERROR: ErrorSeverity.LOW,
    ErrorCode.INVALID_TOKEN_FORMAT: ErrorSeverity.LOW,
    ErrorCode.MISSING_REQUIRED_FIELD: ErrorSeverity.LOW,
    ErrorCode.NO_CREDENTIALS: ErrorSeverity.LOW,
    ErrorCode.BAD_CREDENTIALS: ErrorSeverity.MEDIUM,
    ErrorCode.DECRYPTION_FAILED: ErrorSeverity.HIGH,
    ErrorCode.RATE_LIMIT_EXCEEDED: ErrorSeverity.MEDIUM,
    ErrorCode.UPSTREAM_TIMEOUT: ErrorSeverity.MEDIUM,
    ErrorCode.UPSTREAM_UNAVAILABLE: ErrorSeverity.MEDIUM,
    ErrorCode.FETCH_ERROR: ErrorSeverity.HIGH,
    ErrorCode.INTERNAL_ERROR: ErrorSeverity.CRITICAL,
    ErrorCode.DATABASE_ERROR: ErrorSeverity.CRITICAL,
}


@dataclass
class ErrorConfig:
    """Knobs read by handle_app_error and handle_unhandled_error."""

    include_request_id: bool = True
    log_all_errors: bool = True
    suppress_internal_details: bool = True


DEFAULT_ERROR_CONFIG = ErrorConfig()
