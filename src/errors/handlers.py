"""Error responses and FastAPI exception handlers.

Every failure leaves the API as the same envelope::

    {"error": {"code", "message", "timestamp", "details"?, "request_id"?, "retry_after"?}}
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from src.errors.config import (
    DEFAULT_ERROR_CONFIG,
    ERROR_SEVERITY_MAP,
    ERROR_STATUS_MAP,
    ErrorCode,
    ErrorConfig,
    ErrorSeverity,
)
from src.errors.exceptions import RateLimited, RepoDeckError
from src.logging_config.context import get_request_id

logger = logging.getLogger(__name__)

_SEVERITY_LEVELS = {
    ErrorSeverity.LOW: logging.INFO,
    ErrorSeverity.MEDIUM: logging.WARNING,
    ErrorSeverity.HIGH: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}

GENERIC_INTERNAL_MESSAGE = "An internal error occurred"


@dataclass
class ErrorResponse:
    code: str
    message: str
    status_code: int = 500
    details: List[Dict[str, Any]] = field(default_factory=list)
    request_id: Optional[str] = None
    retry_after: Optional[int] = None
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> Dict[str, Any]:
        error: Dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "timestamp": self.timestamp,
        }
        optional = {
            "details": self.details,
            "request_id": self.request_id,
            "retry_after": self.retry_after,
        }
        error.update({k: v for k, v in optional.items() if v not in (None, "", [])})
        return {"error": error}


def create_error_response(
    error_code: ErrorCode,
    message: str,
    details: Optional[List[Dict[str, Any]]] = None,
    request_id: Optional[str] = None,
    status_code: Optional[int] = None,
    retry_after: Optional[int] = None,
) -> ErrorResponse:
    return ErrorResponse(
        code=error_code.value,
        message=message,
        status_code=status_code or ERROR_STATUS_MAP.get(error_code, 500),
        details=list(details or []),
        request_id=request_id,
        retry_after=retry_after,
    )


def _request_id(config: ErrorConfig) -> Optional[str]:
    return (get_request_id() or None) if config.include_request_id else None


def handle_app_error(exc: RepoDeckError, config: Optional[ErrorConfig] = None) -> ErrorResponse:
    """Render a taxonomy error, logging it at the level its severity calls for."""
    config = config or DEFAULT_ERROR_CONFIG

    if config.log_all_errors:
        severity = ERROR_SEVERITY_MAP.get(exc.error_code, ErrorSeverity.MEDIUM)
        logger.log(
            _SEVERITY_LEVELS[severity],
            "%s (%d): %s", exc.error_code.value, exc.status_code, exc.message,
            extra={"status_code": exc.status_code},
        )

    return create_error_response(
        error_code=exc.error_code,
        message=exc.message,
        details=exc.details,
        request_id=_request_id(config),
        status_code=exc.status_code,
        retry_after=exc.retry_after if isinstance(exc, RateLimited) else None,
    )


def handle_unhandled_error(exc: Exception, config: Optional[ErrorConfig] = None) -> ErrorResponse:
    """Render anything outside the taxonomy as a 500.

    The exception text is only exposed when ``suppress_internal_details``
    is off; it may carry connection strings or other internals.
    """
    config = config or DEFAULT_ERROR_CONFIG
    logger.error("Unhandled %s", type(exc).__name__, exc_info=(type(exc), exc, exc.__traceback__))

    message = GENERIC_INTERNAL_MESSAGE
    if not config.suppress_internal_details:
        message = f"{type(exc).__name__}: {exc}"

    return create_error_response(ErrorCode.INTERNAL_ERROR, message, request_id=_request_id(config))


def register_exception_handlers(app: Any, config: Optional[ErrorConfig] = None) -> None:
    """Install the RepoDeckError handler on a FastAPI app."""
    from fastapi.responses import JSONResponse

    config = config or DEFAULT_ERROR_CONFIG
    app.state.error_config = config

    async def repodeck_error_handler(request: Any, exc: RepoDeckError) -> JSONResponse:
        rendered = handle_app_error(exc, config)
        return JSONResponse(rendered.to_dict(), status_code=rendered.status_code, headers=exc.headers or None)

    app.add_exception_handler(RepoDeckError, repodeck_error_handler)
