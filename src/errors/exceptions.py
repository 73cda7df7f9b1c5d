"""Custom Exception Hierarchy.

Defines the closed set of typed exceptions the credential and fetch
core may raise. Each maps to an error code and HTTP status so the
routing layer can render it without inspecting upstream shapes.
"""

from typing import Any, Dict, List, Optional

from src.errors.config import ErrorCode, ERROR_STATUS_MAP


class RepoDeckError(Exception):
    """Base exception for all RepoDeck errors.

    All custom exceptions inherit from this, allowing a single
    exception handler to catch the entire hierarchy.
    """

    retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[List[Dict[str, Any]]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = ERROR_STATUS_MAP.get(error_code, 500)
        self.details = details or []
        self.headers = headers or {}


class ValidationError(RepoDeckError):
    """Raised when input fails a format check, before any crypto or I/O."""

    def __init__(
        self,
        message: str = "Validation failed",
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        details: Optional[List[Dict[str, Any]]] = None,
        field: Optional[str] = None,
    ):
        if field and not details:
            details = [{"field": field, "issue": message}]
        super().__init__(message, error_code, details)


class NoCredentialsError(RepoDeckError):
    """Raised when an operation needs a stored credential and none exists."""

    def __init__(
        self,
        message: str = "No credentials configured. Please set up your GitHub token first.",
    ):
        super().__init__(message, ErrorCode.NO_CREDENTIALS)


class DecryptionFailure(RepoDeckError):
    """Raised when an encrypted blob is malformed or fails authentication.

    The stored credential is unusable and must be re-entered; it is
    never deleted automatically.
    """

    def __init__(self, message: str = "Stored credentials could not be decrypted"):
        super().__init__(message, ErrorCode.DECRYPTION_FAILED)


class AuthRejected(RepoDeckError):
    """Raised when the provider rejects the credential itself."""

    def __init__(
        self,
        message: str = "Invalid GitHub token. Please update your credentials.",
    ):
        super().__init__(message, ErrorCode.BAD_CREDENTIALS)


class RateLimited(RepoDeckError):
    """Raised when the provider signals quota exhaustion."""

    def __init__(
        self,
        message: str = "GitHub API rate limit exceeded. Please try again later.",
        retry_after: Optional[int] = None,
    ):
        headers = {}
        if retry_after is not None:
            headers["Retry-After"] = str(retry_after)
        super().__init__(message, ErrorCode.RATE_LIMIT_EXCEEDED, headers=headers)
        self.retry_after = retry_after


class UpstreamTimeout(RepoDeckError):
    """Raised when a page request exceeds its time bound."""

    retryable = True

    def __init__(self, message: str = "Timed out waiting for GitHub"):
        super().__init__(message, ErrorCode.UPSTREAM_TIMEOUT)


class TransientNetworkError(RepoDeckError):
    """Raised on connection-level failures talking to the provider."""

    retryable = True

    def __init__(self, message: str = "Could not reach GitHub"):
        super().__init__(message, ErrorCode.UPSTREAM_UNAVAILABLE)


class UpstreamError(RepoDeckError):
    """Provider failure that matched no more specific classification."""

    retryable = True

    def __init__(
        self,
        message: str = "Failed to fetch repositories. Please try again later.",
        status: Optional[int] = None,
    ):
        details = [{"upstream_status": status}] if status is not None else None
        super().__init__(message, ErrorCode.FETCH_ERROR, details)
        self.upstream_status = status


class InternalError(RepoDeckError):
    """Raised when persistence or another internal step fails unexpectedly."""

    def __init__(
        self,
        message: str = "An internal error occurred",
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
    ):
        super().__init__(message, error_code)
