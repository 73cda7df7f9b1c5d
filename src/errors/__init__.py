"""Error Taxonomy & API Error Handling.

Provides the closed set of exceptions raised by the credential and
fetch core, structured error responses, and FastAPI exception handlers.
"""

from src.errors.config import (
    ErrorCode,
    ErrorConfig,
    ErrorSeverity,
)
from src.errors.exceptions import (
    AuthRejected,
    DecryptionFailure,
    InternalError,
    NoCredentialsError,
    RateLimited,
    RepoDeckError,
    TransientNetworkError,
    UpstreamError,
    UpstreamTimeout,
    ValidationError,
)
from src.errors.handlers import (
    ErrorResponse,
    create_error_response,
    register_exception_handlers,
)
from src.errors.middleware import ErrorHandlingMiddleware

__all__ = [
    # Config
    "ErrorCode",
    "ErrorConfig",
    "ErrorSeverity",
    # Exceptions
    "AuthRejected",
    "DecryptionFailure",
    "InternalError",
    "NoCredentialsError",
    "RateLimited",
    "RepoDeckError",
    "TransientNetworkError",
    "UpstreamError",
    "UpstreamTimeout",
    "ValidationError",
    # Handlers
    "ErrorResponse",
    "create_error_response",
    "register_exception_handlers",
    # Middleware
    "ErrorHandlingMiddleware",
]
