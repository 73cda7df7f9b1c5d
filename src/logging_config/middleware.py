"""ASGI Request Tracing Middleware.

Binds a request ID to every log line emitted while serving a request
and echoes it back to the client.
"""

import logging
import time
from typing import Any, Optional

from src.logging_config.config import DEFAULT_LOGGING_CONFIG, LoggingConfig
from src.logging_config.context import RequestContext, generate_request_id

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_ID_HEADER = "X-Correlation-ID"


def _header(scope: dict, name: str) -> Optional[str]:
    wanted = name.lower().encode()
    for key, value in scope.get("headers", []):
        if key == wanted and value:
            return value.decode("utf-8", errors="replace")
    return None


class RequestTracingMiddleware:
    """Tags each HTTP request with an ID and logs one line when it finishes.

    Usage:
        app.add_middleware(RequestTracingMiddleware, config=LoggingConfig())
    """

    def __init__(self, app: Any, config: Optional[LoggingConfig] = None):
        self.app = app
        self.config = config or DEFAULT_LOGGING_CONFIG

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = _header(scope, REQUEST_ID_HEADER) or generate_request_id()
        correlation_id = _header(scope, CORRELATION_ID_HEADER) or request_id
        method = scope.get("method", "")
        path = scope.get("path", "")
        should_log = path not in self.config.exclude_paths
        status_code = 500
        start_time = time.perf_counter()

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 500)
                headers = list(message.get("headers", []))
                headers.append((REQUEST_ID_HEADER.lower().encode(), request_id.encode()))
                headers.append((CORRELATION_ID_HEADER.lower().encode(), correlation_id.encode()))
                message = {**message, "headers": headers}
            await send(message)

        with RequestContext(request_id=request_id, correlation_id=correlation_id):
            try:
                await self.app(scope, receive, send_wrapper)
            finally:
                if should_log:
                    duration_ms = (time.perf_counter() - start_time) * 1000
                    logger.log(
                        logging.WARNING if status_code >= 400 else logging.INFO,
                        "Request completed",
                        extra={
                            "method": method,
                            "path": path,
                            "status_code": status_code,
                            "duration_ms": round(duration_ms, 2),
                        },
                    )
