"""Last-resort error middleware.

Sits below request tracing and above the router. Anything that escapes
the route layer before a response has started is turned into the JSON
error envelope; once headers are on the wire the exception is re-raised.
"""

import json
import logging
import time
from typing import Any, Dict, List, Optional, Tuple

from src.errors.config import DEFAULT_ERROR_CONFIG, ErrorConfig
from src.errors.exceptions import RepoDeckError
from src.errors.handlers import ErrorResponse, handle_app_error, handle_unhandled_error

logger = logging.getLogger(__name__)

SLOW_REQUEST_MS = 5000


class ErrorHandlingMiddleware:
    """Pure ASGI middleware; only ``http`` scopes are intercepted."""

    def __init__(self, app: Any, config: Optional[ErrorConfig] = None):
        self.app = app
        self.config = config or DEFAULT_ERROR_CONFIG

    async def __call__(self, scope: Dict[str, Any], receive: Any, send: Any) -> None:
        if scope["type"] != "http":
            return await self.app(scope, receive, send)

        started = time.perf_counter()
        state = {"started": False}

        async def tracking_send(message: Dict[str, Any]) -> None:
            if message["type"] == "http.response.start":
                state["started"] = True
            await send(message)

        try:
            await self.app(scope, receive, tracking_send)
        except Exception as exc:
            if state["started"]:
                raise
            if isinstance(exc, RepoDeckError):
                rendered, headers = handle_app_error(exc, self.config), exc.headers
            else:
                rendered, headers = handle_unhandled_error(exc, self.config), {}
            await _send_json(send, rendered, headers)
        finally:
            elapsed = (time.perf_counter() - started) * 1000
            if elapsed > SLOW_REQUEST_MS:
                logger.warning(
                    "Slow request %s took %.0fms", scope.get("path", "?"), elapsed,
                    extra={"duration_ms": round(elapsed, 2), "path": scope.get("path")},
                )


async def _send_json(send: Any, rendered: ErrorResponse, headers: Dict[str, str]) -> None:
    body = json.dumps(rendered.to_dict()).encode("utf-8")
    raw_headers: List[Tuple[bytes, bytes]] = [
        (b"content-type", b"application/json"),
        (b"content-length", str(len(body)).encode("latin-1")),
    ]
    raw_headers.extend((k.encode("latin-1"), v.encode("latin-1")) for k, v in headers.items())

    await send({"type": "http.response.start", "status": rendered.status_code, "headers": raw_headers})
    await send({"type": "http.response.body", "body": body})
