"""Request-scoped log context.

A single ContextVar holds an immutable mapping of the fields bound for
the current request (request and correlation IDs plus anything bound
later, such as a partition key). Formatters read it on every record.
"""

import time
import uuid
from contextvars import ContextVar, Token
from types import MappingProxyType
from typing import Any, Mapping, Optional

_EMPTY: Mapping[str, Any] = MappingProxyType({})
_log_context: ContextVar[Mapping[str, Any]] = ContextVar("repodeck_log_context", default=_EMPTY)


def generate_request_id() -> str:
    return uuid.uuid4().hex


def get_request_id() -> str:
    return _log_context.get().get("request_id", "")


def get_correlation_id() -> str:
    return _log_context.get().get("correlation_id", "")


def get_context_dict() -> dict[str, Any]:
    """Copy of every field bound in the current context."""
    return dict(_log_context.get())


def _push(**fields: Any) -> Token:
    merged = {**_log_context.get(), **{k: v for k, v in fields.items() if v not in (None, "")}}
    return _log_context.set(MappingProxyType(merged))


class RequestContext:
    """Binds request identifiers to every log line emitted inside the block.

    The correlation ID defaults to the request ID, and a request ID is
    generated when none is given. Leaving the block restores whatever
    context was active before, so contexts nest.

    Example:
        with RequestContext(request_id="abc-123") as ctx:
            ctx.bind(partition_key=key)
            logger.info("fetching")
    """

    def __init__(
        self,
        request_id: Optional[str] = None,
        correlation_id: Optional[str] = None,
        **extra: Any,
    ):
        self.request_id = request_id or generate_request_id()
        self.correlation_id = correlation_id or self.request_id
        self.extra = dict(extra)
        self._started = time.perf_counter()
        self._tokens: list[Token] = []

    def __enter__(self) -> "RequestContext":
        self._tokens.append(_push(
            request_id=self.request_id,
            correlation_id=self.correlation_id,
            **self.extra,
        ))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        # Unwind binds made inside the block, newest first
        while self._tokens:
            _log_context.reset(self._tokens.pop())

    @property
    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self._started) * 1000

    def bind(self, **fields: Any) -> None:
        """Add fields to the active context until the block exits."""
        self.extra.update(fields)
        self._tokens.append(_push(**fields))
