"""Paginated provider contract.

A provider answers one cursor-addressed page at a time. ``None`` as the
request cursor means "from the start"; a response without a cursor
means there is nothing further to fetch.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, Sequence


@dataclass(frozen=True)
class Page:
    """One page of provider records in provider order."""

    records: Sequence[Any]
    has_next_page: bool
    end_cursor: Optional[str] = None


class ProviderError(Exception):
    """Raw provider failure, before classification.

    Carries every signal the provider gave back: HTTP status, error
    messages, structured error types, and response headers (lower-cased).
    """

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        messages: Sequence[str] = (),
        error_types: Sequence[str] = (),
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(message)
        self.status = status
        self.messages = [m for m in messages if m]
        self.error_types = [t for t in error_types if t]
        self.headers = {k.lower(): v for k, v in (headers or {}).items()}


class PageProvider(Protocol):
    async def fetch_page(self, cursor: Optional[str]) -> Page: ...

    async def aclose(self) -> None: ...
