"""Paginated fetch aggregation.

Drives a cursor-based provider until it reports no further pages or a
hard page ceiling is reached, then returns the concatenated records.
The aggregator is also the single place where raw provider failures are
turned into the error taxonomy in :mod:`src.errors`.
"""

import asyncio
import enum
import logging
import re
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional, Tuple

import aiohttp

from src.errors.exceptions import (
    AuthRejected,
    RateLimited,
    RepoDeckError,
    TransientNetworkError,
    UpstreamError,
    UpstreamTimeout,
)
from src.github.provider import PageProvider, ProviderError
from src.logging_config.performance import PerformanceTimer

logger = logging.getLogger(__name__)

MAX_PAGES = 100
DEFAULT_PAGE_TIMEOUT_SECONDS = 120.0
DEFAULT_RETRY_AFTER_SECONDS = 3600

_BAD_CREDENTIALS = re.compile(r"bad credentials", re.IGNORECASE)
_RATE_LIMIT = re.compile(r"rate limit|quota exhausted", re.IGNORECASE)


class AggregationState(enum.Enum):
    START = "start"
    REQUEST_PAGE = "request_page"
    MORE = "more"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class AggregatedResult:
    """Records from every fetched page, in provider order."""

    records: Tuple[Any, ...]
    page_count: int
    truncated: bool
    fetched_at: datetime

    @property
    def count(self) -> int:
        return len(self.records)


def _retry_after_from_headers(headers: dict, default: int) -> int:
    value = headers.get("retry-after")
    if value and value.strip().isdigit():
        return int(value.strip())

    reset = headers.get("x-ratelimit-reset")
    if reset and reset.strip().isdigit():
        remaining = int(reset.strip()) - int(time.time())
        if remaining > 0:
            return remaining

    return default


def classify_provider_failure(
    exc: BaseException,
    default_retry_after: int = DEFAULT_RETRY_AFTER_SECONDS,
) -> RepoDeckError:
    """Map a raw provider failure onto the application error taxonomy.

    Classification order:
        timeout → UpstreamTimeout
        connection failure → TransientNetworkError
        401 / "Bad credentials" → AuthRejected
        RATE_LIMITED type, rate-limit wording, 403/429, or an exhausted
        quota header → RateLimited
        anything else → UpstreamError
    """
    if isinstance(exc, RepoDeckError):
        return exc
    if isinstance(exc, asyncio.TimeoutError):
        return UpstreamTimeout()
    if isinstance(exc, aiohttp.ClientError):
        return TransientNetworkError(f"Could not reach GitHub: {exc.__class__.__name__}")
    if not isinstance(exc, ProviderError):
        return UpstreamError()

    text = " ".join([str(exc), *exc.messages])

    if exc.status == 401 or _BAD_CREDENTIALS.search(text):
        return AuthRejected()

    rate_limited = (
        "RATE_LIMITED" in exc.error_types
        or _RATE_LIMIT.search(text) is not None
        or exc.status in (403, 429)
        or exc.headers.get("x-ratelimit-remaining") == "0"
    )
    if rate_limited:
        return RateLimited(retry_after=_retry_after_from_headers(exc.headers, default_retry_after))

    return UpstreamError(status=exc.status)


class FetchAggregator:
    """Collects every page a provider offers for one secret.

    Args:
        provider_factory: Builds a fresh page provider for a secret.
        max_pages: Hard ceiling on pages requested per aggregation.
        page_timeout: Seconds allowed for each page request.
        default_retry_after: Retry hint used when a rate limit carries none.
    """

    def __init__(
        self,
        provider_factory: Callable[[str], PageProvider],
        max_pages: int = MAX_PAGES,
        page_timeout: float = DEFAULT_PAGE_TIMEOUT_SECONDS,
        default_retry_after: int = DEFAULT_RETRY_AFTER_SECONDS,
    ):
        if max_pages < 1:
            raise ValueError("max_pages must be at least 1")
        self._provider_factory = provider_factory
        self.max_pages = max_pages
        self.page_timeout = page_timeout
        self.default_retry_after = default_retry_after

    async def fetch_all(self, secret: str) -> AggregatedResult:
        """Fetch every page for ``secret`` and concatenate the records.

        Raises:
            AuthRejected, RateLimited, UpstreamTimeout,
            TransientNetworkError, UpstreamError: on any page failure.
                Partial results are discarded.
        """
        provider = self._provider_factory(secret)
        records: List[Any] = []
        cursor: Optional[str] = None
        page_count = 0
        truncated = False
        state = AggregationState.START

        try:
            with PerformanceTimer("repository_aggregation", log=logger) as timer:
                while state not in (AggregationState.DONE, AggregationState.FAILED):
                    if state in (AggregationState.START, AggregationState.MORE):
                        if page_count >= self.max_pages:
                            truncated = True
                            logger.warning(
                                "Stopped after %d pages with more available; results are truncated",
                                page_count,
                                extra={"page_count": page_count, "record_count": len(records)},
                            )
                            state = AggregationState.DONE
                        else:
                            state = AggregationState.REQUEST_PAGE

                    elif state is AggregationState.REQUEST_PAGE:
                        try:
                            page = await asyncio.wait_for(
                                provider.fetch_page(cursor), timeout=self.page_timeout
                            )
                        except Exception as e:
                            state = AggregationState.FAILED
                            error = classify_provider_failure(e, self.default_retry_after)
                            logger.warning(
                                "Page %d failed: %s (%s)",
                                page_count + 1,
                                error.error_code.value,
                                e.__class__.__name__,
                                extra={"page_count": page_count},
                            )
                            raise error from e

                        page_count += 1
                        records.extend(page.records)

                        if page.has_next_page and page.end_cursor:
                            cursor = page.end_cursor
                            state = AggregationState.MORE
                        else:
                            if page.has_next_page:
                                logger.warning(
                                    "Provider reported more pages without a cursor; stopping"
                                )
                            state = AggregationState.DONE
        finally:
            await provider.aclose()

        logger.info(
            "Fetched %d records across %d pages in %.0fms",
            len(records),
            page_count,
            timer.duration_ms,
            extra={"page_count": page_count, "record_count": len(records)},
        )
        return AggregatedResult(
            records=tuple(records),
            page_count=page_count,
            truncated=truncated,
            fetched_at=datetime.now(timezone.utc),
        )
