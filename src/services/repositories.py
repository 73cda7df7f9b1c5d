"""Cached repository aggregation.

Fresh results are cached per credential under a partition key derived
from a one-way hash of the credential; failed fetches never touch the
cache.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional, Tuple

from src.cache.expiring import ExpiringCache
from src.cache.keys import repositories_key
from src.errors.exceptions import NoCredentialsError
from src.github.aggregator import AggregatedResult, FetchAggregator
from src.secrets_vault.identity import derive_partition_key
from src.services.credentials import CredentialService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchResult:
    records: Tuple[Any, ...]
    from_cache: bool
    cached_at: Optional[datetime] = None
    truncated: bool = False

    @property
    def count(self) -> int:
        return len(self.records)


@dataclass(frozen=True)
class _CachedRepositories:
    result: AggregatedResult
    cached_at: datetime


class RepositoryService:
    """Serves aggregated repositories, from cache when fresh.

    Args:
        cache: Shared expiring cache.
        aggregator: Fetch aggregator used on a cache miss.
        ttl_seconds: Maximum age of a cached result; None uses the cache default.
    """

    def __init__(
        self,
        cache: ExpiringCache,
        aggregator: FetchAggregator,
        ttl_seconds: Optional[float] = None,
    ):
        self.cache = cache
        self.aggregator = aggregator
        self.ttl_seconds = ttl_seconds

    async def fetch_aggregated(self, secret: str, force_refresh: bool = False) -> FetchResult:
        """Return every repository visible to ``secret``.

        With ``force_refresh`` the cache is bypassed and overwritten.

        Raises:
            Any error from :meth:`FetchAggregator.fetch_all`; the cache is
            left untouched in that case.
        """
        partition_key = derive_partition_key(secret)
        cache_key = repositories_key(partition_key)

        if not force_refresh:
            cached = self.cache.get(cache_key, self.ttl_seconds)
            if cached is not None:
                logger.debug("Repository cache hit", extra={"partition_key": partition_key})
                return FetchResult(
                    records=cached.result.records,
                    from_cache=True,
                    cached_at=cached.cached_at,
                    truncated=cached.result.truncated,
                )

        result = await self.aggregator.fetch_all(secret)
        self.cache.set(
            cache_key,
            _CachedRepositories(result=result, cached_at=datetime.now(timezone.utc)),
        )
        logger.info(
            "Cached %d repositories",
            result.count,
            extra={"partition_key": partition_key, "record_count": result.count},
        )
        return FetchResult(records=result.records, from_cache=False, truncated=result.truncated)

    async def fetch_for_stored_identity(
        self,
        credentials: CredentialService,
        force_refresh: bool = False,
    ) -> FetchResult:
        """Load the stored secret and fetch with it.

        Raises:
            NoCredentialsError: Nothing is stored for the identity.
            DecryptionFailure: The stored secret is unusable.
        """
        secret = await credentials.get_secret()
        if secret is None:
            raise NoCredentialsError()
        return await self.fetch_aggregated(secret, force_refresh=force_refresh)
