"""Long-lived application state.

Everything shared between requests is built once here at startup and
torn down at shutdown; route handlers receive it by reference.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy.engine import Engine

from src.cache.expiring import ExpiringCache
from src.db.engine import create_db_engine, create_session_factory, init_db
from src.github.aggregator import FetchAggregator
from src.github.client import GitHubGraphQLClient
from src.github.provider import PageProvider
from src.secrets_vault.store import CredentialStore
from src.services.credentials import CredentialService
from src.services.repositories import RepositoryService
from src.settings import Settings, resolve_master_key

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[str], PageProvider]


def github_provider_factory(settings: Settings) -> ProviderFactory:
    """Build a factory returning a fresh GraphQL client per secret."""

    def factory(secret: str) -> PageProvider:
        return GitHubGraphQLClient(
            secret,
            url=settings.github_graphql_url,
            page_size=settings.github_page_size,
            timeout_seconds=settings.github_page_timeout_seconds,
        )

    return factory


@dataclass
class AppContainer:
    settings: Settings
    engine: Engine
    store: CredentialStore
    cache: ExpiringCache
    aggregator: FetchAggregator
    credentials: CredentialService
    repositories: RepositoryService

    @classmethod
    def build(
        cls,
        settings: Settings,
        provider_factory: Optional[ProviderFactory] = None,
    ) -> "AppContainer":
        engine = create_db_engine(settings.database_url)
        init_db(engine)
        store = CredentialStore(create_session_factory(engine), resolve_master_key(settings))

        cache = ExpiringCache(
            max_entries=settings.cache_max_entries,
            default_ttl=settings.cache_ttl_seconds,
            sweep_interval=settings.cache_sweep_interval_seconds,
        )
        aggregator = FetchAggregator(
            provider_factory or github_provider_factory(settings),
            max_pages=settings.github_max_pages,
            page_timeout=settings.github_page_timeout_seconds,
            default_retry_after=settings.rate_limit_retry_after_seconds,
        )

        logger.info("Application container built (database=%s)", engine.url.get_backend_name())
        return cls(
            settings=settings,
            engine=engine,
            store=store,
            cache=cache,
            aggregator=aggregator,
            credentials=CredentialService(store, settings.credential_identity),
            repositories=RepositoryService(cache, aggregator, settings.cache_ttl_seconds),
        )

    def close(self) -> None:
        self.cache.destroy()
        self.engine.dispose()
        logger.info("Application container closed")
