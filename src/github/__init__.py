"""GitHub repository fetching: GraphQL transport and page aggregation."""

from src.github.aggregator import (
    MAX_PAGES,
    AggregatedResult,
    AggregationState,
    FetchAggregator,
    classify_provider_failure,
)
from src.github.client import GitHubGraphQLClient
from src.github.models import LatestRelease, Repository, RepositoryOwner
from src.github.provider import Page, PageProvider, ProviderError

__all__ = [
    # Aggregation
    "MAX_PAGES",
    "AggregatedResult",
    "AggregationState",
    "FetchAggregator",
    "classify_provider_failure",
    # Transport
    "GitHubGraphQLClient",
    "Page",
    "PageProvider",
    "ProviderError",
    # Records
    "LatestRelease",
    "Repository",
    "RepositoryOwner",
]
