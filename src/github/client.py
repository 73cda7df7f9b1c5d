"""GitHub GraphQL transport.

Fetches the authenticated viewer's repositories one page at a time.
Failures are raised raw (``ProviderError``, aiohttp or timeout errors);
turning them into application errors is the aggregator's job.
"""

import json
import logging
from typing import Any, Dict, Optional

import aiohttp

from src.github.models import Repository
from src.github.provider import Page, ProviderError

logger = logging.getLogger(__name__)

GITHUB_GRAPHQL_URL = "https://api.github.com/graphql"
GRAPHQL_PAGE_SIZE = 100

REPOSITORIES_QUERY = """
query($cursor: String, $pageSize: Int!) {
  viewer {
    repositories(first: $pageSize, after: $cursor, orderBy: {field: UPDATED_AT, direction: DESC}) {
      pageInfo {
        hasNextPage
        endCursor
      }
      nodes {
        id
        databaseId
        name
        nameWithOwner
        url
        description
        isPrivate
        isFork
        stargazerCount
        forkCount
        defaultBranchRef { name }
        createdAt
        updatedAt
        pushedAt
        primaryLanguage { name }
        owner { login avatarUrl }
        issues(states: OPEN) { totalCount }
        pullRequests(states: OPEN) { totalCount }
        latestRelease { tagName name publishedAt }
        watchers { totalCount }
      }
    }
  }
}
"""


class GitHubGraphQLClient:
    """Page provider over the GitHub GraphQL API.

    Args:
        token: Personal access token used as the bearer credential.
        url: GraphQL endpoint.
        page_size: Repositories requested per page (GitHub caps this at 100).
        timeout_seconds: Total time allowed for one page request.
        session: Optional shared aiohttp session; one is created lazily otherwise.
    """

    def __init__(
        self,
        token: str,
        url: str = GITHUB_GRAPHQL_URL,
        page_size: int = GRAPHQL_PAGE_SIZE,
        timeout_seconds: float = 120.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        if not 1 <= page_size <= 100:
            raise ValueError("page_size must be between 1 and 100")
        self._token = token
        self.url = url
        self.page_size = page_size
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session = session
        self._owns_session = session is None

    def __repr__(self) -> str:
        return f"GitHubGraphQLClient(url={self.url!r}, page_size={self.page_size})"

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def aclose(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def fetch_page(self, cursor: Optional[str]) -> Page:
        """Request one page of repositories starting after ``cursor``."""
        payload = {
            "query": REPOSITORIES_QUERY,
            "variables": {"cursor": cursor, "pageSize": self.page_size},
        }
        headers = {
            "Authorization": f"bearer {self._token}",
            "Accept": "application/json",
            "User-Agent": "repodeck",
        }

        session = self._get_session()
        async with session.post(self.url, json=payload, headers=headers, timeout=self.timeout) as resp:
            body = _parse_body(await resp.text())
            response_headers = dict(resp.headers)

            if resp.status != 200:
                message = body.get("message") or resp.reason or ""
                raise ProviderError(
                    f"GitHub API HTTP {resp.status}: {message}",
                    status=resp.status,
                    messages=[message],
                    error_types=[e.get("type", "") for e in body.get("errors") or [] if isinstance(e, dict)],
                    headers=response_headers,
                )

        errors = body.get("errors")
        if errors:
            messages = [e.get("message", "") for e in errors if isinstance(e, dict)]
            raise ProviderError(
                f"GraphQL API error: {', '.join(messages)}",
                status=resp.status,
                messages=messages,
                error_types=[e.get("type", "") for e in errors if isinstance(e, dict)],
                headers=response_headers,
            )

        return _to_page(body, response_headers)


def _parse_body(text: str) -> Dict[str, Any]:
    if not text:
        return {}
    try:
        parsed = json.loads(text)
    except ValueError:
        return {}
    return parsed if isinstance(parsed, dict) else {}


def _to_page(body: Dict[str, Any], headers: Dict[str, str]) -> Page:
    try:
        connection = body["data"]["viewer"]["repositories"]
        page_info = connection["pageInfo"]
        nodes = connection["nodes"]
        records = [Repository.from_graphql(node) for node in nodes if node]
        has_next_page = bool(page_info["hasNextPage"])
        end_cursor = page_info.get("endCursor")
    except (KeyError, TypeError) as e:
        raise ProviderError(
            f"Malformed GraphQL response: missing {e}",
            status=200,
            headers=headers,
        ) from e

    return Page(records=records, has_next_page=has_next_page, end_cursor=end_cursor)
