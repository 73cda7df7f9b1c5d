"""Repository records as returned to callers.

GraphQL nodes are flattened into the REST-style shape the dashboard
consumes.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class RepositoryOwner:
    login: str
    avatar_url: str


@dataclass(frozen=True)
class LatestRelease:
    tag_name: str
    name: str
    published_at: str


@dataclass(frozen=True)
class Repository:
    """A single repository visible to the authenticated viewer."""

    id: int
    name: str
    full_name: str
    html_url: str
    description: Optional[str]
    private: bool
    fork: bool
    stargazers_count: int
    watchers_count: int
    forks_count: int
    open_issues_count: int
    default_branch: str
    created_at: str
    updated_at: str
    pushed_at: str
    language: Optional[str]
    owner: RepositoryOwner
    latest_release: Optional[LatestRelease] = None
    open_prs_count: int = 0

    @classmethod
    def from_graphql(cls, node: Dict[str, Any]) -> "Repository":
        """Map a ``viewer.repositories`` node."""
        release = node.get("latestRelease")
        default_branch = node.get("defaultBranchRef") or {}
        language = node.get("primaryLanguage") or {}
        owner = node.get("owner") or {}

        return cls(
            id=node["databaseId"],
            name=node["name"],
            full_name=node["nameWithOwner"],
            html_url=node["url"],
            description=node.get("description"),
            private=bool(node.get("isPrivate", False)),
            fork=bool(node.get("isFork", False)),
            stargazers_count=node.get("stargazerCount", 0),
            watchers_count=(node.get("watchers") or {}).get("totalCount", 0),
            forks_count=node.get("forkCount", 0),
            open_issues_count=(node.get("issues") or {}).get("totalCount", 0),
            default_branch=default_branch.get("name") or "main",
            created_at=node.get("createdAt", ""),
            updated_at=node.get("updatedAt", ""),
            pushed_at=node.get("pushedAt") or "",
            language=language.get("name"),
            owner=RepositoryOwner(
                login=owner.get("login", ""),
                avatar_url=owner.get("avatarUrl", ""),
            ),
            latest_release=LatestRelease(
                tag_name=release["tagName"],
                name=release.get("name") or release["tagName"],
                published_at=release.get("publishedAt") or "",
            ) if release else None,
            open_prs_count=(node.get("pullRequests") or {}).get("totalCount", 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
