"""Repository listing for the stored credential."""

import logging

from fastapi import APIRouter, Depends, Query, Response

from src.api.dependencies import get_credential_service, get_repository_service
from src.api.models import RepositoriesResponse
from src.services.credentials import CredentialService
from src.services.repositories import RepositoryService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/repositories", tags=["Repositories"])


@router.get("", response_model=RepositoriesResponse)
async def list_repositories(
    response: Response,
    refresh: bool = Query(False, description="Bypass the cache and fetch from GitHub"),
    credentials: CredentialService = Depends(get_credential_service),
    repositories: RepositoryService = Depends(get_repository_service),
):
    """Every repository visible to the stored token, cached for a few minutes."""
    result = await repositories.fetch_for_stored_identity(credentials, force_refresh=refresh)

    if not result.from_cache:
        ttl = int(repositories.ttl_seconds or repositories.cache.default_ttl)
        response.headers["Cache-Control"] = f"private, max-age={ttl}"

    return RepositoriesResponse(
        count=result.count,
        repositories=[r.to_dict() for r in result.records],
        cached=result.from_cache,
        cached_at=result.cached_at,
        truncated=result.truncated,
    )
