"""API Request/Response Models.

Pydantic schemas for all API endpoints.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


# ─── Common ──────────────────────────────────────────────────────────────


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "1.0.0"
    components: dict[str, str] = Field(default_factory=dict)


class MessageResponse(BaseModel):
    success: bool = True
    message: str


# ─── Credentials ─────────────────────────────────────────────────────────


class SaveCredentialsRequest(BaseModel):
    """Body of POST /credentials. Validation of the format happens in the service."""

    token: Optional[str] = None


class CredentialStatusResponse(BaseModel):
    """Whether a credential is stored. Never carries the token."""

    exists: bool
    message: str


# ─── Repositories ────────────────────────────────────────────────────────


class RepositoriesResponse(BaseModel):
    success: bool = True
    count: int
    repositories: list[dict[str, Any]]
    cached: bool
    cached_at: Optional[datetime] = None
    truncated: bool = False
