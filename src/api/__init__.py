"""RepoDeck REST API.

Thin HTTP layer over the credential and repository services.

Example:
    from src.api import create_app
    app = create_app()
"""

from src.api.config import APIConfig, DEFAULT_API_CONFIG
from src.api.container import AppContainer, github_provider_factory
from src.api.models import (
    CredentialStatusResponse,
    HealthResponse,
    MessageResponse,
    RepositoriesResponse,
    SaveCredentialsRequest,
)
from src.api.app import create_app

__all__ = [
    # Config
    "APIConfig",
    "DEFAULT_API_CONFIG",
    # Container
    "AppContainer",
    "github_provider_factory",
    # Models
    "CredentialStatusResponse",
    "HealthResponse",
    "MessageResponse",
    "RepositoriesResponse",
    "SaveCredentialsRequest",
    # App
    "create_app",
]
