"""FastAPI Dependencies.

Hand route handlers the services owned by the application container.
"""

from fastapi import Request

from src.api.container import AppContainer
from src.services.credentials import CredentialService
from src.services.repositories import RepositoryService


def get_container(request: Request) -> AppContainer:
    return request.app.state.container


def get_credential_service(request: Request) -> CredentialService:
    return get_container(request).credentials


def get_repository_service(request: Request) -> RepositoryService:
    return get_container(request).repositories
