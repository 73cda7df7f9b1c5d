"""Application services wiring the credential store, cache, and aggregator."""

from src.services.credentials import CredentialService
from src.services.repositories import FetchResult, RepositoryService

__all__ = ["CredentialService", "FetchResult", "RepositoryService"]
