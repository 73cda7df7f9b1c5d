"""Credential lifecycle for the single configured identity.

The store does blocking database and key-derivation work, so every call
is pushed onto a worker thread to keep the event loop free.
"""

import asyncio
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from src.errors.config import ErrorCode
from src.errors.exceptions import InternalError
from src.secrets_vault.store import CredentialStore
from src.secrets_vault.validators import validate_token_format

logger = logging.getLogger(__name__)


class CredentialService:
    """save / has / delete / get for one identity's secret."""

    def __init__(self, store: CredentialStore, identity: str = "default"):
        self.store = store
        self.identity = identity

    async def save_secret(self, raw_secret: Optional[str]) -> None:
        """Validate and persist ``raw_secret``, replacing any existing one.

        Raises:
            ValidationError: Malformed secret; nothing is encrypted or stored.
            InternalError: The database write failed.
        """
        secret = validate_token_format(raw_secret)
        try:
            await asyncio.to_thread(self.store.upsert, self.identity, secret)
        except SQLAlchemyError as e:
            logger.error("Failed to save credentials: %s", e.__class__.__name__)
            raise InternalError("Failed to save credentials", ErrorCode.DATABASE_ERROR) from e

    async def has_secret(self) -> bool:
        try:
            return await asyncio.to_thread(self.store.exists, self.identity)
        except SQLAlchemyError as e:
            logger.error("Failed to check credentials: %s", e.__class__.__name__)
            raise InternalError("Failed to check credentials", ErrorCode.DATABASE_ERROR) from e

    async def delete_secret(self) -> None:
        """Remove the stored secret. Deleting nothing is not an error."""
        try:
            await asyncio.to_thread(self.store.delete, self.identity)
        except SQLAlchemyError as e:
            logger.error("Failed to delete credentials: %s", e.__class__.__name__)
            raise InternalError("Failed to delete credentials", ErrorCode.DATABASE_ERROR) from e

    async def get_secret(self) -> Optional[str]:
        """Decrypted secret, or None when nothing is stored.

        Raises:
            DecryptionFailure: The stored blob is unusable.
        """
        try:
            return await asyncio.to_thread(self.store.get, self.identity)
        except SQLAlchemyError as e:
            logger.error("Failed to load credentials: %s", e.__class__.__name__)
            raise InternalError("Failed to load credentials", ErrorCode.DATABASE_ERROR) from e
