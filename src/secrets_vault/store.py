"""Encrypted credential store.

Persists exactly one encrypted secret per identity. Encryption and
decryption go through :mod:`src.secrets_vault.cipher`; the database only
ever sees the opaque blob.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from src.db.models import Credential
from src.errors.exceptions import DecryptionFailure
from src.secrets_vault import cipher

logger = logging.getLogger(__name__)

# Dialects with a native single-statement upsert
_UPSERT_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": pg_insert,
}


class CredentialStore:
    """Encrypted key/value store with one row per identity.

    Args:
        session_factory: SQLAlchemy sessionmaker bound to the backing database.
        master_key: Process-wide master key used for every encrypt/decrypt.
    """

    def __init__(self, session_factory: sessionmaker, master_key: str):
        if not master_key:
            raise ValueError("CredentialStore requires a master key")
        self._session_factory = session_factory
        self._master_key = master_key
        bind = session_factory.kw.get("bind")
        self._dialect = bind.dialect.name if bind is not None else ""

    def upsert(self, identity: str, secret: str) -> None:
        """Encrypt ``secret`` and create or overwrite the row for ``identity``."""
        # Key derivation is slow; keep it outside the transaction.
        encrypted = cipher.encrypt(secret, self._master_key)
        now = datetime.now(timezone.utc)

        insert = _UPSERT_INSERTS.get(self._dialect)
        if insert is None:
            self._portable_upsert(identity, encrypted, now)
        else:
            with self._session_factory.begin() as session:
                stmt = insert(Credential).values(
                    identity=identity,
                    encrypted_secret=encrypted,
                    created_at=now,
                    updated_at=now,
                )
                stmt = stmt.on_conflict_do_update(
                    index_elements=["identity"],
                    set_={
                        "encrypted_secret": stmt.excluded.encrypted_secret,
                        "updated_at": stmt.excluded.updated_at,
                    },
                )
                session.execute(stmt)
        logger.info("Stored credential for identity %s", identity)

    def _portable_upsert(self, identity: str, encrypted: str, now: datetime) -> None:
        """Update-then-insert for dialects without ON CONFLICT.

        A concurrent insert of the same identity trips the unique
        constraint; the second attempt then finds the row and updates it.
        """
        for attempt in range(2):
            try:
                with self._session_factory.begin() as session:
                    result = session.execute(
                        update(Credential)
                        .where(Credential.identity == identity)
                        .values(encrypted_secret=encrypted, updated_at=now)
                    )
                    if result.rowcount == 0:
                        session.add(Credential(
                            identity=identity,
                            encrypted_secret=encrypted,
                            created_at=now,
                            updated_at=now,
                        ))
                return
            except IntegrityError:
                if attempt:
                    raise
                logger.debug("Concurrent insert for identity %s, retrying as update", identity)

    def get(self, identity: str) -> Optional[str]:
        """Return the decrypted secret, or None if nothing is stored.

        Raises:
            DecryptionFailure: If the stored blob cannot be authenticated.
        """
        with self._session_factory() as session:
            encrypted = self._load_blob(session, identity)

        if encrypted is None:
            return None

        try:
            return cipher.decrypt(encrypted, self._master_key)
        except DecryptionFailure:
            logger.error("Stored credential for identity %s failed to decrypt", identity)
            raise

    def delete(self, identity: str) -> None:
        """Delete the credential for ``identity``; absent rows are a no-op."""
        with self._session_factory.begin() as session:
            result = session.execute(delete(Credential).where(Credential.identity == identity))
        if result.rowcount:
            logger.info("Deleted credential for identity %s", identity)

    def exists(self, identity: str) -> bool:
        with self._session_factory() as session:
            return self._load_blob(session, identity) is not None

    def count(self, identity: str) -> int:
        """Number of rows stored for ``identity`` (0 or 1)."""
        with self._session_factory() as session:
            return len(session.execute(
                select(Credential.id).where(Credential.identity == identity)
            ).all())

    @staticmethod
    def _load_blob(session: Session, identity: str) -> Optional[str]:
        return session.execute(
            select(Credential.encrypted_secret).where(Credential.identity == identity)
        ).scalar_one_or_none()
