"""SQLAlchemy ORM models for the RepoDeck backend.

Tables:
- credentials: one encrypted provider token per identity
"""

from sqlalchemy import Column, DateTime, Integer, String, Text, func

from src.db.base import Base


class Credential(Base):
    """Encrypted credential, unique per identity.

    ``encrypted_secret`` holds the base64 blob produced by
    ``src.secrets_vault.cipher.encrypt``; plaintext is never stored.
    """

    __tablename__ = "credentials"

    id = Column(Integer, primary_key=True, autoincrement=True)
    identity = Column(String(100), unique=True, nullable=False, index=True, default="default")
    encrypted_secret = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        # Never render the secret, even encrypted
        return f"<Credential identity={self.identity!r} updated_at={self.updated_at}>"
