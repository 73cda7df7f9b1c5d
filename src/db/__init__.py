"""Database package for the RepoDeck backend."""

from src.db.base import Base
from src.db.engine import create_db_engine, create_session_factory, init_db
from src.db.models import Credential

__all__ = [
    "Base",
    "create_db_engine",
    "create_session_factory",
    "init_db",
    "Credential",
]
