"""Centralized settings for the RepoDeck backend.

Uses pydantic-settings to load from environment variables (prefixed REPODECK_)
with defaults suitable for local development.
"""

import logging
from functools import lru_cache

from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

# Only ever used when REPODECK_ENCRYPTION_KEY is unset.
DEV_ENCRYPTION_KEY = "default-key-change-in-production"


class Settings(BaseSettings):
    """RepoDeck settings loaded from environment variables."""

    environment: str = "development"
    host: str = "127.0.0.1"
    port: int = 3001
    cors_origins: list[str] = ["http://localhost:5173"]

    # --- Credential encryption ---
    encryption_key: str = ""
    credential_identity: str = "default"

    # --- Database ---
    database_url: str = "sqlite:///data/repodeck.db"

    # --- Repository cache ---
    cache_ttl_seconds: int = 300
    cache_max_entries: int = 100
    cache_sweep_interval_seconds: float = 300.0

    # --- GitHub GraphQL ---
    github_graphql_url: str = "https://api.github.com/graphql"
    github_page_size: int = 100
    github_max_pages: int = 100
    github_page_timeout_seconds: float = 120.0
    rate_limit_retry_after_seconds: int = 3600

    model_config = {
        "env_prefix": "REPODECK_",
        "env_file": ".env",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton."""
    return Settings()


def resolve_master_key(settings: Settings) -> str:
    """Return the configured master key, falling back to the dev key.

    The fallback keeps local development unblocked and is logged loudly
    because anything encrypted with it is only as safe as this source file.
    """
    if settings.encryption_key:
        return settings.encryption_key

    logger.warning(
        "REPODECK_ENCRYPTION_KEY is not set; using the built-in development "
        "key. This is INSECURE and must never be used in production."
    )
    return DEV_ENCRYPTION_KEY
