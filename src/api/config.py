"""API Configuration.

Settings for the REST surface: metadata, route prefix, and CORS.
"""

from dataclasses import dataclass, field


@dataclass
class APIConfig:
    """Core API settings."""

    title: str = "RepoDeck API"
    version: str = "1.0.0"
    description: str = "GitHub repository dashboard backend"
    prefix: str = "/api"
    docs_url: str = "/docs"
    cors_origins: list[str] = field(default_factory=lambda: [
        "http://localhost:5173",   # Vite dev server
    ])
    cors_methods: list[str] = field(default_factory=lambda: ["GET", "POST", "DELETE", "OPTIONS"])
    cors_headers: list[str] = field(default_factory=lambda: ["*"])


DEFAULT_API_CONFIG = APIConfig()
