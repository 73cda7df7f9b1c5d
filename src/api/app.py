"""FastAPI Application Factory.

Builds the RepoDeck app: one AppContainer per process, created in the
lifespan and torn down with it.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from src.api.config import APIConfig, DEFAULT_API_CONFIG
from src.api.container import AppContainer, ProviderFactory
from src.api.models import HealthResponse
from src.api.routes import credentials as credential_routes
from src.api.routes import repositories as repository_routes
from src.errors.handlers import register_exception_handlers
from src.errors.middleware import ErrorHandlingMiddleware
from src.logging_config import LoggingConfig, configure_logging
from src.logging_config.middleware import RequestTracingMiddleware
from src.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def _component_status(container: AppContainer) -> Dict[str, str]:
    status = {"cache": "destroyed" if container.cache.destroyed else "ok"}
    try:
        with container.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        status["database"] = "ok"
    except Exception as exc:
        logger.warning("Health check: database unreachable (%s)", type(exc).__name__)
        status["database"] = f"error: {type(exc).__name__}"
    return status


def create_app(
    settings: Optional[Settings] = None,
    config: Optional[APIConfig] = None,
    provider_factory: Optional[ProviderFactory] = None,
) -> FastAPI:
    """Build the FastAPI application.

    Requests pass RequestTracing, then ErrorHandling, then CORS before
    reaching a route.

    Args:
        settings: Runtime settings. Loaded from the environment if not provided.
        config: API configuration. Uses defaults if not provided.
        provider_factory: Overrides the GitHub client, mainly for tests.

    Returns:
        The app; nothing is connected until the lifespan starts.
    """
    settings = settings or get_settings()
    config = config or DEFAULT_API_CONFIG

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(LoggingConfig.for_environment(settings.environment))
        app.state.container = AppContainer.build(settings, provider_factory)
        logger.info("RepoDeck API starting up (environment=%s)", settings.environment)
        try:
            yield
        finally:
            app.state.container.close()
            logger.info("RepoDeck API shut down")

    app = FastAPI(
        title=config.title,
        version=config.version,
        description=config.description,
        docs_url=config.docs_url,
        lifespan=lifespan,
    )

    # add_middleware prepends: last added runs first
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins or config.cors_origins,
        allow_credentials=True,
        allow_methods=config.cors_methods,
        allow_headers=config.cors_headers,
    )
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestTracingMiddleware)

    register_exception_handlers(app)

    @app.get("/health", response_model=HealthResponse)
    async def health():
        components = await asyncio.to_thread(_component_status, app.state.container)
        overall = "ok" if all(v == "ok" for v in components.values()) else "degraded"
        return HealthResponse(status=overall, version=config.version, components=components)

    app.include_router(credential_routes.router, prefix=config.prefix)
    app.include_router(repository_routes.router, prefix=config.prefix)

    logger.debug("RepoDeck API v%s created", config.version)
    return app
