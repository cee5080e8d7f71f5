# src/clipgate/main.py
"""Main entry point for the Clipgate application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from clipgate.api.v1 import (
    challenge_router,
    comments_router,
    likes_router,
    search_router,
    videos_router,
)
from clipgate.core.settings import Settings, get_settings
from clipgate.db.session import build_engine, build_session_factory, create_tables
from clipgate.services.container import GateServices, build_services

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(settings: Settings) -> None:
    """Configure root logging from ``LOG_LEVEL``."""
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)


def create_app(
    settings: Settings | None = None,
    *,
    services: GateServices | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Configuration to use; read from the environment when omitted.
        services: Pre-built gate components, mainly for tests.
    """
    settings = settings or (services.settings if services is not None else get_settings())
    configure_logging(settings)

    app = FastAPI(
        title=f"{settings.app_name} API",
        description="Submission gatekeeper for anonymous comments and video uploads",
        version=settings.app_version,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    # Add GZip middleware for compression
    app.add_middleware(GZipMiddleware)

    # Include API routers
    app.include_router(challenge_router, prefix="/api/v1")
    app.include_router(comments_router, prefix="/api/v1")
    app.include_router(videos_router, prefix="/api/v1")
    app.include_router(likes_router, prefix="/api/v1")
    app.include_router(search_router, prefix="/api/v1")

    engine = build_engine(settings.database_url, echo=settings.sql_debug)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.services = services or build_services(settings)

    @app.on_event("startup")
    async def on_startup() -> None:
        if settings.create_tables_on_startup:
            create_tables(engine)
        if not settings.challenge_configured:
            logger.warning("CAPTCHA_SALT is not set; challenges cannot be issued or verified")
        logger.info(
            "%s started (rate limit backend: %s)",
            settings.app_name,
            settings.rate_limit_backend,
        )

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        await app.state.services.close()
        engine.dispose()

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint to verify the service is running."""
        return {"status": "ok"}

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint with basic information about the API."""
        return {
            "name": f"{settings.app_name} API",
            "version": settings.app_version,
            "description": "Submission gatekeeper for anonymous comments and video uploads",
            "docs": "/docs",
            "redoc": "/redoc",
        }

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("clipgate.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
