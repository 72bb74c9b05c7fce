"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from auditvault import __version__
from auditvault.api.middleware import (
    ErrorHandlingMiddleware,
    RequestContextMiddleware,
    RequestLoggingMiddleware,
)
from auditvault.api.routers import health_router, v1_router
from auditvault.config.settings import Settings, get_settings
from auditvault.config.validation import validate_or_raise
from auditvault.core.logging import setup_logging
from auditvault.db.config import close_db, init_db

logger = logging.getLogger("auditvault.api")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings override (useful for testing)

    Returns:
        Configured FastAPI application

    Example:
        # Production
        app = create_app()

        # Run with uvicorn
        uvicorn auditvault.api.app:create_app --factory
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="AuditVault API",
        description="Audit trail with retention, export and verified deletion",
        version=__version__,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=_lifespan,
    )

    # Store settings on app state for access in dependencies
    app.state.settings = settings

    _configure_middleware(app, settings)
    _configure_routers(app)

    return app


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Validates configuration, sets up logging and opens the database pool
    on startup; closes the pool on shutdown.
    """
    settings: Settings = app.state.settings
    setup_logging()
    validate_or_raise(settings)
    logger.info("Starting AuditVault API...")

    try:
        await init_db()
        logger.info("Database connection pool initialized")
    except (SQLAlchemyError, OSError) as e:
        logger.warning(f"Database initialization skipped: {e}")

    yield

    logger.info("Shutting down AuditVault API...")
    await close_db()
    logger.info("Database connections closed")


def _configure_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure middleware stack.

    Middleware order (outermost to innermost execution):
    1. RequestLoggingMiddleware - Logs all requests
    2. ErrorHandlingMiddleware - Converts exceptions to HTTP responses
    3. CORSMiddleware - Handles CORS (if configured)
    4. RequestContextMiddleware - Sets ContextVar for request context

    Note: Middleware is added in reverse order because Starlette
    processes them from last-added to first-added.
    """
    app.add_middleware(RequestContextMiddleware)

    if settings.CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.CORS_ORIGINS,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)


def _configure_routers(app: FastAPI) -> None:
    """Configure API routers."""
    app.include_router(health_router)
    app.include_router(v1_router)
