"""FastAPI dependencies for API endpoints."""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from auditvault.compliance.retention import Clock, RetentionManager
from auditvault.compliance.retention.types import DEFAULT_CLOCK
from auditvault.config.settings import Settings, get_settings
from auditvault.core.audit import AuditLogger
from auditvault.core.context import RequestContext, get_current_context
from auditvault.db.config import get_db

# Re-export database dependency for convenience
__all__ = [
    "get_db",
    "get_app_settings",
    "get_audit_logger",
    "get_clock",
    "get_request_context",
    "get_request_id",
    "get_retention_manager",
]


def get_request_context() -> RequestContext:
    """Get the current request context from ContextVar.

    This dependency requires RequestContextMiddleware to be active.

    Raises:
        ContextNotSetError: If middleware hasn't set the context
    """
    return get_current_context()


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return getattr(request.app.state, "settings", None) or get_settings()


def get_clock() -> Clock:
    """Time source for lifecycle decisions. Overridden in tests."""
    return DEFAULT_CLOCK


def get_audit_logger(
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> AuditLogger:
    """Get an AuditLogger bound to the request's database session."""
    return AuditLogger(db, clock)


def get_retention_manager(
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> RetentionManager:
    """Get a RetentionManager bound to the request's database session."""
    return RetentionManager(db, clock, settings)


def get_request_id(request: Request) -> str:
    """Get the request ID set by RequestContextMiddleware."""
    return str(getattr(request.state, "request_id", "unknown"))
