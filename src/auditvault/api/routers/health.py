"""Health check endpoints."""

import time
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from auditvault import __version__
from auditvault.api.schemas.health import (
    AuditStoreHealth,
    ComponentHealth,
    HealthDetailResponse,
    HealthResponse,
    HealthStatus,
)
from auditvault.core.logging import get_logger
from auditvault.db.config import get_db
from auditvault.db.models.audit import EventStatus
from auditvault.db.repositories.audit import AuditEventRepository
from auditvault.db.repositories.retention import (
    DeletionReceiptRepository,
    RetentionConfigRepository,
)

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Basic health check",
    description="Returns basic liveness status.",
)
async def health_check() -> HealthResponse:
    """Basic liveness check endpoint.

    Returns 200 if the application is running, regardless of
    database health. Use /health/db for the database check.
    """
    return HealthResponse(
        status=HealthStatus.HEALTHY,
        version=__version__,
        timestamp=datetime.now(UTC),
    )


@router.get(
    "/health/db",
    response_model=HealthDetailResponse,
    summary="Database and audit store health check",
    description="Checks database connectivity and reports audit trail counts.",
)
async def health_db(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> HealthDetailResponse:
    """Database connectivity with latency, plus the audit store state."""
    db_health = await _check_database(db)
    audit_store = None
    if db_health.status == HealthStatus.HEALTHY:
        audit_store = await _check_audit_store(db)
    return HealthDetailResponse(
        status=db_health.status,
        version=__version__,
        timestamp=datetime.now(UTC),
        database=db_health,
        audit_store=audit_store,
    )


async def _check_database(db: AsyncSession) -> ComponentHealth:
    """Check database connectivity."""
    start = time.perf_counter()
    try:
        await db.execute(text("SELECT 1"))
        latency_ms = (time.perf_counter() - start) * 1000
        return ComponentHealth(
            status=HealthStatus.HEALTHY,
            message="Database connection successful",
            latency_ms=round(latency_ms, 2),
        )
    except SQLAlchemyError as e:
        latency_ms = (time.perf_counter() - start) * 1000
        return ComponentHealth(
            status=HealthStatus.UNHEALTHY,
            message=f"Database connection failed: {str(e)[:100]}",
            latency_ms=round(latency_ms, 2),
        )


async def _check_audit_store(db: AsyncSession) -> AuditStoreHealth | None:
    """Read audit trail counts; None when the audit tables cannot be read."""
    events = AuditEventRepository(db)
    try:
        return AuditStoreHealth(
            event_count=await events.count(),
            tombstone_count=await events.count_by_status(EventStatus.DELETED),
            retention_policy_persisted=(
                await RetentionConfigRepository(db).get_current() is not None
            ),
            last_deletion_at=await DeletionReceiptRepository(db).latest_deleted_at(),
        )
    except SQLAlchemyError as e:
        logger.warning("audit_store_check_failed", error=str(e))
        return None
