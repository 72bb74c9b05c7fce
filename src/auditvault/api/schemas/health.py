"""Health check response schemas."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class HealthStatus(str, Enum):
    """Health status indicators."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class HealthResponse(BaseModel):
    """Liveness of the auditvault API process."""

    status: HealthStatus = Field(..., description="Overall health status")
    version: str = Field(..., description="auditvault version")
    timestamp: datetime = Field(..., description="Check timestamp")


class ComponentHealth(BaseModel):
    """Reachability of one backing component."""

    status: HealthStatus
    message: str | None = None
    latency_ms: float | None = None


class AuditStoreHealth(BaseModel):
    """Audit trail and retention state as seen by the health probe."""

    event_count: int = Field(..., description="Audit events in the store, tombstones included")
    tombstone_count: int = Field(..., description="Events already moved to deleted")
    retention_policy_persisted: bool = Field(
        ..., description="False while the built-in default policy is in effect"
    )
    last_deletion_at: datetime | None = Field(
        default=None, description="Time of the most recent deletion receipt"
    )


class HealthDetailResponse(HealthResponse):
    """Database reachability and audit store state."""

    database: ComponentHealth = Field(..., description="Database health")
    audit_store: AuditStoreHealth | None = Field(
        default=None, description="Omitted when the audit tables cannot be read"
    )

    model_config = {"json_schema_extra": {"example": {
        "status": "healthy",
        "version": "0.1.0",
        "timestamp": "2024-04-01T12:00:00Z",
        "database": {"status": "healthy", "latency_ms": 1.5},
        "audit_store": {
            "event_count": 1520,
            "tombstone_count": 340,
            "retention_policy_persisted": True,
            "last_deletion_at": "2024-03-15T02:00:00Z",
        },
    }}}
