"""API request and response schemas."""

from .errors import APIError, ErrorCode
from .events import EventDiffResponse, FieldChangeResponse
from .health import (
    AuditStoreHealth,
    ComponentHealth,
    HealthDetailResponse,
    HealthResponse,
    HealthStatus,
)

__all__ = [
    "APIError",
    "AuditStoreHealth",
    "ComponentHealth",
    "ErrorCode",
    "EventDiffResponse",
    "FieldChangeResponse",
    "HealthDetailResponse",
    "HealthResponse",
    "HealthStatus",
]
