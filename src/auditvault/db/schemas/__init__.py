"""Pydantic schemas shared by the services and the API."""

from auditvault.db.schemas.audit import (
    AuditEventCreate,
    AuditEventResponse,
    EventRelationResponse,
    EventSearchFilters,
    EventSearchResult,
)
from auditvault.db.schemas.retention import (
    AffectedCountResponse,
    DeletionReceiptResponse,
    DeletionRequest,
    DeletionStatsResponse,
    EligibleEventResponse,
    EventIdsRequest,
    ExportRecordCreate,
    ExportRecordResponse,
    PostponeRequest,
    RetentionAlertResponse,
    RetentionConfigResponse,
    RetentionConfigUpdate,
    RetentionSummaryResponse,
    VerificationResponse,
)

__all__ = [
    "AffectedCountResponse",
    "AuditEventCreate",
    "AuditEventResponse",
    "DeletionReceiptResponse",
    "DeletionRequest",
    "DeletionStatsResponse",
    "EligibleEventResponse",
    "EventIdsRequest",
    "EventRelationResponse",
    "EventSearchFilters",
    "EventSearchResult",
    "ExportRecordCreate",
    "ExportRecordResponse",
    "PostponeRequest",
    "RetentionAlertResponse",
    "RetentionConfigResponse",
    "RetentionConfigUpdate",
    "RetentionSummaryResponse",
    "VerificationResponse",
]
