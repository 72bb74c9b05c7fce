"""Pydantic schemas for retention configuration, alerts, exports and receipts."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from auditvault.db.models.audit import EventStatus
from auditvault.db.models.retention import AlertStatus, AlertType, ExportFormat


class RetentionConfigUpdate(BaseModel):
    """Schema for changing the retention policy."""

    retention_months: int = Field(..., ge=1, le=36)
    alert_days_before: int = Field(..., ge=1, le=60)
    auto_delete_enabled: bool = True


class RetentionConfigResponse(BaseModel):
    """Active retention policy; ``persisted`` is False for the built-in default."""

    retention_months: int
    alert_days_before: int
    auto_delete_enabled: bool
    updated_by: str
    updated_at: datetime | None = None
    persisted: bool = True

    model_config = {"from_attributes": True}


class EligibleEventResponse(BaseModel):
    """An event approaching (or past) its retention date."""

    event_id: UUID
    category: str
    description: str
    created_at: datetime
    status: EventStatus
    retention_date: date
    days_until_deletion: int
    exported: bool


class RetentionAlertResponse(BaseModel):
    alert_id: UUID
    user_id: str
    alert_type: AlertType
    event_count: int
    date_range_start: datetime | None
    date_range_end: datetime | None
    status: AlertStatus
    export_filename: str | None
    created_at: datetime
    acknowledged_at: datetime | None
    exported_at: datetime | None
    deleted_at: datetime | None

    model_config = {"from_attributes": True}


class ExportRecordCreate(BaseModel):
    """Schema for recording a completed export.

    ``event_ids`` are stamped as exported; ``alert_id`` optionally names the
    alert the export answers.
    """

    export_format: ExportFormat
    filename: str = Field(..., min_length=1, max_length=255)
    event_ids: list[UUID] = Field(default_factory=list)
    date_range_start: datetime | None = None
    date_range_end: datetime | None = None
    file_size_bytes: int | None = Field(default=None, ge=0)
    alert_id: UUID | None = None

    @model_validator(mode="after")
    def validate_range(self) -> "ExportRecordCreate":
        if (
            self.date_range_start
            and self.date_range_end
            and self.date_range_start > self.date_range_end
        ):
            raise ValueError("date_range_start must not be after date_range_end")
        return self


class ExportRecordResponse(BaseModel):
    export_id: UUID
    exported_by: str
    export_format: ExportFormat
    filename: str
    event_count: int
    date_range_start: datetime | None
    date_range_end: datetime | None
    file_size_bytes: int | None
    created_at: datetime

    model_config = {"from_attributes": True}


class DeletionRequest(BaseModel):
    """Schema for starting a batch deletion run."""

    batch_size: int | None = Field(default=None, ge=1)
    alert_id: UUID | None = None


class DeletionReceiptResponse(BaseModel):
    receipt_id: UUID
    deleted_by: str
    deleted_count: int
    date_range_start: datetime | None
    date_range_end: datetime | None
    alert_id: UUID | None
    deleted_at: datetime
    verification_checksum: str | None

    model_config = {"from_attributes": True}


class EventIdsRequest(BaseModel):
    event_ids: list[UUID] = Field(default_factory=list)


class PostponeRequest(EventIdsRequest):
    """Schema for deferring deletion of marked events."""

    days: int | None = Field(default=None, ge=1, le=365)


class AffectedCountResponse(BaseModel):
    affected: int


class VerificationResponse(BaseModel):
    receipt_id: UUID
    verified: bool


class DeletionStatsResponse(BaseModel):
    receipt_count: int
    total_deleted: int
    tombstones: int
    marked_for_deletion: int
    last_deleted_at: datetime | None


class RetentionSummaryResponse(BaseModel):
    config: RetentionConfigResponse
    eligible_events: list[EligibleEventResponse]
    pending_alerts: int
    recent_exports: list[ExportRecordResponse]
