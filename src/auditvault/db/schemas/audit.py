"""Pydantic schemas for audit event validation and responses."""

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from auditvault.db.models.audit import AuditSeverity, EventStatus, RelationType


class AuditEventCreate(BaseModel):
    """Schema for recording an audit event."""

    category: str = Field(..., min_length=1, max_length=50)
    description: str
    actor: str | None = None
    module: str | None = None
    action: str | None = None
    subject_id: str | None = None
    subject_type: str | None = None
    subject_name: str | None = None
    severity: AuditSeverity | None = None
    details: Any | None = None
    before: Any | None = None
    after: Any | None = None


class AuditEventResponse(BaseModel):
    """Schema for audit event API responses."""

    event_id: UUID
    created_at: datetime
    category: str
    description: str
    actor: str
    module: str | None
    action: str | None
    severity: AuditSeverity | None
    subject_id: str | None
    subject_type: str | None
    subject_name: str | None
    details: Any | None
    before_data: Any | None
    after_data: Any | None
    status: EventStatus
    retention_date: date | None
    exported_at: datetime | None

    model_config = {"from_attributes": True}


class EventRelationResponse(BaseModel):
    """A related event together with how it is related."""

    relation_type: RelationType
    event: AuditEventResponse


class EventSearchFilters(BaseModel):
    """Filters for searching the audit trail.

    Date bounds are inclusive calendar days in UTC. List filters match any
    of the given values; an empty list does not filter.
    """

    start_date: date | None = None
    end_date: date | None = None
    categories: list[str] = Field(default_factory=list)
    modules: list[str] = Field(default_factory=list)
    actors: list[str] = Field(default_factory=list)
    actions: list[str] = Field(default_factory=list)
    severities: list[AuditSeverity] = Field(default_factory=list)
    keyword: str | None = None
    include_deleted: bool = False
    limit: int = Field(default=50, ge=1)
    offset: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def validate_date_range(self) -> "EventSearchFilters":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


class EventSearchResult(BaseModel):
    """One page of search results with the exact total under the filter."""

    events: list[AuditEventResponse]
    total: int
    limit: int
    offset: int
