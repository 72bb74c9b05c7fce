"""Audit event endpoints.

- GET /events - Search the audit trail
- GET /events/{event_id} - One event
- GET /events/{event_id}/diff - Field changes between its snapshots
- GET /events/{event_id}/related - Events linked to it
"""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from auditvault.api.dependencies import get_audit_logger
from auditvault.api.schemas.events import EventDiffResponse
from auditvault.core.audit import AuditLogger
from auditvault.db.models.audit import AuditSeverity
from auditvault.db.schemas.audit import (
    AuditEventResponse,
    EventRelationResponse,
    EventSearchFilters,
    EventSearchResult,
)
from auditvault.diff import diff_event, is_empty_data

router = APIRouter(prefix="/events", tags=["events"])


@router.get("", response_model=EventSearchResult)
async def search_events(
    audit: Annotated[AuditLogger, Depends(get_audit_logger)],
    start_date: date | None = None,
    end_date: date | None = None,
    category: Annotated[list[str] | None, Query()] = None,
    module: Annotated[list[str] | None, Query()] = None,
    actor: Annotated[list[str] | None, Query()] = None,
    action: Annotated[list[str] | None, Query()] = None,
    severity: Annotated[list[AuditSeverity] | None, Query()] = None,
    keyword: str | None = None,
    include_deleted: bool = False,
    limit: Annotated[int, Query(ge=1)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> EventSearchResult:
    """Search events newest first. Repeat a list parameter to match any of several values."""
    filters = EventSearchFilters(
        start_date=start_date,
        end_date=end_date,
        categories=category or [],
        modules=module or [],
        actors=actor or [],
        actions=action or [],
        severities=severity or [],
        keyword=keyword,
        include_deleted=include_deleted,
        limit=limit,
        offset=offset,
    )
    events, total = await audit.search_events(filters)
    return EventSearchResult(
        events=[AuditEventResponse.model_validate(e) for e in events],
        total=total,
        limit=filters.limit,
        offset=filters.offset,
    )


@router.get("/{event_id}", response_model=AuditEventResponse)
async def get_event(
    event_id: UUID,
    audit: Annotated[AuditLogger, Depends(get_audit_logger)],
) -> AuditEventResponse:
    return AuditEventResponse.model_validate(await audit.get_event(event_id))


@router.get("/{event_id}/diff", response_model=EventDiffResponse)
async def get_event_diff(
    event_id: UUID,
    audit: Annotated[AuditLogger, Depends(get_audit_logger)],
) -> EventDiffResponse:
    event = await audit.get_event(event_id)
    return EventDiffResponse.from_changes(
        event.event_id,
        diff_event(event),
        before_empty=is_empty_data(event.before_data),
        after_empty=is_empty_data(event.after_data),
    )


@router.get("/{event_id}/related", response_model=list[EventRelationResponse])
async def get_related_events(
    event_id: UUID,
    audit: Annotated[AuditLogger, Depends(get_audit_logger)],
) -> list[EventRelationResponse]:
    related = await audit.get_related_events(event_id)
    return [
        EventRelationResponse(
            relation_type=relation_type,
            event=AuditEventResponse.model_validate(event),
        )
        for relation_type, event in related
    ]
