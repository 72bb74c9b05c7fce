"""Retention lifecycle endpoints.

- GET/PUT /retention/config - Retention policy
- GET /retention/eligible - Events within the alert window
- GET /retention/summary - Policy, eligible events, alerts and exports
- GET /retention/ready - Events ready for deletion
- POST /retention/mark - Mark events for deletion
- POST /retention/postpone - Postpone marked events
- POST/GET /retention/deletions - Run a batch deletion / deletion history
- GET /retention/deletions/stats - Deletion totals
- GET /retention/deletions/{receipt_id}/verify - Check a receipt's checksum
- POST/GET /retention/exports - Record an export / export history
"""

from typing import Annotated
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import inspect

from auditvault.api.dependencies import get_request_context, get_retention_manager
from auditvault.compliance.retention import EligibleEvent, RetentionManager
from auditvault.core.context import RequestContext
from auditvault.db.models.retention import RetentionConfig
from auditvault.db.schemas.audit import AuditEventResponse
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
    RetentionConfigResponse,
    RetentionConfigUpdate,
    RetentionSummaryResponse,
    VerificationResponse,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/retention", tags=["retention"])

Manager = Annotated[RetentionManager, Depends(get_retention_manager)]
Context = Annotated[RequestContext, Depends(get_request_context)]


def _config_response(config: RetentionConfig) -> RetentionConfigResponse:
    return RetentionConfigResponse(
        retention_months=config.retention_months,
        alert_days_before=config.alert_days_before,
        auto_delete_enabled=config.auto_delete_enabled,
        updated_by=config.updated_by,
        updated_at=config.updated_at,
        persisted=inspect(config).has_identity,
    )


def _eligible_response(event: EligibleEvent) -> EligibleEventResponse:
    return EligibleEventResponse(
        event_id=event.event_id,
        category=event.category,
        description=event.description,
        created_at=event.created_at,
        status=event.status,
        retention_date=event.retention_date,
        days_until_deletion=event.days_until_deletion,
        exported=event.exported,
    )


# =============================================================================
# Policy and eligibility
# =============================================================================


@router.get("/config", response_model=RetentionConfigResponse)
async def get_config(manager: Manager) -> RetentionConfigResponse:
    return _config_response(await manager.resolve_config())


@router.put("/config", response_model=RetentionConfigResponse)
async def update_config(
    body: RetentionConfigUpdate, manager: Manager, ctx: Context
) -> RetentionConfigResponse:
    config = await manager.update_config(
        body.retention_months,
        body.alert_days_before,
        body.auto_delete_enabled,
        editor=ctx.actor,
    )
    return _config_response(config)


@router.get("/eligible", response_model=list[EligibleEventResponse])
async def get_eligible_events(
    manager: Manager,
    threshold_days: Annotated[int | None, Query(ge=0)] = None,
) -> list[EligibleEventResponse]:
    return [_eligible_response(e) for e in await manager.eligible_events(threshold_days)]


@router.get("/summary", response_model=RetentionSummaryResponse)
async def get_summary(manager: Manager, ctx: Context) -> RetentionSummaryResponse:
    summary = await manager.retention_summary(ctx.actor)
    return RetentionSummaryResponse(
        config=_config_response(summary.config),
        eligible_events=[_eligible_response(e) for e in summary.eligible_events],
        pending_alerts=summary.pending_alerts,
        recent_exports=[ExportRecordResponse.model_validate(r) for r in summary.recent_exports],
    )


# =============================================================================
# Deletion workflow
# =============================================================================


@router.get("/ready", response_model=list[AuditEventResponse])
async def get_ready_events(
    manager: Manager,
    days_overdue: Annotated[int, Query(ge=0)] = 0,
) -> list[AuditEventResponse]:
    events = await manager.ready_events(days_overdue)
    return [AuditEventResponse.model_validate(e) for e in events]


@router.post("/mark", response_model=AffectedCountResponse)
async def mark_for_deletion(body: EventIdsRequest, manager: Manager) -> AffectedCountResponse:
    return AffectedCountResponse(affected=await manager.mark_for_deletion(body.event_ids))


@router.post("/postpone", response_model=AffectedCountResponse)
async def postpone_deletion(body: PostponeRequest, manager: Manager) -> AffectedCountResponse:
    return AffectedCountResponse(affected=await manager.postpone(body.event_ids, body.days))


@router.post(
    "/deletions",
    response_model=DeletionReceiptResponse,
    status_code=status.HTTP_201_CREATED,
)
async def run_deletion(
    body: DeletionRequest, manager: Manager, ctx: Context
) -> DeletionReceiptResponse:
    receipt = await manager.delete_eligible(ctx.actor, body.batch_size, body.alert_id)
    logger.info("deletion_requested", receipt_id=str(receipt.receipt_id), actor=ctx.actor)
    return DeletionReceiptResponse.model_validate(receipt)


@router.get("/deletions", response_model=list[DeletionReceiptResponse])
async def get_deletion_history(
    manager: Manager,
    limit: Annotated[int, Query(ge=1, le=500)] = 50,
) -> list[DeletionReceiptResponse]:
    receipts = await manager.deletion_history(limit)
    return [DeletionReceiptResponse.model_validate(r) for r in receipts]


@router.get("/deletions/stats", response_model=DeletionStatsResponse)
async def get_deletion_stats(manager: Manager) -> DeletionStatsResponse:
    stats = await manager.deletion_stats()
    return DeletionStatsResponse(
        receipt_count=stats.receipt_count,
        total_deleted=stats.total_deleted,
        tombstones=stats.tombstones,
        marked_for_deletion=stats.marked_for_deletion,
        last_deleted_at=stats.last_deleted_at,
    )


@router.get("/deletions/{receipt_id}/verify", response_model=VerificationResponse)
async def verify_receipt(receipt_id: UUID, manager: Manager) -> VerificationResponse:
    return VerificationResponse(
        receipt_id=receipt_id,
        verified=await manager.verify_receipt(receipt_id),
    )


# =============================================================================
# Exports
# =============================================================================


@router.post(
    "/exports",
    response_model=ExportRecordResponse,
    status_code=status.HTTP_201_CREATED,
)
async def record_export(
    body: ExportRecordCreate, manager: Manager, ctx: Context
) -> ExportRecordResponse:
    record = await manager.complete_export(
        ctx.actor,
        body.export_format,
        body.filename,
        body.event_ids,
        body.date_range_start,
        body.date_range_end,
        body.file_size_bytes,
        body.alert_id,
    )
    return ExportRecordResponse.model_validate(record)


@router.get("/exports", response_model=list[ExportRecordResponse])
async def get_export_history(
    manager: Manager,
    limit: Annotated[int, Query(ge=1, le=500)] = 50,
) -> list[ExportRecordResponse]:
    return [ExportRecordResponse.model_validate(r) for r in await manager.export_history(limit)]
