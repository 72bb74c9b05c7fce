"""Retention alert endpoints.

- GET /alerts/pending - Pending alerts for the acting user
- GET /alerts/history - Recent alerts for the acting user
- POST /alerts/{alert_id}/acknowledge - Acknowledge a pending alert
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from auditvault.api.dependencies import get_request_context, get_retention_manager
from auditvault.compliance.retention import RetentionManager
from auditvault.core.context import RequestContext
from auditvault.db.schemas.retention import RetentionAlertResponse

router = APIRouter(prefix="/alerts", tags=["alerts"])


@router.get("/pending", response_model=list[RetentionAlertResponse])
async def get_pending_alerts(
    manager: Annotated[RetentionManager, Depends(get_retention_manager)],
    ctx: Annotated[RequestContext, Depends(get_request_context)],
) -> list[RetentionAlertResponse]:
    alerts = await manager.alerts.pending_alerts(ctx.actor)
    return [RetentionAlertResponse.model_validate(a) for a in alerts]


@router.get("/history", response_model=list[RetentionAlertResponse])
async def get_alert_history(
    manager: Annotated[RetentionManager, Depends(get_retention_manager)],
    ctx: Annotated[RequestContext, Depends(get_request_context)],
    limit: Annotated[int, Query(ge=1, le=500)] = 50,
) -> list[RetentionAlertResponse]:
    alerts = await manager.alerts.alert_history(ctx.actor, limit)
    return [RetentionAlertResponse.model_validate(a) for a in alerts]


@router.post("/{alert_id}/acknowledge", response_model=RetentionAlertResponse)
async def acknowledge_alert(
    alert_id: UUID,
    manager: Annotated[RetentionManager, Depends(get_retention_manager)],
) -> RetentionAlertResponse:
    return RetentionAlertResponse.model_validate(await manager.alerts.acknowledge(alert_id))
