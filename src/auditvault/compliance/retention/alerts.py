"""Alert ledger: retention notifications and their forward-only progression."""

from datetime import datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from auditvault.compliance.retention.types import DEFAULT_CLOCK, Clock
from auditvault.core.error_handling import store_errors
from auditvault.core.exceptions import InvalidTransitionError
from auditvault.core.logging import get_logger
from auditvault.db.models.retention import AlertStatus, AlertType, RetentionAlert
from auditvault.db.repositories.retention import RetentionAlertRepository

logger = get_logger(__name__)

# Allowed source statuses for each target status
ALLOWED_TRANSITIONS: dict[AlertStatus, tuple[AlertStatus, ...]] = {
    AlertStatus.ACKNOWLEDGED: (AlertStatus.PENDING,),
    AlertStatus.EXPORTED: (AlertStatus.PENDING, AlertStatus.ACKNOWLEDGED),
    AlertStatus.DELETED: (
        AlertStatus.PENDING,
        AlertStatus.ACKNOWLEDGED,
        AlertStatus.EXPORTED,
    ),
}

# Timestamp column stamped by each transition
_TRANSITION_TIMESTAMPS = {
    AlertStatus.ACKNOWLEDGED: "acknowledged_at",
    AlertStatus.EXPORTED: "exported_at",
    AlertStatus.DELETED: "deleted_at",
}


def can_transition(current: AlertStatus, target: AlertStatus) -> bool:
    return current in ALLOWED_TRANSITIONS.get(target, ())


class AlertLedger:
    """Records retention alerts and moves them forward through their statuses."""

    def __init__(self, db: AsyncSession, clock: Clock = DEFAULT_CLOCK):
        self.db = db
        self.clock = clock
        self.alerts = RetentionAlertRepository(db)

    @store_errors("create_alert")
    async def create_alert(
        self,
        user_id: str,
        alert_type: AlertType,
        event_count: int,
        date_range_start: datetime | None = None,
        date_range_end: datetime | None = None,
        *,
        commit: bool = True,
    ) -> RetentionAlert:
        alert = RetentionAlert(
            user_id=user_id,
            alert_type=alert_type,
            event_count=event_count,
            date_range_start=date_range_start,
            date_range_end=date_range_end,
            status=AlertStatus.PENDING,
            created_at=self.clock(),
        )
        alert = await self.alerts.create(alert, commit=commit)
        logger.info(
            "alert_created",
            alert_id=str(alert.alert_id),
            alert_type=alert_type.value,
            user_id=user_id,
            event_count=event_count,
        )
        return alert

    async def ensure_can_transition(self, alert_id: UUID, target: AlertStatus) -> RetentionAlert:
        """Load an alert and check it may move to ``target``.

        Raises:
            RecordNotFoundError: If the alert does not exist
            InvalidTransitionError: If the move is not allowed from its status
        """
        alert = await self.alerts.get_or_raise(alert_id)
        if not can_transition(alert.status, target):
            raise InvalidTransitionError("RetentionAlert", alert.status.value, target.value)
        return alert

    async def _transition(
        self, alert_id: UUID, target: AlertStatus, *, commit: bool = True, **values
    ) -> RetentionAlert:
        await self.ensure_can_transition(alert_id, target)
        values[_TRANSITION_TIMESTAMPS[target]] = self.clock()
        updated = await self.alerts.transition(
            alert_id, ALLOWED_TRANSITIONS[target], target, **values
        )
        if commit:
            await self.db.commit()
        else:
            await self.db.flush()

        alert = await self.alerts.get_or_raise(alert_id)
        if not updated:
            # Another writer moved the alert between the check and the update
            raise InvalidTransitionError("RetentionAlert", alert.status.value, target.value)

        logger.info("alert_transitioned", alert_id=str(alert_id), status=target.value)
        return alert

    @store_errors("acknowledge_alert")
    async def acknowledge(self, alert_id: UUID) -> RetentionAlert:
        return await self._transition(alert_id, AlertStatus.ACKNOWLEDGED)

    @store_errors("mark_alert_exported")
    async def mark_exported(
        self, alert_id: UUID, filename: str, *, commit: bool = True
    ) -> RetentionAlert:
        return await self._transition(
            alert_id, AlertStatus.EXPORTED, commit=commit, export_filename=filename
        )

    @store_errors("mark_alert_deleted")
    async def mark_deleted(self, alert_id: UUID, *, commit: bool = True) -> RetentionAlert:
        return await self._transition(alert_id, AlertStatus.DELETED, commit=commit)

    @store_errors("pending_alerts")
    async def pending_alerts(self, user_id: str | None = None) -> list[RetentionAlert]:
        return await self.alerts.list_pending(user_id)

    @store_errors("alert_history")
    async def alert_history(self, user_id: str, limit: int = 50) -> list[RetentionAlert]:
        return await self.alerts.list_for_user(user_id, limit)

    @store_errors("pending_alert_count")
    async def pending_alert_count(self, user_id: str | None = None) -> int:
        return await self.alerts.count_pending(user_id)
