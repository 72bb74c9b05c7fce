"""Batch deletion engine.

Ready events (past their retention date, exported, not yet deleted) are
tombstoned in sequential batches. Each batch is its own transaction and its
UPDATE repeats the readiness predicate, so concurrent runs cannot
double-process an event and a retry after a failure simply re-selects what
is still ready. Every run that deletes anything leaves one DeletionReceipt.
"""

from collections.abc import Sequence
from datetime import UTC, date, datetime, timedelta
from typing import NamedTuple
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from auditvault.compliance.retention.alerts import AlertLedger
from auditvault.compliance.retention.integrity import compute_checksum
from auditvault.compliance.retention.policies import compute_retention_date, resolve_config
from auditvault.compliance.retention.types import DEFAULT_CLOCK, Clock, DeletionStats
from auditvault.config.settings import RetentionDefaults
from auditvault.core.error_handling import store_errors, store_operation
from auditvault.core.exceptions import (
    InvalidTransitionError,
    NoEligibleEventsError,
    PartialDeletionError,
    StoreUnavailableError,
)
from auditvault.core.logging import get_logger
from auditvault.db.models.audit import AuditEvent, EventStatus
from auditvault.db.models.retention import AlertStatus, AlertType, DeletionReceipt
from auditvault.db.repositories.audit import AuditEventRepository
from auditvault.db.repositories.retention import (
    DeletionReceiptRepository,
    RetentionConfigRepository,
)

logger = get_logger(__name__)

DEFAULT_BATCH_SIZE = 100
SOFT_DELETE_REASON = "Retention policy"


class _Selected(NamedTuple):
    event_id: UUID
    created_at: datetime


def partition(items: Sequence[_Selected], size: int) -> list[Sequence[_Selected]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


class BatchDeletionEngine:
    """Moves ready events to ``deleted`` and records what was removed."""

    def __init__(
        self,
        db: AsyncSession,
        clock: Clock = DEFAULT_CLOCK,
        alerts: AlertLedger | None = None,
        defaults: RetentionDefaults | None = None,
    ):
        self.db = db
        self.clock = clock
        self.defaults = defaults
        self.events = AuditEventRepository(db)
        self.receipts = DeletionReceiptRepository(db)
        self.configs = RetentionConfigRepository(db)
        self.alerts = alerts or AlertLedger(db, clock)

    def today(self) -> date:
        return self.clock().astimezone(UTC).date()

    # =========================================================================
    # Selection
    # =========================================================================

    async def fill_retention_dates(self) -> int:
        """Store the policy-derived retention date on deletable events lacking one."""
        undated = await self.events.list_undated()
        if not undated:
            return 0
        config = resolve_config(await self.configs.get_current(), self.defaults)
        filled = 0
        for event in undated:
            filled += await self.events.assign_retention_date(
                event.event_id,
                compute_retention_date(event.created_at, config.retention_months),
            )
        await self.db.commit()
        logger.info("retention_dates_filled", filled=filled)
        return filled

    @store_errors("ready_events")
    async def ready_events(self, days_overdue: int = 0) -> list[AuditEvent]:
        """Events meeting the deletion precondition as of ``days_overdue`` days ago."""
        await self.fill_retention_dates()
        return await self.events.list_ready(self.today() - timedelta(days=days_overdue))

    @store_errors("mark_for_deletion")
    async def mark_for_deletion(self, event_ids: Sequence[UUID]) -> int:
        """Flag active events as awaiting deletion. Other statuses are skipped."""
        marked = await self.events.mark_for_deletion(list(event_ids))
        await self.db.commit()
        logger.info("events_marked_for_deletion", requested=len(event_ids), marked=marked)
        return marked

    # =========================================================================
    # Batch deletion
    # =========================================================================

    async def delete_eligible(
        self,
        actor: str,
        batch_size: int = DEFAULT_BATCH_SIZE,
        alert_id: UUID | None = None,
    ) -> DeletionReceipt:
        """Tombstone every ready event and record a receipt.

        Args:
            actor: Name recorded as the deleting user
            batch_size: Events per conditional update
            alert_id: Alert authorizing the run; moved to ``deleted`` afterwards

        Returns:
            The persisted DeletionReceipt

        Raises:
            NoEligibleEventsError: If no event is ready
            PartialDeletionError: If a batch failed after earlier batches applied
            StoreUnavailableError: If the store failed before anything was deleted
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")

        cutoff = self.today()
        async with store_operation(self.db, "select_ready_events"):
            if alert_id is not None:
                await self.alerts.ensure_can_transition(alert_id, AlertStatus.DELETED)
            await self.fill_retention_dates()
            ready = await self.events.list_ready(cutoff)

        if not ready:
            raise NoEligibleEventsError("batch_deletion")

        # Pre-mutation view of the selection; rows expire on each commit
        selection = [_Selected(event.event_id, event.created_at) for event in ready]

        deleted = 0
        applied: list[_Selected] = []
        for index, batch in enumerate(partition(selection, batch_size)):
            batch_ids = [item.event_id for item in batch]
            try:
                count = await self.events.tombstone_batch(batch_ids, cutoff)
                await self.db.commit()
            except SQLAlchemyError as exc:
                logger.error(
                    "deletion_batch_failed",
                    batch=index,
                    deleted_so_far=deleted,
                    error=str(exc),
                )
                await self.db.rollback()
                if deleted == 0:
                    raise StoreUnavailableError("batch_deletion") from exc
                receipt = await self._record_partial(actor, deleted, applied, alert_id)
                raise PartialDeletionError(deleted, index, receipt) from exc

            deleted += count
            applied.extend(batch)
            logger.info(
                "deletion_batch_applied",
                batch=index,
                batch_size=len(batch_ids),
                deleted=count,
            )

        if deleted == 0:
            raise NoEligibleEventsError(
                "batch_deletion", "Selected events were already processed by another run"
            )

        async with store_operation(self.db, "write_deletion_receipt"):
            receipt = self._build_receipt(actor, deleted, selection, alert_id)
            self.db.add(receipt)
            await self.db.commit()

        logger.info(
            "deletion_completed",
            receipt_id=str(receipt.receipt_id),
            deleted_count=deleted,
            selected=len(selection),
            actor=actor,
        )

        await self._close_out_alerts(actor, receipt, alert_id)
        return receipt

    def _build_receipt(
        self,
        actor: str,
        deleted: int,
        covered: Sequence[_Selected],
        alert_id: UUID | None,
    ) -> DeletionReceipt:
        deleted_at = self.clock()
        created = [item.created_at for item in covered]
        return DeletionReceipt(
            deleted_by=actor,
            deleted_count=deleted,
            date_range_start=min(created) if created else None,
            date_range_end=max(created) if created else None,
            alert_id=alert_id,
            deleted_at=deleted_at,
            verification_checksum=compute_checksum(deleted, actor, deleted_at),
        )

    async def _record_partial(
        self,
        actor: str,
        deleted: int,
        applied: Sequence[_Selected],
        alert_id: UUID | None,
    ) -> DeletionReceipt | None:
        receipt = self._build_receipt(actor, deleted, applied, alert_id)
        try:
            self.db.add(receipt)
            await self.db.commit()
        except SQLAlchemyError as exc:
            logger.error("partial_receipt_failed", deleted_count=deleted, error=str(exc))
            await self.db.rollback()
            return None
        logger.warning(
            "partial_deletion_recorded",
            receipt_id=str(receipt.receipt_id),
            deleted_count=deleted,
        )
        return receipt

    async def _close_out_alerts(
        self, actor: str, receipt: DeletionReceipt, alert_id: UUID | None
    ) -> None:
        if alert_id is not None:
            try:
                await self.alerts.mark_deleted(alert_id)
            except InvalidTransitionError as exc:
                # Already closed by a concurrent writer
                logger.warning("authorizing_alert_not_closed", alert_id=str(alert_id), error=str(exc))

        await self.alerts.create_alert(
            actor,
            AlertType.DELETION_COMPLETE,
            receipt.deleted_count,
            receipt.date_range_start,
            receipt.date_range_end,
        )

    # =========================================================================
    # Single-event operations
    # =========================================================================

    @store_errors("soft_delete_event")
    async def soft_delete_event(self, event_id: UUID, reason: str = SOFT_DELETE_REASON) -> None:
        """Tombstone one ready event and redact its description.

        Raises:
            RecordNotFoundError: If the event does not exist
            InvalidTransitionError: If the event is not exported and past retention
        """
        event = await self.events.get_or_raise(event_id)
        await self.fill_retention_dates()
        changed = await self.events.tombstone_one(
            event_id, self.today(), f"{reason} - Original: [DELETED RECORD]"
        )
        await self.db.commit()
        if not changed:
            raise InvalidTransitionError("AuditEvent", event.status.value, EventStatus.DELETED.value)
        logger.info("event_soft_deleted", event_id=str(event_id), reason=reason)

    @store_errors("hard_delete_event")
    async def hard_delete_event(self, event_id: UUID) -> None:
        """Physically remove a tombstoned event and its relations.

        Raises:
            RecordNotFoundError: If the event does not exist
            InvalidTransitionError: If the event has not been tombstoned
        """
        event = await self.events.get_or_raise(event_id)
        if event.status != EventStatus.DELETED:
            raise InvalidTransitionError("AuditEvent", event.status.value, "purged")
        removed = await self.events.purge(event_id)
        await self.db.commit()
        if not removed:
            raise InvalidTransitionError("AuditEvent", event.status.value, "purged")
        logger.info("event_hard_deleted", event_id=str(event_id))

    # =========================================================================
    # History and statistics
    # =========================================================================

    @store_errors("deletion_history")
    async def deletion_history(self, limit: int = 50) -> list[DeletionReceipt]:
        return await self.receipts.list_recent_receipts(limit)

    @store_errors("deletion_stats")
    async def deletion_stats(self) -> DeletionStats:
        return DeletionStats(
            receipt_count=await self.receipts.count(),
            total_deleted=await self.receipts.total_deleted(),
            tombstones=await self.events.count_by_status(EventStatus.DELETED),
            marked_for_deletion=await self.events.count_by_status(
                EventStatus.MARKED_FOR_DELETION
            ),
            last_deleted_at=await self.receipts.latest_deleted_at(),
        )

    @store_errors("deleted_count")
    async def deleted_count(self) -> int:
        return await self.events.count_by_status(EventStatus.DELETED)

    @store_errors("marked_for_deletion_count")
    async def marked_for_deletion_count(self) -> int:
        return await self.events.count_by_status(EventStatus.MARKED_FOR_DELETION)
