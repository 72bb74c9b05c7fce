"""Retention manager: the single entry point to the audit retention lifecycle.

This module provides the RetentionManager class that:
- Reads and updates the retention policy
- Evaluates which events are nearing deletion and raises warnings
- Records exports and closes the alerts they answer
- Runs batch deletions, postponements and single-event removals
- Verifies deletion receipts
"""

from collections.abc import Sequence
from datetime import UTC, date, datetime, timedelta
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from auditvault.compliance.retention.alerts import AlertLedger
from auditvault.compliance.retention.deletion import BatchDeletionEngine
from auditvault.compliance.retention.eligibility import evaluate_eligibility
from auditvault.compliance.retention.export_gate import ExportGate
from auditvault.compliance.retention.integrity import verify
from auditvault.compliance.retention.policies import resolve_config
from auditvault.compliance.retention.postponement import PostponementControl
from auditvault.compliance.retention.types import (
    DEFAULT_CLOCK,
    Clock,
    DeletionStats,
    EligibleEvent,
    RetentionSummary,
)
from auditvault.config.settings import Settings, get_settings
from auditvault.core.context import SYSTEM_ACTOR
from auditvault.core.error_handling import store_errors, store_operation
from auditvault.core.exceptions import NoEligibleEventsError
from auditvault.core.logging import get_logger
from auditvault.db.models.audit import AuditEvent
from auditvault.db.models.retention import (
    AlertType,
    DeletionReceipt,
    ExportFormat,
    ExportRecord,
    RetentionAlert,
    RetentionConfig,
)
from auditvault.db.repositories.audit import AuditEventRepository
from auditvault.db.repositories.retention import (
    DeletionReceiptRepository,
    RetentionConfigRepository,
)
from auditvault.db.schemas.retention import RetentionConfigUpdate

logger = get_logger(__name__)

RECENT_EXPORTS_SHOWN = 5


class RetentionManager:
    """Coordinates policy, eligibility, export, deletion and alert services.

    All collaborators share one session and one clock so a single call sees
    a consistent "today".
    """

    def __init__(
        self,
        db: AsyncSession,
        clock: Clock = DEFAULT_CLOCK,
        settings: Settings | None = None,
    ):
        """Initialize the retention manager.

        Args:
            db: Session used for every store call
            clock: Source of the current time
            settings: Application settings (default: global settings)
        """
        self.db = db
        self.clock = clock
        self.settings = settings or get_settings()

        self.configs = RetentionConfigRepository(db)
        self.events = AuditEventRepository(db)
        self.receipts = DeletionReceiptRepository(db)

        self.alerts = AlertLedger(db, clock)
        self.export_gate = ExportGate(db, clock)
        self.deletion = BatchDeletionEngine(db, clock, self.alerts, self.settings.retention)
        self.postponement = PostponementControl(db, clock)

    def today(self) -> date:
        return self.clock().astimezone(UTC).date()

    # =========================================================================
    # Policy
    # =========================================================================

    @store_errors("get_config")
    async def get_config(self) -> RetentionConfig | None:
        """Stored policy, or None when it has never been saved."""
        return await self.configs.get_current()

    async def resolve_config(self) -> RetentionConfig:
        """Stored policy, falling back to the default without persisting it."""
        return resolve_config(await self.get_config(), self.settings.retention)

    @store_errors("update_config")
    async def update_config(
        self,
        retention_months: int,
        alert_days_before: int,
        auto_delete_enabled: bool,
        editor: str,
    ) -> RetentionConfig:
        """Save the policy, creating the singleton row on first update.

        Existing events keep their stored retention dates.

        Raises:
            pydantic.ValidationError: If a value is out of bounds
        """
        update = RetentionConfigUpdate(
            retention_months=retention_months,
            alert_days_before=alert_days_before,
            auto_delete_enabled=auto_delete_enabled,
        )
        config = await self.configs.get_current()
        now = self.clock()
        if config is None:
            config = RetentionConfig(created_at=now)
            self.db.add(config)

        config.retention_months = update.retention_months
        config.alert_days_before = update.alert_days_before
        config.auto_delete_enabled = update.auto_delete_enabled
        config.updated_by = editor
        config.updated_at = now
        await self.db.commit()
        await self.db.refresh(config)

        logger.info(
            "retention_config_updated",
            retention_months=config.retention_months,
            alert_days_before=config.alert_days_before,
            auto_delete_enabled=config.auto_delete_enabled,
            editor=editor,
        )
        return config

    # =========================================================================
    # Eligibility
    # =========================================================================

    async def eligible_events(self, threshold_days: int | None = None) -> list[EligibleEvent]:
        """Active events due within ``threshold_days`` (default: the policy's alert lead)."""
        config = await self.resolve_config()
        if threshold_days is None:
            threshold_days = config.alert_days_before
        today = self.today()
        async with store_operation(self.db, "eligible_events"):
            candidates = await self.events.list_active(
                retention_before=today + timedelta(days=threshold_days)
            )
        return evaluate_eligibility(config, candidates, threshold_days, today)

    async def retention_summary(self, actor: str) -> RetentionSummary:
        config = await self.resolve_config()
        eligible = await self.eligible_events(config.alert_days_before)
        return RetentionSummary(
            config=config,
            eligible_events=eligible,
            pending_alerts=await self.alerts.pending_alert_count(actor),
            recent_exports=await self.export_gate.export_history(RECENT_EXPORTS_SHOWN),
        )

    async def raise_retention_warning(self, user_id: str) -> RetentionAlert | None:
        """Record a retention warning when any event is within the alert window.

        Returns:
            The new alert, or None when nothing is eligible
        """
        eligible = await self.eligible_events()
        if not eligible:
            return None
        created = [event.created_at for event in eligible]
        return await self.alerts.create_alert(
            user_id,
            AlertType.RETENTION_WARNING,
            len(eligible),
            min(created),
            max(created),
        )

    # =========================================================================
    # Exports
    # =========================================================================

    async def record_export(
        self, event_ids: Sequence[UUID], exported_at: datetime | None = None
    ) -> int:
        return await self.export_gate.record_export(event_ids, exported_at)

    async def mark_exported(
        self,
        event_ids: Sequence[UUID],
        alert_id: UUID | None = None,
        filename: str | None = None,
    ) -> int:
        """Stamp events as exported and close the alert the export answers."""
        async with store_operation(self.db, "mark_exported"):
            # The alert moves before any export stamp is written
            if alert_id is not None:
                await self.alerts.mark_exported(alert_id, filename or "", commit=False)
            stamped = await self.export_gate.record_export(event_ids, commit=False)
            await self.db.commit()
        return stamped

    async def record_export_file(
        self,
        exported_by: str,
        export_format: ExportFormat,
        filename: str,
        event_count: int,
        date_range_start: datetime | None = None,
        date_range_end: datetime | None = None,
        file_size_bytes: int | None = None,
    ) -> ExportRecord:
        return await self.export_gate.record_export_file(
            exported_by,
            export_format,
            filename,
            event_count,
            date_range_start,
            date_range_end,
            file_size_bytes,
        )

    async def complete_export(
        self,
        exported_by: str,
        export_format: ExportFormat,
        filename: str,
        event_ids: Sequence[UUID],
        date_range_start: datetime | None = None,
        date_range_end: datetime | None = None,
        file_size_bytes: int | None = None,
        alert_id: UUID | None = None,
    ) -> ExportRecord:
        """Log an export file, stamp its events and close its alert."""
        await self.mark_exported(event_ids, alert_id, filename)
        return await self.record_export_file(
            exported_by,
            export_format,
            filename,
            len(event_ids),
            date_range_start,
            date_range_end,
            file_size_bytes,
        )

    async def export_history(self, limit: int = 50) -> list[ExportRecord]:
        return await self.export_gate.export_history(limit)

    async def exported_event_count(self) -> int:
        return await self.export_gate.exported_event_count()

    # =========================================================================
    # Deletion
    # =========================================================================

    async def ready_events(self, days_overdue: int = 0) -> list[AuditEvent]:
        return await self.deletion.ready_events(days_overdue)

    async def mark_for_deletion(self, event_ids: Sequence[UUID]) -> int:
        return await self.deletion.mark_for_deletion(event_ids)

    async def delete_eligible(
        self,
        actor: str,
        batch_size: int | None = None,
        alert_id: UUID | None = None,
    ) -> DeletionReceipt:
        if batch_size is None:
            batch_size = self.settings.retention.deletion_batch_size
        return await self.deletion.delete_eligible(actor, batch_size, alert_id)

    async def run_auto_deletion(self) -> DeletionReceipt | None:
        """Scheduled deletion run as the system actor.

        Returns None when auto-delete is disabled or nothing is ready.
        """
        config = await self.resolve_config()
        if not config.auto_delete_enabled:
            logger.info("auto_deletion_skipped", reason="disabled")
            return None
        try:
            return await self.delete_eligible(SYSTEM_ACTOR)
        except NoEligibleEventsError:
            logger.info("auto_deletion_skipped", reason="no_ready_events")
            return None

    async def postpone(self, event_ids: Sequence[UUID], days: int | None = None) -> int:
        if days is None:
            days = self.settings.retention.postpone_days
        return await self.postponement.postpone(event_ids, days)

    async def soft_delete_event(self, event_id: UUID, reason: str | None = None) -> None:
        if reason:
            await self.deletion.soft_delete_event(event_id, reason)
        else:
            await self.deletion.soft_delete_event(event_id)

    async def hard_delete_event(self, event_id: UUID) -> None:
        await self.deletion.hard_delete_event(event_id)

    async def deletion_history(self, limit: int = 50) -> list[DeletionReceipt]:
        return await self.deletion.deletion_history(limit)

    async def deletion_stats(self) -> DeletionStats:
        return await self.deletion.deletion_stats()

    async def deleted_count(self) -> int:
        return await self.deletion.deleted_count()

    async def marked_for_deletion_count(self) -> int:
        return await self.deletion.marked_for_deletion_count()

    # =========================================================================
    # Integrity
    # =========================================================================

    @store_errors("verify_receipt")
    async def verify_receipt(self, receipt_id: UUID) -> bool:
        """Check a stored receipt's checksum. A mismatch is logged as an error.

        Raises:
            RecordNotFoundError: If the receipt does not exist
        """
        receipt = await self.receipts.get_or_raise(receipt_id)
        verified = verify(receipt)
        if not verified:
            logger.error(
                "receipt_verification_failed",
                receipt_id=str(receipt_id),
                has_checksum=receipt.verification_checksum is not None,
            )
        return verified
