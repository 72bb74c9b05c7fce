"""Export gate: records which events have been archived by an export.

Deletion consults ``exported_at`` inside its own conditional update, so an
event without a recorded export can never be tombstoned.
"""

from collections.abc import Sequence
from datetime import datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from auditvault.compliance.retention.types import DEFAULT_CLOCK, Clock
from auditvault.core.error_handling import store_errors
from auditvault.core.logging import get_logger
from auditvault.db.models.audit import AuditEvent
from auditvault.db.models.retention import ExportFormat, ExportRecord
from auditvault.db.repositories.audit import AuditEventRepository
from auditvault.db.repositories.retention import ExportRecordRepository

logger = get_logger(__name__)


def has_been_exported(event: AuditEvent) -> bool:
    return event.exported_at is not None


class ExportGate:
    """Tracks export timestamps on events and the log of export files."""

    def __init__(self, db: AsyncSession, clock: Clock = DEFAULT_CLOCK):
        self.db = db
        self.clock = clock
        self.events = AuditEventRepository(db)
        self.exports = ExportRecordRepository(db)

    @store_errors("record_export")
    async def record_export(
        self,
        event_ids: Sequence[UUID],
        exported_at: datetime | None = None,
        *,
        commit: bool = True,
    ) -> int:
        """Stamp ``exported_at`` on the listed events.

        Re-exporting overwrites the previous timestamp. Tombstoned events are
        left untouched.

        Returns:
            Number of events stamped
        """
        exported_at = exported_at or self.clock()
        stamped = await self.events.set_exported(list(event_ids), exported_at)
        if commit:
            await self.db.commit()
        logger.info("export_recorded", requested=len(event_ids), stamped=stamped)
        return stamped

    @store_errors("record_export_file")
    async def record_export_file(
        self,
        exported_by: str,
        export_format: ExportFormat,
        filename: str,
        event_count: int,
        date_range_start: datetime | None = None,
        date_range_end: datetime | None = None,
        file_size_bytes: int | None = None,
        *,
        commit: bool = True,
    ) -> ExportRecord:
        """Append an entry to the export log."""
        record = ExportRecord(
            exported_by=exported_by,
            export_format=export_format,
            filename=filename,
            event_count=event_count,
            date_range_start=date_range_start,
            date_range_end=date_range_end,
            file_size_bytes=file_size_bytes,
            created_at=self.clock(),
        )
        record = await self.exports.create(record, commit=commit)
        logger.info(
            "export_file_recorded",
            export_id=str(record.export_id),
            export_format=export_format.value,
            event_count=event_count,
        )
        return record

    @store_errors("export_history")
    async def export_history(self, limit: int = 50) -> list[ExportRecord]:
        return await self.exports.list_recent_exports(limit)

    @store_errors("exported_event_count")
    async def exported_event_count(self) -> int:
        return await self.events.count_exported()
