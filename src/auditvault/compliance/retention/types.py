"""Retention lifecycle type definitions.

This module defines the value types shared by the retention services:
- Clock: Injectable source of the current time
- EligibleEvent: An event approaching or past its retention date
- RetentionSummary: Policy, eligible events and recent exports together
- DeletionStats: Aggregate view of completed deletions
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime
from uuid import UUID

from auditvault.db.models.audit import EventStatus
from auditvault.db.models.base import utcnow
from auditvault.db.models.retention import ExportRecord, RetentionConfig

Clock = Callable[[], datetime]
"""Returns the current time as an aware UTC datetime."""

DEFAULT_CLOCK: Clock = utcnow


@dataclass(frozen=True)
class EligibleEvent:
    """An active event whose deletion is within the alert window.

    ``days_until_deletion`` is negative once the retention date has passed.
    """

    event_id: UUID
    category: str
    description: str
    created_at: datetime
    status: EventStatus
    retention_date: date
    days_until_deletion: int
    exported: bool

    @property
    def overdue(self) -> bool:
        return self.days_until_deletion < 0


@dataclass
class RetentionSummary:
    """Everything the retention screen shows for one operator."""

    config: RetentionConfig
    eligible_events: list[EligibleEvent] = field(default_factory=list)
    pending_alerts: int = 0
    recent_exports: list[ExportRecord] = field(default_factory=list)


@dataclass(frozen=True)
class DeletionStats:
    """Totals across every deletion receipt and the tombstones in the store."""

    receipt_count: int
    total_deleted: int
    tombstones: int
    marked_for_deletion: int
    last_deleted_at: datetime | None
