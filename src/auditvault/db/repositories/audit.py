"""Repositories for audit events and their relations.

Every lifecycle write here is a conditional batch update: the WHERE clause
repeats the precondition, so a row that changed since it was selected is
skipped instead of double-processed. The returned row counts are what
actually changed.
"""

from collections.abc import Sequence
from datetime import UTC, date, datetime, time, timedelta
from uuid import UUID

from sqlalchemy import ColumnElement, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from auditvault.db.models.audit import AuditEvent, EventRelation, EventStatus, RelationType
from auditvault.db.repositories.base import BaseRepository
from auditvault.db.schemas.audit import EventSearchFilters

# Statuses from which an event may still be tombstoned
DELETABLE_STATUSES = (EventStatus.ACTIVE, EventStatus.MARKED_FOR_DELETION)


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=UTC)


def ready_predicate(cutoff: date) -> list[ColumnElement[bool]]:
    """Hard deletion precondition: past retention, exported, not yet deleted."""
    return [
        AuditEvent.status.in_(DELETABLE_STATUSES),
        AuditEvent.exported_at.is_not(None),
        AuditEvent.retention_date.is_not(None),
        AuditEvent.retention_date <= cutoff,
    ]


class AuditEventRepository(BaseRepository[AuditEvent, UUID]):
    """Queries and conditional lifecycle updates for audit events."""

    def __init__(self, db: AsyncSession):
        super().__init__(db)

    # =========================================================================
    # Search
    # =========================================================================

    def _search_conditions(self, filters: EventSearchFilters) -> list[ColumnElement[bool]]:
        conditions: list[ColumnElement[bool]] = []
        if not filters.include_deleted:
            conditions.append(AuditEvent.status != EventStatus.DELETED)
        if filters.start_date is not None:
            conditions.append(AuditEvent.created_at >= _day_start(filters.start_date))
        if filters.end_date is not None:
            conditions.append(
                AuditEvent.created_at < _day_start(filters.end_date + timedelta(days=1))
            )
        if filters.categories:
            conditions.append(AuditEvent.category.in_(filters.categories))
        if filters.modules:
            conditions.append(AuditEvent.module.in_(filters.modules))
        if filters.actors:
            conditions.append(AuditEvent.actor.in_(filters.actors))
        if filters.actions:
            conditions.append(AuditEvent.action.in_(filters.actions))
        if filters.severities:
            conditions.append(AuditEvent.severity.in_(filters.severities))
        if filters.keyword:
            conditions.append(AuditEvent.description.icontains(filters.keyword, autoescape=True))
        return conditions

    async def search(
        self, filters: EventSearchFilters, *, max_limit: int = 1000
    ) -> tuple[list[AuditEvent], int]:
        """Search events newest first.

        Returns:
            The requested page and the exact number of matches
        """
        conditions = self._search_conditions(filters)

        count_stmt = select(func.count()).select_from(AuditEvent).where(*conditions)
        total = (await self.db.execute(count_stmt)).scalar() or 0

        stmt = (
            select(AuditEvent)
            .where(*conditions)
            .order_by(AuditEvent.created_at.desc(), AuditEvent.event_id.desc())
            .limit(min(filters.limit, max_limit))
            .offset(filters.offset)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total

    # =========================================================================
    # Retention selections
    # =========================================================================

    async def list_active(self, *, retention_before: date | None = None) -> list[AuditEvent]:
        """Active events, optionally limited to those due on or before a date.

        Events with no stored retention date are always included so the
        caller can derive one from the policy.
        """
        stmt = select(AuditEvent).where(AuditEvent.status == EventStatus.ACTIVE)
        if retention_before is not None:
            stmt = stmt.where(
                or_(
                    AuditEvent.retention_date.is_(None),
                    AuditEvent.retention_date <= retention_before,
                )
            )
        stmt = stmt.execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_ready(self, cutoff: date) -> list[AuditEvent]:
        """Events meeting the deletion precondition, oldest retention date first."""
        stmt = (
            select(AuditEvent)
            .where(*ready_predicate(cutoff))
            .order_by(AuditEvent.retention_date.asc(), AuditEvent.created_at.asc())
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_undated(self) -> list[AuditEvent]:
        """Deletable events that have no stored retention date."""
        stmt = (
            select(AuditEvent)
            .where(
                AuditEvent.status.in_(DELETABLE_STATUSES),
                AuditEvent.retention_date.is_(None),
            )
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    # =========================================================================
    # Conditional lifecycle updates
    # =========================================================================

    async def _apply(self, stmt) -> int:
        result = await self.db.execute(stmt.execution_options(synchronize_session=False))
        return result.rowcount or 0

    async def assign_retention_date(self, event_id: UUID, retention_date: date) -> int:
        """Store a retention date on an event that does not have one yet."""
        stmt = (
            update(AuditEvent)
            .where(AuditEvent.event_id == event_id, AuditEvent.retention_date.is_(None))
            .values(retention_date=retention_date)
        )
        return await self._apply(stmt)

    async def set_exported(self, event_ids: Sequence[UUID], exported_at: datetime) -> int:
        """Stamp the export time on events that are not tombstoned."""
        if not event_ids:
            return 0
        stmt = (
            update(AuditEvent)
            .where(
                AuditEvent.event_id.in_(event_ids),
                AuditEvent.status != EventStatus.DELETED,
            )
            .values(exported_at=exported_at)
        )
        return await self._apply(stmt)

    async def tombstone_batch(self, event_ids: Sequence[UUID], cutoff: date) -> int:
        """Move a batch to ``deleted`` where the deletion precondition still holds."""
        if not event_ids:
            return 0
        stmt = (
            update(AuditEvent)
            .where(AuditEvent.event_id.in_(event_ids), *ready_predicate(cutoff))
            .values(status=EventStatus.DELETED)
        )
        return await self._apply(stmt)

    async def tombstone_one(self, event_id: UUID, cutoff: date, description: str) -> int:
        """Tombstone a single event and overwrite its description."""
        stmt = (
            update(AuditEvent)
            .where(AuditEvent.event_id == event_id, *ready_predicate(cutoff))
            .values(status=EventStatus.DELETED, description=description)
        )
        return await self._apply(stmt)

    async def mark_for_deletion(self, event_ids: Sequence[UUID]) -> int:
        """Move active events to ``marked_for_deletion``."""
        if not event_ids:
            return 0
        stmt = (
            update(AuditEvent)
            .where(
                AuditEvent.event_id.in_(event_ids),
                AuditEvent.status == EventStatus.ACTIVE,
            )
            .values(status=EventStatus.MARKED_FOR_DELETION)
        )
        return await self._apply(stmt)

    async def postpone(self, event_ids: Sequence[UUID], retention_date: date) -> int:
        """Return marked events to ``active`` with a new retention date."""
        if not event_ids:
            return 0
        stmt = (
            update(AuditEvent)
            .where(
                AuditEvent.event_id.in_(event_ids),
                AuditEvent.status == EventStatus.MARKED_FOR_DELETION,
            )
            .values(status=EventStatus.ACTIVE, retention_date=retention_date)
        )
        return await self._apply(stmt)

    async def purge(self, event_id: UUID) -> int:
        """Physically remove a tombstoned event and every relation touching it."""
        await self.db.execute(
            delete(EventRelation).where(
                or_(
                    EventRelation.event_id == event_id,
                    EventRelation.related_event_id == event_id,
                )
            )
        )
        stmt = delete(AuditEvent).where(
            AuditEvent.event_id == event_id,
            AuditEvent.status == EventStatus.DELETED,
        )
        return await self._apply(stmt)

    # =========================================================================
    # Counts
    # =========================================================================

    async def count_by_status(self, status: EventStatus) -> int:
        stmt = select(func.count()).select_from(AuditEvent).where(AuditEvent.status == status)
        return (await self.db.execute(stmt)).scalar() or 0

    async def count_exported(self) -> int:
        stmt = (
            select(func.count())
            .select_from(AuditEvent)
            .where(AuditEvent.exported_at.is_not(None))
        )
        return (await self.db.execute(stmt)).scalar() or 0


class EventRelationRepository(BaseRepository[EventRelation, UUID]):
    """Links between audit events."""

    async def link(
        self,
        event_id: UUID,
        related_event_id: UUID,
        relation_type: RelationType,
        *,
        commit: bool = True,
    ) -> EventRelation:
        relation = EventRelation(
            event_id=event_id,
            related_event_id=related_event_id,
            relation_type=relation_type,
        )
        return await self.create(relation, commit=commit)

    async def related(self, event_id: UUID) -> list[tuple[EventRelation, AuditEvent]]:
        """Relations leaving or entering an event, paired with the other event."""
        outgoing = (
            select(EventRelation, AuditEvent)
            .join(AuditEvent, AuditEvent.event_id == EventRelation.related_event_id)
            .where(EventRelation.event_id == event_id)
        )
        incoming = (
            select(EventRelation, AuditEvent)
            .join(AuditEvent, AuditEvent.event_id == EventRelation.event_id)
            .where(EventRelation.related_event_id == event_id)
        )
        pairs: list[tuple[EventRelation, AuditEvent]] = []
        for stmt in (outgoing, incoming):
            result = await self.db.execute(stmt.order_by(EventRelation.created_at))
            pairs.extend((relation, event) for relation, event in result.all())
        return pairs
