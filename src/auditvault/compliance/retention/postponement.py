"""Postponement: an operator defers deletion of marked events."""

from collections.abc import Sequence
from datetime import UTC, date, timedelta
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from auditvault.compliance.retention.types import DEFAULT_CLOCK, Clock
from auditvault.core.error_handling import store_errors
from auditvault.core.exceptions import NoEligibleEventsError
from auditvault.core.logging import get_logger
from auditvault.db.repositories.audit import AuditEventRepository

logger = get_logger(__name__)

DEFAULT_POSTPONE_DAYS = 7


class PostponementControl:
    """Returns ``marked_for_deletion`` events to ``active`` with a later retention date."""

    def __init__(self, db: AsyncSession, clock: Clock = DEFAULT_CLOCK):
        self.db = db
        self.clock = clock
        self.events = AuditEventRepository(db)

    def new_retention_date(self, days: int) -> date:
        return self.clock().astimezone(UTC).date() + timedelta(days=days)

    @store_errors("postpone")
    async def postpone(self, event_ids: Sequence[UUID], days: int = DEFAULT_POSTPONE_DAYS) -> int:
        """Push retention out to ``today + days`` for the listed marked events.

        Ids that are not currently marked for deletion are ignored.

        Returns:
            Number of events postponed

        Raises:
            NoEligibleEventsError: If no ids were given
            ValueError: If ``days`` is not positive
        """
        if not event_ids:
            raise NoEligibleEventsError("postponement", "No events selected for postponement")
        if days < 1:
            raise ValueError("days must be at least 1")

        retention_date = self.new_retention_date(days)
        postponed = await self.events.postpone(list(event_ids), retention_date)
        await self.db.commit()

        logger.info(
            "postponement_applied",
            requested=len(event_ids),
            postponed=postponed,
            retention_date=retention_date.isoformat(),
        )
        return postponed
