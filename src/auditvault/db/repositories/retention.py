"""Repositories for the retention lifecycle records."""

from collections.abc import Sequence
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select, update

from auditvault.db.models.retention import (
    AlertStatus,
    DeletionReceipt,
    ExportRecord,
    RetentionAlert,
    RetentionConfig,
)
from auditvault.db.repositories.base import BaseRepository


class RetentionConfigRepository(BaseRepository[RetentionConfig, UUID]):
    """Access to the singleton retention policy row."""

    async def get_current(self) -> RetentionConfig | None:
        """Return the stored policy, or None when it was never saved.

        Should more than one row exist, the most recently updated wins.
        """
        stmt = (
            select(RetentionConfig)
            .order_by(RetentionConfig.updated_at.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()


class RetentionAlertRepository(BaseRepository[RetentionAlert, UUID]):
    """Alert rows and their forward-only status updates."""

    async def transition(
        self,
        alert_id: UUID,
        allowed_from: Sequence[AlertStatus],
        target: AlertStatus,
        **values,
    ) -> int:
        """Move an alert to ``target`` only if it is still in an allowed status."""
        stmt = (
            update(RetentionAlert)
            .where(
                RetentionAlert.alert_id == alert_id,
                RetentionAlert.status.in_(allowed_from),
            )
            .values(status=target, **values)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount or 0

    async def list_pending(self, user_id: str | None = None) -> list[RetentionAlert]:
        stmt = select(RetentionAlert).where(RetentionAlert.status == AlertStatus.PENDING)
        if user_id is not None:
            stmt = stmt.where(RetentionAlert.user_id == user_id)
        stmt = stmt.order_by(RetentionAlert.created_at.desc()).execution_options(
            populate_existing=True
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_for_user(self, user_id: str, limit: int = 50) -> list[RetentionAlert]:
        stmt = (
            select(RetentionAlert)
            .where(RetentionAlert.user_id == user_id)
            .order_by(RetentionAlert.created_at.desc())
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count_pending(self, user_id: str | None = None) -> int:
        stmt = (
            select(func.count())
            .select_from(RetentionAlert)
            .where(RetentionAlert.status == AlertStatus.PENDING)
        )
        if user_id is not None:
            stmt = stmt.where(RetentionAlert.user_id == user_id)
        return (await self.db.execute(stmt)).scalar() or 0


class ExportRecordRepository(BaseRepository[ExportRecord, UUID]):
    """Immutable export log."""

    async def list_recent_exports(self, limit: int = 50) -> list[ExportRecord]:
        return await self.list_recent(order_by="created_at", limit=limit)


class DeletionReceiptRepository(BaseRepository[DeletionReceipt, UUID]):
    """Immutable deletion receipts."""

    async def list_recent_receipts(self, limit: int = 50) -> list[DeletionReceipt]:
        return await self.list_recent(order_by="deleted_at", limit=limit)

    async def total_deleted(self) -> int:
        stmt = select(func.coalesce(func.sum(DeletionReceipt.deleted_count), 0))
        return (await self.db.execute(stmt)).scalar() or 0

    async def latest_deleted_at(self) -> datetime | None:
        stmt = select(func.max(DeletionReceipt.deleted_at))
        return (await self.db.execute(stmt)).scalar()
