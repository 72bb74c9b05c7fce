"""Retention lifecycle models: configuration, alerts, exports, receipts."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import BigInteger, Boolean, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from uuid_utils.compat import uuid7

from .audit import enum_column
from .base import Base, PortableUUID, TimestampMixin, UTCDateTime, utcnow


class AlertType(str, Enum):
    """Kinds of retention notifications."""

    RETENTION_WARNING = "retention_warning"
    EXPORT_READY = "export_ready"
    DELETION_COMPLETE = "deletion_complete"


class AlertStatus(str, Enum):
    """Alert progression; statuses only move forward."""

    PENDING = "pending"
    ACKNOWLEDGED = "acknowledged"
    EXPORTED = "exported"
    DELETED = "deleted"


class ExportFormat(str, Enum):
    """File formats produced by audit exports."""

    PDF = "pdf"
    EXCEL = "excel"


class RetentionConfig(TimestampMixin, Base):
    """Singleton retention policy row.

    Absent until the first explicit update; readers fall back to the
    synthesized default without writing it.
    """

    __tablename__ = "retention_config"

    config_id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True, default=uuid7)
    retention_months: Mapped[int] = mapped_column(Integer, nullable=False)
    alert_days_before: Mapped[int] = mapped_column(Integer, nullable=False)
    auto_delete_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    updated_by: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<RetentionConfig(months={self.retention_months}, "
            f"alert_days={self.alert_days_before}, auto_delete={self.auto_delete_enabled})>"
        )


class RetentionAlert(Base):
    """One lifecycle notification shown to an operator."""

    __tablename__ = "retention_alerts"

    alert_id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True, default=uuid7)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    alert_type: Mapped[AlertType] = mapped_column(enum_column(AlertType), nullable=False)
    event_count: Mapped[int] = mapped_column(Integer, nullable=False)
    date_range_start: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    date_range_end: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    status: Mapped[AlertStatus] = mapped_column(
        enum_column(AlertStatus), nullable=False, default=AlertStatus.PENDING
    )
    export_filename: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)
    acknowledged_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    exported_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    deleted_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    __table_args__ = (
        Index("idx_alert_user_status", "user_id", "status"),
        Index("idx_alert_created", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<RetentionAlert(id={self.alert_id}, type={self.alert_type}, status={self.status})>"


class ExportRecord(Base):
    """Immutable log entry for one export of audit events."""

    __tablename__ = "export_records"

    export_id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True, default=uuid7)
    exported_by: Mapped[str] = mapped_column(String(255), nullable=False)
    export_format: Mapped[ExportFormat] = mapped_column(enum_column(ExportFormat), nullable=False)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    event_count: Mapped[int] = mapped_column(Integer, nullable=False)
    date_range_start: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    date_range_end: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    file_size_bytes: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)

    __table_args__ = (Index("idx_export_created", "created_at"),)


class DeletionReceipt(Base):
    """Immutable record of one completed batch deletion run.

    ``verification_checksum`` covers ``deleted_count``, ``deleted_by`` and
    ``deleted_at``; any later edit to those fields fails verification.
    """

    __tablename__ = "deletion_receipts"

    receipt_id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True, default=uuid7)
    deleted_by: Mapped[str] = mapped_column(String(255), nullable=False)
    deleted_count: Mapped[int] = mapped_column(Integer, nullable=False)
    date_range_start: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    date_range_end: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    alert_id: Mapped[UUID | None] = mapped_column(
        PortableUUID(),
        ForeignKey("retention_alerts.alert_id", ondelete="SET NULL"),
        nullable=True,
    )
    deleted_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    verification_checksum: Mapped[str | None] = mapped_column(String(16), nullable=True)

    __table_args__ = (Index("idx_receipt_deleted_at", "deleted_at"),)

    def __repr__(self) -> str:
        return (
            f"<DeletionReceipt(id={self.receipt_id}, count={self.deleted_count}, "
            f"by={self.deleted_by})>"
        )
