"""Audit event models: the recorded actions and their lifecycle state."""

from datetime import date, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import Date, Enum as SAEnum, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from uuid_utils.compat import uuid7

from .base import Base, PortableJSON, PortableUUID, UTCDateTime, utcnow


def enum_column(enum_cls: type[Enum], length: int = 32) -> SAEnum:
    """Store a str Enum by value in a plain VARCHAR column."""
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


class EventStatus(str, Enum):
    """Lifecycle status of an audit event.

    ``active`` -> ``marked_for_deletion`` -> ``deleted``. The only way
    back is postponement, which returns a marked event to ``active``.
    """

    ACTIVE = "active"
    MARKED_FOR_DELETION = "marked_for_deletion"
    DELETED = "deleted"


class AuditSeverity(str, Enum):
    """Severity levels for audit events."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class RelationType(str, Enum):
    """How two audit events are connected."""

    CAUSE = "cause"
    EFFECT = "effect"
    CASCADE = "cascade"
    LINKED = "linked"


class AuditEvent(Base):
    """Append-mostly record of a system action.

    Only export recording, retention status transitions and postponement
    mutate a row after it is written. Deletion leaves a tombstone with
    status ``deleted``; physical removal is a separate hard delete.
    """

    __tablename__ = "audit_events"

    # UUIDv7 is time-ordered, making events naturally sortable by ID
    event_id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True, default=uuid7)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)

    # What happened
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    actor: Mapped[str] = mapped_column(String(255), nullable=False, default="System")
    module: Mapped[str | None] = mapped_column(String(100), nullable=True)
    action: Mapped[str | None] = mapped_column(String(100), nullable=True)
    severity: Mapped[AuditSeverity | None] = mapped_column(
        enum_column(AuditSeverity), nullable=True
    )

    # Subject entity
    subject_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    subject_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    subject_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Structured payloads
    details: Mapped[Any | None] = mapped_column(PortableJSON(), nullable=True)
    before_data: Mapped[Any | None] = mapped_column(PortableJSON(), nullable=True)
    after_data: Mapped[Any | None] = mapped_column(PortableJSON(), nullable=True)

    # Retention lifecycle
    status: Mapped[EventStatus] = mapped_column(
        enum_column(EventStatus), nullable=False, default=EventStatus.ACTIVE
    )
    retention_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    exported_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    __table_args__ = (
        Index("idx_event_created", "created_at"),
        Index("idx_event_category", "category"),
        Index("idx_event_actor", "actor"),
        Index("idx_event_lifecycle", "status", "retention_date"),
        Index("idx_event_subject", "subject_type", "subject_id"),
    )

    @property
    def has_been_exported(self) -> bool:
        return self.exported_at is not None

    def __repr__(self) -> str:
        return (
            f"<AuditEvent(id={self.event_id}, category={self.category}, "
            f"status={self.status})>"
        )


class EventRelation(Base):
    """Directed link between two audit events."""

    __tablename__ = "event_relations"

    relation_id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True, default=uuid7)
    event_id: Mapped[UUID] = mapped_column(
        PortableUUID(), ForeignKey("audit_events.event_id", ondelete="CASCADE"), nullable=False
    )
    related_event_id: Mapped[UUID] = mapped_column(
        PortableUUID(), ForeignKey("audit_events.event_id", ondelete="CASCADE"), nullable=False
    )
    relation_type: Mapped[RelationType] = mapped_column(enum_column(RelationType), nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_relation_event", "event_id"),
        Index("idx_relation_related", "related_event_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<EventRelation({self.event_id} -{self.relation_type}-> {self.related_event_id})>"
        )
