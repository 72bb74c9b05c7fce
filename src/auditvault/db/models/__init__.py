"""Database models for auditvault."""

from .audit import AuditEvent, AuditSeverity, EventRelation, EventStatus, RelationType
from .base import Base, TimestampMixin
from .retention import (
    AlertStatus,
    AlertType,
    DeletionReceipt,
    ExportFormat,
    ExportRecord,
    RetentionAlert,
    RetentionConfig,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "AuditEvent",
    "AuditSeverity",
    "EventRelation",
    "EventStatus",
    "RelationType",
    "AlertStatus",
    "AlertType",
    "DeletionReceipt",
    "ExportFormat",
    "ExportRecord",
    "RetentionAlert",
    "RetentionConfig",
]
