"""Data access repositories."""

from auditvault.db.repositories.audit import AuditEventRepository, EventRelationRepository
from auditvault.db.repositories.base import BaseRepository
from auditvault.db.repositories.retention import (
    DeletionReceiptRepository,
    ExportRecordRepository,
    RetentionAlertRepository,
    RetentionConfigRepository,
)

__all__ = [
    "AuditEventRepository",
    "BaseRepository",
    "DeletionReceiptRepository",
    "EventRelationRepository",
    "ExportRecordRepository",
    "RetentionAlertRepository",
    "RetentionConfigRepository",
]
