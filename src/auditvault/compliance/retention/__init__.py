"""Audit retention lifecycle.

This package decides when audit events may be deleted and carries out the
deletion safely:
- Calendar-aware retention policy with an explicit default
- Eligibility evaluation for retention warnings
- Export gate blocking deletion of events never exported
- Batched, resumable deletion with checksummed receipts
- Postponement of marked events
- Forward-only alert ledger

Usage:
    from auditvault.compliance.retention import RetentionManager

    manager = RetentionManager(session)

    # Warn the operator about events nearing deletion
    alert = await manager.raise_retention_warning("Maria")

    # Record the export that archives them
    await manager.mark_exported(event_ids, alert_id=alert.alert_id, filename="audit.xlsx")

    # Delete everything exported and past retention
    receipt = await manager.delete_eligible(actor="Maria")
    assert await manager.verify_receipt(receipt.receipt_id)
"""

from auditvault.compliance.retention.alerts import ALLOWED_TRANSITIONS, AlertLedger, can_transition
from auditvault.compliance.retention.deletion import DEFAULT_BATCH_SIZE, BatchDeletionEngine
from auditvault.compliance.retention.eligibility import days_until_deletion, evaluate_eligibility
from auditvault.compliance.retention.export_gate import ExportGate, has_been_exported
from auditvault.compliance.retention.integrity import (
    compute_checksum,
    format_timestamp,
    verify,
    verify_or_raise,
)
from auditvault.compliance.retention.manager import RetentionManager
from auditvault.compliance.retention.policies import (
    add_months,
    compute_retention_date,
    default_retention_config,
    effective_retention_date,
    resolve_config,
)
from auditvault.compliance.retention.postponement import PostponementControl
from auditvault.compliance.retention.types import (
    Clock,
    DeletionStats,
    EligibleEvent,
    RetentionSummary,
)

__all__ = [
    # Types
    "Clock",
    "DeletionStats",
    "EligibleEvent",
    "RetentionSummary",
    # Policy
    "add_months",
    "compute_retention_date",
    "default_retention_config",
    "effective_retention_date",
    "resolve_config",
    # Eligibility
    "days_until_deletion",
    "evaluate_eligibility",
    # Services
    "ALLOWED_TRANSITIONS",
    "AlertLedger",
    "BatchDeletionEngine",
    "DEFAULT_BATCH_SIZE",
    "ExportGate",
    "PostponementControl",
    "RetentionManager",
    "can_transition",
    "has_been_exported",
    # Integrity
    "compute_checksum",
    "format_timestamp",
    "verify",
    "verify_or_raise",
]
