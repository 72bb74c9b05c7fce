"""Structural diff engine for audit event snapshots."""

from auditvault.diff.engine import (
    Change,
    ChangeKind,
    diff,
    diff_event,
    format_value,
    is_empty_data,
)
from auditvault.diff.snapshot import MISSING, SnapshotValue, canonical, parse_snapshot

__all__ = [
    "MISSING",
    "Change",
    "ChangeKind",
    "SnapshotValue",
    "canonical",
    "diff",
    "diff_event",
    "format_value",
    "is_empty_data",
    "parse_snapshot",
]
