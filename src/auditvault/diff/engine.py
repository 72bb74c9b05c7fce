"""Shallow structural diff between two entity snapshots.

Usage:
    from auditvault.diff import diff

    changes = diff({"price": 10, "name": "Mug"}, {"price": 12, "name": "Mug"})
    # {"price": Change(kind=ChangeKind.MODIFIED, old_value=10, new_value=12)}

Nested mappings and lists are compared as whole values by their canonical
serialization. No input makes the engine raise.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from auditvault.diff.snapshot import MISSING, canonical, parse_snapshot, snapshot_fields

EMPTY_MARKER = "(empty)"
NULL_MARKER = "null"


class ChangeKind(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"


@dataclass(frozen=True)
class Change:
    """One changed top-level field. Absent sides hold ``MISSING``."""

    kind: ChangeKind
    old_value: Any
    new_value: Any

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "old_value": None if self.old_value is MISSING else self.old_value,
            "new_value": None if self.new_value is MISSING else self.new_value,
            "old_display": format_value(self.old_value),
            "new_display": format_value(self.new_value),
        }


class HasSnapshots(Protocol):
    before_data: Any
    after_data: Any


def diff(old: Any, new: Any) -> dict[str, Change]:
    """Compare two snapshots field by field.

    Args:
        old: Previous snapshot (mapping, JSON text, or None)
        new: Current snapshot (mapping, JSON text, or None)

    Returns:
        Changed fields only, old snapshot's field order first, then fields
        present only in the new snapshot
    """
    old_fields = snapshot_fields(old)
    new_fields = snapshot_fields(new)

    changes: dict[str, Change] = {}
    for key in dict.fromkeys([*old_fields, *new_fields]):
        in_old = key in old_fields
        in_new = key in new_fields
        if in_old and in_new:
            old_value, new_value = old_fields[key], new_fields[key]
            if canonical(old_value) != canonical(new_value):
                changes[key] = Change(ChangeKind.MODIFIED, old_value, new_value)
        elif in_new:
            changes[key] = Change(ChangeKind.ADDED, MISSING, new_fields[key])
        else:
            changes[key] = Change(ChangeKind.REMOVED, old_fields[key], MISSING)
    return changes


def format_value(value: Any) -> str:
    """Render a snapshot value for display."""
    if value is MISSING:
        return EMPTY_MARKER
    if value is None:
        return NULL_MARKER
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, indent=2, default=str)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def is_empty_data(raw: Any) -> bool:
    """True when a snapshot is absent or holds an empty mapping or list."""
    if raw is None or raw == "":
        return True
    value = parse_snapshot(raw)
    if value is None:
        return True
    return isinstance(value, (dict, list)) and not value


def diff_event(event: HasSnapshots) -> dict[str, Change]:
    """Diff an audit event's recorded before and after snapshots."""
    return diff(event.before_data, event.after_data)
