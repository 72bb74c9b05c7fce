"""Snapshot values recorded as the before/after state of an audited entity.

A snapshot is JSON-shaped: ``None``, a scalar (str, int, float, bool), a list,
or a mapping of field name to snapshot value. Stored snapshots may also arrive
as serialized JSON text, which is parsed on the way in.
"""

import json
from collections.abc import Mapping
from typing import Any, Final, TypeAlias

Scalar: TypeAlias = str | int | float | bool
SnapshotValue: TypeAlias = Scalar | list["SnapshotValue"] | dict[str, "SnapshotValue"] | None


class _Missing:
    """Marker for a field that is absent from a snapshot (distinct from null)."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Final = _Missing()

# Field name used when a snapshot is not a mapping
WHOLE_VALUE_FIELD = "value"


def parse_snapshot(raw: Any) -> Any:
    """Decode serialized snapshot text.

    Non-string input is returned unchanged. Text that is not valid JSON is
    kept as the raw string.
    """
    if isinstance(raw, str):
        try:
            return json.loads(raw)
        except ValueError:
            return raw
    return raw


def snapshot_fields(raw: Any) -> dict[str, Any]:
    """Top-level fields of a snapshot in their recorded order.

    An absent snapshot has no fields. A snapshot that parses to something other
    than a mapping is treated as a single opaque field.
    """
    value = parse_snapshot(raw)
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return {str(key): item for key, item in value.items()}
    return {WHOLE_VALUE_FIELD: value}


def canonical(value: Any) -> str:
    """Compact JSON serialization used for equality.

    Key order is preserved, so mappings with the same items in a different
    order do not compare equal.
    """
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)
