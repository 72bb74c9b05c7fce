"""Response schemas for event snapshot diffs."""

from typing import Any
from uuid import UUID

from pydantic import BaseModel

from auditvault.diff import Change, ChangeKind


class FieldChangeResponse(BaseModel):
    """One changed field. Absent sides are null with an ``(empty)`` display."""

    field: str
    kind: ChangeKind
    old_value: Any | None
    new_value: Any | None
    old_display: str
    new_display: str


class EventDiffResponse(BaseModel):
    event_id: UUID
    before_empty: bool
    after_empty: bool
    changes: list[FieldChangeResponse]

    @classmethod
    def from_changes(
        cls,
        event_id: UUID,
        changes: dict[str, Change],
        *,
        before_empty: bool,
        after_empty: bool,
    ) -> "EventDiffResponse":
        return cls(
            event_id=event_id,
            before_empty=before_empty,
            after_empty=after_empty,
            changes=[
                FieldChangeResponse(field=name, **change.to_dict())
                for name, change in changes.items()
            ],
        )
