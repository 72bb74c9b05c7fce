"""Eligibility evaluation: which active events are nearing deletion.

Read-only. Nothing here touches the store or mutates the events passed in.
"""

from collections.abc import Iterable
from datetime import date

from auditvault.compliance.retention.policies import effective_retention_date
from auditvault.compliance.retention.types import EligibleEvent
from auditvault.db.models.audit import AuditEvent, EventStatus
from auditvault.db.models.retention import RetentionConfig


def days_until_deletion(retention_date: date, today: date) -> int:
    """Whole days from ``today`` to ``retention_date``; negative when overdue."""
    return (retention_date - today).days


def evaluate_eligibility(
    config: RetentionConfig,
    events: Iterable[AuditEvent],
    threshold_days: int,
    today: date,
) -> list[EligibleEvent]:
    """List active events due for deletion within ``threshold_days``.

    Args:
        config: Policy used for events without a stored retention date
        events: Candidate events; non-active ones are skipped
        threshold_days: Alert lead time in days
        today: Evaluation date

    Returns:
        Eligible events, earliest retention date first
    """
    eligible: list[EligibleEvent] = []
    for event in events:
        if event.status != EventStatus.ACTIVE:
            continue
        retention_date = effective_retention_date(event, config)
        remaining = days_until_deletion(retention_date, today)
        if remaining > threshold_days:
            continue
        eligible.append(
            EligibleEvent(
                event_id=event.event_id,
                category=event.category,
                description=event.description,
                created_at=event.created_at,
                status=event.status,
                retention_date=retention_date,
                days_until_deletion=remaining,
                exported=event.exported_at is not None,
            )
        )

    eligible.sort(key=lambda e: (e.retention_date, e.created_at))
    return eligible
