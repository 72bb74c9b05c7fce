"""Retention policy arithmetic and the built-in default policy.

The stored policy is optional. ``resolve_config`` is the one place the
default is substituted, and it never writes anything.
"""

import calendar
from datetime import UTC, date, datetime

from auditvault.config.settings import RetentionDefaults, get_settings
from auditvault.core.context import SYSTEM_ACTOR
from auditvault.db.models.audit import AuditEvent
from auditvault.db.models.retention import RetentionConfig


def add_months(day: date, months: int) -> date:
    """Add calendar months, clamping to the last day of a shorter month.

    ``add_months(date(2024, 1, 31), 1)`` is ``date(2024, 2, 29)``.
    """
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def compute_retention_date(created_at: datetime, retention_months: int) -> date:
    """Retention date for an event created at ``created_at`` (UTC calendar day)."""
    if created_at.tzinfo is not None:
        created_at = created_at.astimezone(UTC)
    return add_months(created_at.date(), retention_months)


def default_retention_config(defaults: RetentionDefaults | None = None) -> RetentionConfig:
    """Build the default policy as a transient object.

    The result is not attached to any session.
    """
    defaults = defaults or get_settings().retention
    return RetentionConfig(
        retention_months=defaults.retention_months,
        alert_days_before=defaults.alert_days_before,
        auto_delete_enabled=defaults.auto_delete_enabled,
        updated_by=SYSTEM_ACTOR,
    )


def resolve_config(
    stored: RetentionConfig | None, defaults: RetentionDefaults | None = None
) -> RetentionConfig:
    """Return the stored policy, or the default when none was saved."""
    if stored is not None:
        return stored
    return default_retention_config(defaults)


def effective_retention_date(event: AuditEvent, config: RetentionConfig) -> date:
    """The event's stored retention date, else one derived from the policy."""
    if event.retention_date is not None:
        return event.retention_date
    return compute_retention_date(event.created_at, config.retention_months)
