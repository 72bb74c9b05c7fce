"""Audit logging service for recording and querying system actions."""

from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from auditvault.compliance.retention.policies import compute_retention_date, resolve_config
from auditvault.compliance.retention.types import DEFAULT_CLOCK, Clock
from auditvault.config.settings import get_settings
from auditvault.core.context import get_current_actor
from auditvault.core.error_handling import store_errors
from auditvault.core.logging import get_logger, log_exception
from auditvault.db.models.audit import AuditEvent, AuditSeverity, EventRelation, RelationType
from auditvault.db.repositories.audit import AuditEventRepository, EventRelationRepository
from auditvault.db.repositories.retention import RetentionConfigRepository
from auditvault.db.schemas.audit import EventSearchFilters
from auditvault.diff import Change, diff_event

logger = get_logger(__name__)

CRITICAL_DELETE_CATEGORIES = frozenset({"user", "product"})
WARNING_ACTIONS = frozenset({"stock_update", "auto_apply"})


def derive_severity(category: str, action: str | None) -> AuditSeverity:
    """Default severity for an event from what it did and to what.

    Deleting users or products is critical, any other delete is an error,
    stock updates and automatic applications are warnings.
    """
    action_key = (action or "").strip().lower()
    if action_key == "delete":
        if category.strip().lower() in CRITICAL_DELETE_CATEGORIES:
            return AuditSeverity.CRITICAL
        return AuditSeverity.ERROR
    if action_key in WARNING_ACTIONS:
        return AuditSeverity.WARNING
    return AuditSeverity.INFO


class AuditLogger:
    """Service for creating and querying audit events.

    New events start ``active`` with a retention date taken from the policy
    in force when they are written.
    """

    def __init__(self, db: AsyncSession, clock: Clock = DEFAULT_CLOCK):
        """Initialize audit logger with database session.

        Args:
            db: Async SQLAlchemy session for database operations
            clock: Source of the creation timestamp
        """
        self.db = db
        self.clock = clock
        self.events = AuditEventRepository(db)
        self.relations = EventRelationRepository(db)
        self.configs = RetentionConfigRepository(db)

    @store_errors("log_event")
    async def log_event(
        self,
        category: str,
        description: str,
        actor: str | None = None,
        module: str | None = None,
        action: str | None = None,
        subject_id: str | None = None,
        subject_type: str | None = None,
        subject_name: str | None = None,
        details: Any | None = None,
        before: Any | None = None,
        after: Any | None = None,
        severity: AuditSeverity | str | None = None,
    ) -> AuditEvent:
        """Record an audit event.

        Args:
            category: Category tag (sale, product, user, ...)
            description: Human-readable summary
            actor: Acting user (default: the request context's actor)
            module: Originating module
            action: Action verb (create, update, delete, ...)
            subject_id: Identifier of the affected entity
            subject_type: Type of the affected entity
            subject_name: Display name of the affected entity
            details: Extra structured data
            before: Snapshot of the entity before the action
            after: Snapshot of the entity after the action
            severity: Explicit severity (default: derived from category and action)

        Returns:
            The persisted AuditEvent

        Example:
            >>> audit = AuditLogger(db_session)
            >>> event = await audit.log_event(
            ...     "product",
            ...     "Price changed",
            ...     action="update",
            ...     before={"price": 10},
            ...     after={"price": 12},
            ... )
        """
        if severity is None:
            severity = derive_severity(category, action)
        elif isinstance(severity, str):
            severity = AuditSeverity(severity)

        config = resolve_config(await self.configs.get_current())
        created_at = self.clock()

        event = AuditEvent(
            created_at=created_at,
            category=category,
            description=description,
            actor=actor or get_current_actor(),
            module=module,
            action=action,
            severity=severity,
            subject_id=subject_id,
            subject_type=subject_type,
            subject_name=subject_name,
            details=details,
            before_data=before,
            after_data=after,
            retention_date=compute_retention_date(created_at, config.retention_months),
        )
        event = await self.events.create(event)

        logger.debug(
            "audit_event_logged",
            event_id=str(event.event_id),
            category=category,
            severity=severity.value,
        )
        return event

    @store_errors("link_events")
    async def link_events(
        self, event_id: UUID, related_event_id: UUID, relation_type: RelationType
    ) -> EventRelation:
        await self.events.get_or_raise(event_id)
        await self.events.get_or_raise(related_event_id)
        return await self.relations.link(event_id, related_event_id, relation_type)

    async def log_event_with_related(
        self,
        category: str,
        description: str,
        related_event_id: UUID,
        relation_type: RelationType,
        **fields: Any,
    ) -> AuditEvent:
        """Record an event and link it to an earlier one."""
        event = await self.log_event(category, description, **fields)
        await self.link_events(event.event_id, related_event_id, relation_type)
        return event

    @store_errors("search_events")
    async def search_events(
        self, filters: EventSearchFilters
    ) -> tuple[list[AuditEvent], int]:
        """Search the audit trail.

        Returns:
            Matching events newest first and the total number of matches
        """
        return await self.events.search(
            filters, max_limit=get_settings().retention.search_max_limit
        )

    @store_errors("get_event")
    async def get_event(self, event_id: UUID) -> AuditEvent:
        """Raises RecordNotFoundError if the event does not exist."""
        return await self.events.get_or_raise(event_id)

    @store_errors("get_related_events")
    async def get_related_events(
        self, event_id: UUID
    ) -> list[tuple[RelationType, AuditEvent]]:
        await self.events.get_or_raise(event_id)
        pairs = await self.relations.related(event_id)
        return [(relation.relation_type, event) for relation, event in pairs]

    async def diff_event(self, event_id: UUID) -> dict[str, Change]:
        """Field changes between the event's before and after snapshots."""
        return diff_event(await self.get_event(event_id))


async def safe_log_event(
    db: AsyncSession, category: str, description: str, **fields: Any
) -> AuditEvent | None:
    """Record an audit event without ever raising.

    Audit logging must not break the action it records: any failure is
    logged and swallowed, and None is returned.
    """
    try:
        return await AuditLogger(db).log_event(category, description, **fields)
    except Exception as exc:
        log_exception(logger, exc, operation="safe_log_event", category=category)
        return None
