"""Unit tests for the audit logging service."""

from datetime import UTC, date, datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError
from uuid_utils.compat import uuid7

from auditvault.core.audit import AuditLogger, derive_severity, safe_log_event
from auditvault.core.context import create_context, request_context
from auditvault.core.exceptions import RecordNotFoundError, StoreUnavailableError
from auditvault.db.models.audit import AuditSeverity, EventStatus, RelationType
from auditvault.db.models.retention import RetentionConfig
from auditvault.db.schemas.audit import EventSearchFilters
from auditvault.diff import ChangeKind


class TestDeriveSeverity:
    @pytest.mark.parametrize(
        "category,action,expected",
        [
            ("user", "delete", AuditSeverity.CRITICAL),
            ("Product", "DELETE", AuditSeverity.CRITICAL),
            ("sale", "delete", AuditSeverity.ERROR),
            ("stock", "stock_update", AuditSeverity.WARNING),
            ("promotion", "auto_apply", AuditSeverity.WARNING),
            ("sale", "create", AuditSeverity.INFO),
            ("sale", None, AuditSeverity.INFO),
        ],
    )
    def test_derivation(self, category, action, expected):
        assert derive_severity(category, action) == expected


@pytest.mark.asyncio
class TestLogEvent:
    async def test_log_event_basic(self, db_session, clock):
        audit = AuditLogger(db_session, clock)

        event = await audit.log_event(
            "product",
            "Price changed",
            actor="Maria",
            module="catalog",
            action="update",
            subject_id="42",
            subject_type="product",
            subject_name="Mug",
            before={"price": 10},
            after={"price": 12},
        )

        assert event.event_id is not None
        assert event.created_at == clock.now
        assert event.actor == "Maria"
        assert event.severity == AuditSeverity.INFO
        assert event.status == EventStatus.ACTIVE
        assert event.exported_at is None
        assert event.before_data == {"price": 10}
        assert event.retention_date == date(2024, 7, 1)

    async def test_actor_from_request_context(self, db_session, clock):
        audit = AuditLogger(db_session, clock)

        with request_context(create_context(actor="Joao")):
            event = await audit.log_event("sale", "Sale recorded")

        assert event.actor == "Joao"

    async def test_actor_defaults_to_system(self, db_session, clock):
        event = await AuditLogger(db_session, clock).log_event("sale", "Sale recorded")

        assert event.actor == "System"

    async def test_explicit_severity(self, db_session, clock):
        audit = AuditLogger(db_session, clock)

        event = await audit.log_event("sale", "Refund", action="delete", severity="warning")

        assert event.severity == AuditSeverity.WARNING

    async def test_retention_follows_stored_policy(self, db_session, clock):
        db_session.add(
            RetentionConfig(
                retention_months=12,
                alert_days_before=30,
                auto_delete_enabled=True,
                updated_by="Maria",
            )
        )
        await db_session.commit()

        event = await AuditLogger(db_session, clock).log_event("sale", "Sale recorded")

        assert event.retention_date == date(2025, 4, 1)


@pytest.mark.asyncio
class TestSearchEvents:
    async def test_filters_and_total(self, db_session, clock, make_event):
        await make_event(category="sale", description="Sale #1")
        await make_event(category="sale", description="Sale #2")
        await make_event(category="user", description="User created")

        events, total = await AuditLogger(db_session, clock).search_events(
            EventSearchFilters(categories=["sale"])
        )

        assert total == 2
        assert {e.description for e in events} == {"Sale #1", "Sale #2"}

    async def test_newest_first_with_paging(self, db_session, clock, make_event):
        base = datetime(2024, 3, 1, tzinfo=UTC)
        for i in range(5):
            await make_event(created_at=base + timedelta(hours=i), description=f"Event {i}")

        events, total = await AuditLogger(db_session, clock).search_events(
            EventSearchFilters(limit=2, offset=1)
        )

        assert total == 5
        assert [e.description for e in events] == ["Event 3", "Event 2"]

    async def test_date_range_is_inclusive(self, db_session, clock, make_event):
        await make_event(created_at=datetime(2024, 3, 1, 0, 0, tzinfo=UTC), description="start")
        await make_event(created_at=datetime(2024, 3, 2, 23, 59, tzinfo=UTC), description="end")
        await make_event(created_at=datetime(2024, 3, 3, 0, 0, tzinfo=UTC), description="after")

        events, total = await AuditLogger(db_session, clock).search_events(
            EventSearchFilters(start_date=date(2024, 3, 1), end_date=date(2024, 3, 2))
        )

        assert total == 2
        assert {e.description for e in events} == {"start", "end"}

    async def test_keyword_is_case_insensitive_and_literal(self, db_session, clock, make_event):
        await make_event(description="Discount 50% applied")
        await make_event(description="Discount 5 applied")

        events, _ = await AuditLogger(db_session, clock).search_events(
            EventSearchFilters(keyword="discount 50%")
        )

        assert [e.description for e in events] == ["Discount 50% applied"]

    async def test_tombstones_hidden_by_default(self, db_session, clock, make_event):
        await make_event(description="kept")
        await make_event(description="gone", status=EventStatus.DELETED)
        audit = AuditLogger(db_session, clock)

        _, visible = await audit.search_events(EventSearchFilters())
        _, everything = await audit.search_events(EventSearchFilters(include_deleted=True))

        assert visible == 1
        assert everything == 2

    async def test_severity_and_actor_filters(self, db_session, clock, make_event):
        await make_event(actor="Maria", severity=AuditSeverity.CRITICAL)
        await make_event(actor="Maria", severity=AuditSeverity.INFO)
        await make_event(actor="Joao", severity=AuditSeverity.CRITICAL)

        _, total = await AuditLogger(db_session, clock).search_events(
            EventSearchFilters(actors=["Maria"], severities=[AuditSeverity.CRITICAL])
        )

        assert total == 1


@pytest.mark.asyncio
class TestRelationsAndDiff:
    async def test_log_event_with_related(self, db_session, clock):
        audit = AuditLogger(db_session, clock)
        sale = await audit.log_event("sale", "Sale recorded")

        stock = await audit.log_event_with_related(
            "stock",
            "Stock decremented",
            sale.event_id,
            RelationType.EFFECT,
            action="stock_update",
        )

        from_stock = await audit.get_related_events(stock.event_id)
        from_sale = await audit.get_related_events(sale.event_id)
        assert [(r, e.event_id) for r, e in from_stock] == [(RelationType.EFFECT, sale.event_id)]
        assert [(r, e.event_id) for r, e in from_sale] == [(RelationType.EFFECT, stock.event_id)]
        assert stock.severity == AuditSeverity.WARNING

    async def test_link_to_unknown_event(self, db_session, clock):
        audit = AuditLogger(db_session, clock)
        event = await audit.log_event("sale", "Sale recorded")

        with pytest.raises(RecordNotFoundError):
            await audit.link_events(event.event_id, uuid7(), RelationType.LINKED)

    async def test_get_unknown_event(self, db_session, clock):
        with pytest.raises(RecordNotFoundError):
            await AuditLogger(db_session, clock).get_event(uuid7())

    async def test_diff_event(self, db_session, clock):
        audit = AuditLogger(db_session, clock)
        event = await audit.log_event(
            "product", "Edited", before={"price": 10, "name": "Mug"}, after={"price": 12}
        )

        changes = await audit.diff_event(event.event_id)

        assert changes["price"].kind == ChangeKind.MODIFIED
        assert changes["name"].kind == ChangeKind.REMOVED


@pytest.mark.asyncio
class TestSafeLogEvent:
    async def test_returns_event(self, db_session):
        event = await safe_log_event(db_session, "sale", "Sale recorded", actor="Maria")

        assert event is not None
        assert event.actor == "Maria"

    async def test_swallows_store_failure(self, db_session, monkeypatch):
        async def broken_commit():
            raise OperationalError("COMMIT", {}, Exception("database is locked"))

        monkeypatch.setattr(db_session, "commit", broken_commit)

        assert await safe_log_event(db_session, "sale", "Sale recorded") is None

    async def test_log_event_surfaces_store_failure(self, db_session, clock, monkeypatch):
        async def broken_commit():
            raise OperationalError("COMMIT", {}, Exception("database is locked"))

        monkeypatch.setattr(db_session, "commit", broken_commit)

        with pytest.raises(StoreUnavailableError) as exc_info:
            await AuditLogger(db_session, clock).log_event("sale", "Sale recorded")

        assert exc_info.value.operation == "log_event"
