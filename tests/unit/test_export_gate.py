"""Unit tests for export recording."""

from datetime import date, timedelta

import pytest

from auditvault.compliance.retention.export_gate import ExportGate, has_been_exported
from auditvault.db.models.audit import EventStatus
from auditvault.db.models.retention import ExportFormat
from auditvault.db.repositories.audit import AuditEventRepository


@pytest.mark.asyncio
class TestRecordExport:
    async def test_stamps_listed_events(self, db_session, clock, make_event):
        first = await make_event()
        second = await make_event()
        untouched = await make_event()
        ids = [first.event_id, second.event_id]
        gate = ExportGate(db_session, clock)

        stamped = await gate.record_export(ids)

        repo = AuditEventRepository(db_session)
        assert stamped == 2
        assert (await repo.get(ids[0])).exported_at == clock.now
        assert (await repo.get(ids[1])).exported_at == clock.now
        assert (await repo.get(untouched.event_id)).exported_at is None

    async def test_re_export_overwrites_timestamp(self, db_session, clock, make_event):
        event = await make_event()
        gate = ExportGate(db_session, clock)
        await gate.record_export([event.event_id])
        clock.advance(days=3)

        stamped = await gate.record_export([event.event_id])

        reloaded = await AuditEventRepository(db_session).get(event.event_id)
        assert stamped == 1
        assert reloaded.exported_at == clock.now

    async def test_explicit_export_time(self, db_session, clock, make_event):
        event = await make_event()
        exported_at = clock.now - timedelta(hours=6)

        await ExportGate(db_session, clock).record_export([event.event_id], exported_at)

        reloaded = await AuditEventRepository(db_session).get(event.event_id)
        assert reloaded.exported_at == exported_at

    async def test_tombstones_not_restamped(self, db_session, clock, make_event):
        event = await make_event(
            status=EventStatus.DELETED, retention_date=date(2024, 3, 1), exported=True
        )
        original = event.exported_at

        stamped = await ExportGate(db_session, clock).record_export([event.event_id])

        reloaded = await AuditEventRepository(db_session).get(event.event_id)
        assert stamped == 0
        assert reloaded.exported_at == original

    async def test_empty_selection(self, db_session, clock):
        assert await ExportGate(db_session, clock).record_export([]) == 0

    async def test_has_been_exported(self, make_event):
        assert has_been_exported(await make_event(exported=True)) is True
        assert has_been_exported(await make_event()) is False


@pytest.mark.asyncio
class TestExportLog:
    async def test_record_export_file(self, db_session, clock):
        gate = ExportGate(db_session, clock)

        record = await gate.record_export_file(
            "Maria",
            ExportFormat.PDF,
            "audit-2024-03.pdf",
            12,
            file_size_bytes=2048,
        )

        assert record.export_id is not None
        assert record.exported_by == "Maria"
        assert record.export_format == ExportFormat.PDF
        assert record.event_count == 12
        assert record.created_at == clock.now

    async def test_history_newest_first(self, db_session, clock):
        gate = ExportGate(db_session, clock)
        older = await gate.record_export_file("Maria", ExportFormat.PDF, "a.pdf", 1)
        clock.advance(days=1)
        newer = await gate.record_export_file("Maria", ExportFormat.EXCEL, "b.xlsx", 2)

        history = await gate.export_history()

        assert [r.export_id for r in history] == [newer.export_id, older.export_id]

    async def test_exported_event_count(self, db_session, clock, make_event):
        await make_event(exported=True)
        await make_event(exported=True)
        await make_event()

        assert await ExportGate(db_session, clock).exported_event_count() == 2
