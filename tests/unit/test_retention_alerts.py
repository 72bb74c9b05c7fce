"""Unit tests for the retention alert ledger."""

from datetime import timedelta

import pytest
from uuid_utils.compat import uuid7

from auditvault.compliance.retention.alerts import AlertLedger, can_transition
from auditvault.core.exceptions import InvalidTransitionError, RecordNotFoundError
from auditvault.db.models.retention import AlertStatus, AlertType


class TestCanTransition:
    @pytest.mark.parametrize(
        "current,target",
        [
            (AlertStatus.PENDING, AlertStatus.ACKNOWLEDGED),
            (AlertStatus.PENDING, AlertStatus.EXPORTED),
            (AlertStatus.PENDING, AlertStatus.DELETED),
            (AlertStatus.ACKNOWLEDGED, AlertStatus.EXPORTED),
            (AlertStatus.ACKNOWLEDGED, AlertStatus.DELETED),
            (AlertStatus.EXPORTED, AlertStatus.DELETED),
        ],
    )
    def test_forward_moves_allowed(self, current, target):
        assert can_transition(current, target) is True

    @pytest.mark.parametrize(
        "current,target",
        [
            (AlertStatus.ACKNOWLEDGED, AlertStatus.ACKNOWLEDGED),
            (AlertStatus.EXPORTED, AlertStatus.ACKNOWLEDGED),
            (AlertStatus.DELETED, AlertStatus.EXPORTED),
            (AlertStatus.DELETED, AlertStatus.PENDING),
            (AlertStatus.ACKNOWLEDGED, AlertStatus.PENDING),
        ],
    )
    def test_backward_moves_rejected(self, current, target):
        assert can_transition(current, target) is False


@pytest.mark.asyncio
class TestAlertLedger:
    async def test_create_alert_is_pending(self, db_session, clock):
        ledger = AlertLedger(db_session, clock)

        alert = await ledger.create_alert("Maria", AlertType.RETENTION_WARNING, 12)

        assert alert.status == AlertStatus.PENDING
        assert alert.event_count == 12
        assert alert.created_at == clock.now
        assert alert.acknowledged_at is None

    async def test_acknowledge_stamps_time(self, db_session, clock):
        ledger = AlertLedger(db_session, clock)
        alert = await ledger.create_alert("Maria", AlertType.RETENTION_WARNING, 3)
        clock.advance(hours=1)

        acknowledged = await ledger.acknowledge(alert.alert_id)

        assert acknowledged.status == AlertStatus.ACKNOWLEDGED
        assert acknowledged.acknowledged_at == clock.now

    async def test_full_progression(self, db_session, clock):
        ledger = AlertLedger(db_session, clock)
        alert = await ledger.create_alert("Maria", AlertType.EXPORT_READY, 3)

        await ledger.acknowledge(alert.alert_id)
        exported = await ledger.mark_exported(alert.alert_id, "audit-2024-04.pdf")
        deleted = await ledger.mark_deleted(alert.alert_id)

        assert exported.export_filename == "audit-2024-04.pdf"
        assert deleted.status == AlertStatus.DELETED
        assert deleted.exported_at is not None
        assert deleted.deleted_at is not None

    async def test_acknowledge_twice_rejected(self, db_session, clock):
        ledger = AlertLedger(db_session, clock)
        alert = await ledger.create_alert("Maria", AlertType.RETENTION_WARNING, 3)
        await ledger.acknowledge(alert.alert_id)

        with pytest.raises(InvalidTransitionError) as exc_info:
            await ledger.acknowledge(alert.alert_id)

        assert exc_info.value.current == AlertStatus.ACKNOWLEDGED.value
        assert exc_info.value.target == AlertStatus.ACKNOWLEDGED.value

    async def test_deleted_alert_cannot_be_exported(self, db_session, clock):
        ledger = AlertLedger(db_session, clock)
        alert = await ledger.create_alert("Maria", AlertType.RETENTION_WARNING, 3)
        await ledger.mark_deleted(alert.alert_id)

        with pytest.raises(InvalidTransitionError):
            await ledger.mark_exported(alert.alert_id, "late.pdf")

    async def test_unknown_alert(self, db_session, clock):
        ledger = AlertLedger(db_session, clock)

        with pytest.raises(RecordNotFoundError):
            await ledger.acknowledge(uuid7())

    async def test_pending_alerts_filtered_by_user(self, db_session, clock):
        ledger = AlertLedger(db_session, clock)
        mine = await ledger.create_alert("Maria", AlertType.RETENTION_WARNING, 1)
        await ledger.create_alert("Joao", AlertType.RETENTION_WARNING, 1)
        done = await ledger.create_alert("Maria", AlertType.RETENTION_WARNING, 1)
        await ledger.acknowledge(done.alert_id)

        pending = await ledger.pending_alerts("Maria")

        assert [a.alert_id for a in pending] == [mine.alert_id]
        assert await ledger.pending_alert_count("Maria") == 1
        assert await ledger.pending_alert_count() == 2

    async def test_alert_history_newest_first(self, db_session, clock):
        ledger = AlertLedger(db_session, clock)
        first = await ledger.create_alert("Maria", AlertType.RETENTION_WARNING, 1)
        clock.advance(days=1)
        second = await ledger.create_alert("Maria", AlertType.DELETION_COMPLETE, 5)

        history = await ledger.alert_history("Maria")

        assert [a.alert_id for a in history] == [second.alert_id, first.alert_id]
        assert history[0].created_at - history[1].created_at == timedelta(days=1)
