"""Integration tests for the retention lifecycle endpoints."""

from datetime import date, timedelta

import pytest
from httpx import AsyncClient

from auditvault.db.models.audit import EventStatus

PAST = date(2024, 3, 1)


@pytest.mark.asyncio
class TestRetentionConfig:
    async def test_default_config(self, test_client: AsyncClient):
        response = await test_client.get("/v1/retention/config")

        assert response.status_code == 200
        data = response.json()
        assert data["retention_months"] == 3
        assert data["alert_days_before"] == 15
        assert data["auto_delete_enabled"] is True
        assert data["updated_by"] == "System"
        assert data["persisted"] is False

    async def test_update_config_records_editor(self, operator_client: AsyncClient):
        response = await operator_client.put(
            "/v1/retention/config",
            json={"retention_months": 6, "alert_days_before": 20, "auto_delete_enabled": False},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["retention_months"] == 6
        assert data["updated_by"] == "Maria"
        assert data["persisted"] is True

        fetched = (await operator_client.get("/v1/retention/config")).json()
        assert fetched["retention_months"] == 6
        assert fetched["auto_delete_enabled"] is False

    @pytest.mark.parametrize(
        "body",
        [
            {"retention_months": 0, "alert_days_before": 15},
            {"retention_months": 37, "alert_days_before": 15},
            {"retention_months": 3, "alert_days_before": 61},
        ],
    )
    async def test_out_of_range_rejected(self, operator_client: AsyncClient, body):
        response = await operator_client.put("/v1/retention/config", json=body)

        assert response.status_code == 422


@pytest.mark.asyncio
class TestEligibility:
    async def test_eligible_events(self, test_client: AsyncClient, make_event, clock):
        today = clock.now.date()
        soon = await make_event(retention_date=today + timedelta(days=12))
        await make_event(retention_date=today + timedelta(days=31))

        response = await test_client.get("/v1/retention/eligible")

        data = response.json()
        assert [e["event_id"] for e in data] == [str(soon.event_id)]
        assert data[0]["days_until_deletion"] == 12
        assert data[0]["exported"] is False

    async def test_threshold_override(self, test_client: AsyncClient, make_event, clock):
        await make_event(retention_date=clock.now.date() + timedelta(days=31))

        response = await test_client.get("/v1/retention/eligible", params={"threshold_days": 31})

        assert len(response.json()) == 1

    async def test_summary(self, operator_client: AsyncClient, make_event, clock):
        await make_event(retention_date=clock.now.date() + timedelta(days=3))

        response = await operator_client.get("/v1/retention/summary")

        assert response.status_code == 200
        data = response.json()
        assert data["config"]["persisted"] is False
        assert len(data["eligible_events"]) == 1
        assert data["pending_alerts"] == 0
        assert data["recent_exports"] == []


@pytest.mark.asyncio
class TestExportThenDelete:
    async def test_full_lifecycle(self, operator_client: AsyncClient, make_event):
        first = await make_event(retention_date=PAST)
        second = await make_event(retention_date=PAST)
        ids = [str(first.event_id), str(second.event_id)]

        # Nothing is deletable before an export
        blocked = await operator_client.post("/v1/retention/deletions", json={})
        assert blocked.status_code == 409
        assert blocked.json()["error_code"] == "no_eligible_events"

        export = await operator_client.post(
            "/v1/retention/exports",
            json={"export_format": "pdf", "filename": "audit-q1.pdf", "event_ids": ids},
        )
        assert export.status_code == 201
        assert export.json()["event_count"] == 2
        assert export.json()["exported_by"] == "Maria"

        ready = await operator_client.get("/v1/retention/ready")
        assert {e["event_id"] for e in ready.json()} == set(ids)

        deletion = await operator_client.post("/v1/retention/deletions", json={"batch_size": 1})
        assert deletion.status_code == 201
        receipt = deletion.json()
        assert receipt["deleted_count"] == 2
        assert receipt["deleted_by"] == "Maria"
        assert receipt["verification_checksum"]

        verify = await operator_client.get(
            f"/v1/retention/deletions/{receipt['receipt_id']}/verify"
        )
        assert verify.json() == {"receipt_id": receipt["receipt_id"], "verified": True}

        again = await operator_client.post("/v1/retention/deletions", json={})
        assert again.status_code == 409

        stats = (await operator_client.get("/v1/retention/deletions/stats")).json()
        assert stats["receipt_count"] == 1
        assert stats["total_deleted"] == 2
        assert stats["tombstones"] == 2

        history = (await operator_client.get("/v1/retention/deletions")).json()
        assert [r["receipt_id"] for r in history] == [receipt["receipt_id"]]

        exports = (await operator_client.get("/v1/retention/exports")).json()
        assert [e["filename"] for e in exports] == ["audit-q1.pdf"]

    async def test_export_rejects_inverted_range(self, operator_client: AsyncClient):
        response = await operator_client.post(
            "/v1/retention/exports",
            json={
                "export_format": "excel",
                "filename": "audit.xlsx",
                "date_range_start": "2024-03-31T00:00:00Z",
                "date_range_end": "2024-03-01T00:00:00Z",
            },
        )

        assert response.status_code == 422

    async def test_verify_unknown_receipt(self, test_client: AsyncClient):
        response = await test_client.get(
            "/v1/retention/deletions/01900000-0000-7000-8000-000000000000/verify"
        )

        assert response.status_code == 404


@pytest.mark.asyncio
class TestMarkAndPostpone:
    async def test_mark_then_postpone(self, operator_client: AsyncClient, make_event, clock):
        event = await make_event(retention_date=clock.now.date() - timedelta(days=5))
        ids = [str(event.event_id)]

        marked = await operator_client.post("/v1/retention/mark", json={"event_ids": ids})
        assert marked.json() == {"affected": 1}

        postponed = await operator_client.post(
            "/v1/retention/postpone", json={"event_ids": ids, "days": 7}
        )
        assert postponed.json() == {"affected": 1}

        fetched = (await operator_client.get(f"/v1/events/{event.event_id}")).json()
        assert fetched["status"] == EventStatus.ACTIVE.value
        assert fetched["retention_date"] == (clock.now.date() + timedelta(days=7)).isoformat()

    async def test_postpone_without_ids(self, operator_client: AsyncClient):
        response = await operator_client.post("/v1/retention/postpone", json={"event_ids": []})

        assert response.status_code == 409
        assert response.json()["details"] == {"operation": "postponement"}

    async def test_postpone_rejects_long_extension(self, operator_client: AsyncClient):
        response = await operator_client.post(
            "/v1/retention/postpone",
            json={"event_ids": ["01900000-0000-7000-8000-000000000000"], "days": 366},
        )

        assert response.status_code == 422
