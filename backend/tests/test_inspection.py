"""Farm inspection and batch creation tests."""

import re
from datetime import date

import pytest
from httpx import AsyncClient
from sqlalchemy import select, update

from app.models.activity_log import ActivityLog
from app.models.batch import Batch
from app.utils.numbering import format_code

BATCH_CODE = re.compile(r"^BATCH-\d{8}-\d{4}$")


@pytest.mark.unit
class TestFormatCode:

    def test_batch_code(self):
        assert format_code("batch", 1, on=date(2025, 1, 1)) == "BATCH-20250101-0001"

    def test_gate_pass_code(self):
        assert format_code("gate_pass", 42, on=date(2024, 12, 31)) == "GP-20241231-0042"

    def test_sequence_wider_than_padding(self):
        assert format_code("batch", 12345, on=date(2025, 6, 1)) == "BATCH-20250601-12345"

    def test_invoice_number(self):
        assert format_code("sale", 7, on=date(2026, 3, 15)) == "INV-20260315-00007"


async def _submit(client, manager_headers, vendor_headers, boxes=100) -> tuple[dict, dict]:
    farm = (await client.post(
        "/api/farms", json={"farmer_name": "Lakshmi Farms"}, headers=manager_headers
    )).json()
    inspection = await client.post(
        "/api/inspections",
        json={
            "farm_id": farm["id"],
            "estimated_boxes": boxes,
            "gps_latitude": 10.01,
            "gps_longitude": 77.48,
        },
        headers=vendor_headers,
    )
    assert inspection.status_code == 201, inspection.text
    return farm, inspection.json()


@pytest.mark.api
@pytest.mark.asyncio
class TestInspectionDecision:
    """POST /api/inspections/{inspection_id}/decision"""

    async def test_submit_marks_farm_pending(
        self, client: AsyncClient, manager_headers, vendor_headers, vendor_user
    ):
        farm, inspection = await _submit(client, manager_headers, vendor_headers)

        assert inspection["status"] == "pending"
        assert inspection["vendor_id"] == vendor_user.id
        detail = await client.get(f"/api/farms/{farm['id']}", headers=manager_headers)
        assert detail.json()["status"] == "inspection_pending"

    async def test_approve_creates_batch(
        self, client: AsyncClient, manager_headers, vendor_headers, manager_user, vendor_user
    ):
        farm, inspection = await _submit(client, manager_headers, vendor_headers, boxes=250)

        resp = await client.post(
            f"/api/inspections/{inspection['id']}/decision",
            json={"approved": True},
            headers=manager_headers,
        )
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert body["outcome"] == "approved"
        assert body["inspection"]["status"] == "approved"
        assert body["inspection"]["approved_by"] == manager_user.id

        batch = body["batch"]
        assert BATCH_CODE.match(batch["batch_code"])
        assert batch["batch_code"].endswith("-0001")
        assert batch["status"] == "CREATED"
        assert batch["vendor_id"] == vendor_user.id
        assert batch["farm_id"] == farm["id"]
        assert batch["estimated_boxes"] == 250
        assert batch["allocated_boxes"] == 250
        assert batch["remaining_boxes"] == 250
        assert batch["harvested_boxes"] == 0
        assert batch["dispatched_boxes"] == 0
        assert batch["gate_pass_remaining"] == 0

        farm_detail = await client.get(f"/api/farms/{farm['id']}", headers=manager_headers)
        assert farm_detail.json()["status"] == "ready_for_harvest"

    async def test_reject_is_a_normal_outcome(
        self, client: AsyncClient, manager_headers, vendor_headers, session_factory
    ):
        farm, inspection = await _submit(client, manager_headers, vendor_headers)

        resp = await client.post(
            f"/api/inspections/{inspection['id']}/decision",
            json={"approved": False, "rejection_reason": "Bunches undersized"},
            headers=manager_headers,
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["outcome"] == "rejected"
        assert body["batch"] is None
        assert body["inspection"]["rejection_reason"] == "Bunches undersized"
        assert body["inspection"]["approved_by"] is None

        farm_detail = await client.get(f"/api/farms/{farm['id']}", headers=manager_headers)
        assert farm_detail.json()["status"] == "inspection_rejected"

        async with session_factory() as session:
            actions = (
                await session.execute(select(ActivityLog.action))
            ).scalars().all()
        assert "rejected" in actions

    async def test_reject_needs_reason(self, client: AsyncClient, manager_headers, vendor_headers):
        _, inspection = await _submit(client, manager_headers, vendor_headers)

        resp = await client.post(
            f"/api/inspections/{inspection['id']}/decision",
            json={"approved": False},
            headers=manager_headers,
        )
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_cannot_decide_twice(self, client: AsyncClient, manager_headers, vendor_headers):
        _, inspection = await _submit(client, manager_headers, vendor_headers)
        url = f"/api/inspections/{inspection['id']}/decision"

        assert (await client.post(url, json={"approved": True}, headers=manager_headers)).status_code == 200

        resp = await client.post(url, json={"approved": True}, headers=manager_headers)
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "INSPECTION_ALREADY_DECIDED"

    async def test_vendor_cannot_approve(self, client: AsyncClient, manager_headers, vendor_headers):
        _, inspection = await _submit(client, manager_headers, vendor_headers)

        resp = await client.post(
            f"/api/inspections/{inspection['id']}/decision",
            json={"approved": True},
            headers=vendor_headers,
        )
        assert resp.status_code == 403

    async def test_batch_codes_are_sequential(
        self, client: AsyncClient, make_batch
    ):
        first = await make_batch(10)
        second = await make_batch(20)
        assert first["batch_code"].endswith("-0001")
        assert second["batch_code"].endswith("-0002")

    async def test_taken_batch_code_is_skipped(self, make_batch, session_factory):
        today = f"{date.today():%Y%m%d}"
        first = await make_batch(10)
        async with session_factory() as session:
            await session.execute(
                update(Batch)
                .where(Batch.id == first["id"])
                .values(batch_code=f"BATCH-{today}-0002")
            )
            await session.commit()

        second = await make_batch(20)
        assert second["batch_code"] == f"BATCH-{today}-0003"
        assert second["estimated_boxes"] == 20

    async def test_estimate_must_be_positive(
        self, client: AsyncClient, manager_headers, vendor_headers
    ):
        farm = (await client.post(
            "/api/farms", json={"farmer_name": "Zero Farm"}, headers=manager_headers
        )).json()
        resp = await client.post(
            "/api/inspections",
            json={"farm_id": farm["id"], "estimated_boxes": 0},
            headers=vendor_headers,
        )
        assert resp.status_code == 422
