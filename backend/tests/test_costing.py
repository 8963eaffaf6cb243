"""Cost roll-up tests."""

from decimal import Decimal

import pytest
from httpx import AsyncClient

from app.models.batch import Batch
from app.services.costing import cost_basis_boxes, per_box, to_money


@pytest.mark.unit
class TestMoneyHelpers:

    def test_per_box_rounds_half_up(self):
        assert per_box(Decimal("10.00"), 8) == Decimal("1.25")
        assert per_box(Decimal("0.05"), 2) == Decimal("0.03")
        assert per_box(Decimal("100.00"), 3) == Decimal("33.33")

    def test_per_box_without_boxes_is_zero(self):
        assert per_box(Decimal("500.00"), 0) == Decimal("0.00")

    def test_to_money_accepts_aggregates(self):
        assert to_money(None) == Decimal("0.00")
        assert to_money(100.0) == Decimal("100.00")
        assert to_money(7) == Decimal("7.00")
        assert to_money(Decimal("2.345")) == Decimal("2.35")

    def test_cost_basis_prefers_actual_boxes(self):
        assert cost_basis_boxes(Batch(estimated_boxes=100, actual_boxes=80)) == 80
        assert cost_basis_boxes(Batch(estimated_boxes=100, actual_boxes=0)) == 100
        assert cost_basis_boxes(Batch(estimated_boxes=0, actual_boxes=None)) == 0


@pytest.mark.api
@pytest.mark.asyncio
class TestBatchCost:
    """GET /api/costs/batch/{batch_id} and friends"""

    async def _costed_batch(self, client, make_batch, harvest, manager_headers):
        batch = await make_batch(100)

        item = await client.post(
            "/api/inventory/items",
            json={
                "item_name": "13kg export carton",
                "item_code": "BOX-13KG",
                "category": "BOX",
                "unit_cost": "2.00",
                "initial_quantity": 500,
            },
            headers=manager_headers,
        )
        assert item.status_code == 201, item.text

        alloc = await client.post(
            "/api/inventory/allocate",
            json={"batch_id": batch["id"], "item_id": item.json()["id"], "quantity": 50},
            headers=manager_headers,
        )
        assert alloc.status_code == 201, alloc.text

        transport = await client.post(
            "/api/transport",
            json={"batch_id": batch["id"], "cost_type": "OUTWARD", "total_cost": "100.00"},
            headers=manager_headers,
        )
        assert transport.status_code == 201, transport.text

        report = await harvest(batch["id"], 100, labor_cost="300.00")
        assert report.status_code == 201
        return batch

    async def test_roll_up(self, client: AsyncClient, make_batch, harvest, manager_headers):
        batch = await self._costed_batch(client, make_batch, harvest, manager_headers)

        resp = await client.get(f"/api/costs/batch/{batch['id']}", headers=manager_headers)
        assert resp.status_code == 200
        cost = resp.json()
        assert cost["box_count"] == 100
        assert cost["material_cost_total"] == "100.00"
        assert cost["material_cost_per_box"] == "1.00"
        assert cost["outward_transport_cost"] == "100.00"
        assert cost["labor_cost_total"] == "300.00"
        assert cost["labor_cost_per_box"] == "3.00"
        assert cost["inward_transport_cost"] == "0.00"
        assert cost["total_cost"] == "500.00"
        assert cost["final_cost_per_box"] == "5.00"

    async def test_recalculate_is_idempotent(
        self, client: AsyncClient, make_batch, harvest, manager_headers
    ):
        batch = await self._costed_batch(client, make_batch, harvest, manager_headers)
        url = f"/api/costs/batch/{batch['id']}/recalculate"

        first = (await client.post(url, headers=manager_headers)).json()
        second = (await client.post(url, headers=manager_headers)).json()

        first.pop("calculated_at")
        second.pop("calculated_at")
        assert first == second
        assert second["total_cost"] == "500.00"

    async def test_lookup_by_code(self, client: AsyncClient, make_batch, harvest, manager_headers):
        batch = await self._costed_batch(client, make_batch, harvest, manager_headers)

        resp = await client.get(
            f"/api/costs/batch/code/{batch['batch_code']}", headers=manager_headers
        )
        assert resp.status_code == 200
        assert resp.json()["batch_id"] == batch["id"]
        assert resp.json()["final_cost_per_box"] == "5.00"

    async def test_uses_estimate_before_harvest(
        self, client: AsyncClient, make_batch, manager_headers
    ):
        batch = await make_batch(40)

        await client.post(
            "/api/transport",
            json={"batch_id": batch["id"], "cost_type": "INWARD", "total_cost": "10.00"},
            headers=manager_headers,
        )
        cost = (await client.get(f"/api/costs/batch/{batch['id']}", headers=manager_headers)).json()
        assert cost["box_count"] == 40
        assert cost["inward_transport_per_box"] == "0.25"
        assert cost["final_cost_per_box"] == "0.25"

    async def test_never_costed_batch_reads_zero(
        self, client: AsyncClient, make_batch, manager_headers
    ):
        batch = await make_batch(10)

        cost = (await client.get(f"/api/costs/batch/{batch['id']}", headers=manager_headers)).json()
        assert cost["total_cost"] == "0.00"
        assert cost["calculated_at"] is None

    async def test_cost_list_is_admin_only(
        self, client: AsyncClient, make_batch, harvest, manager_headers, vendor_headers
    ):
        batch = await self._costed_batch(client, make_batch, harvest, manager_headers)

        assert (await client.get("/api/costs", headers=vendor_headers)).status_code == 403

        listing = await client.get("/api/costs", headers=manager_headers)
        assert [c["batch_code"] for c in listing.json()] == [batch["batch_code"]]
