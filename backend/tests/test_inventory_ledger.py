"""Inventory allocation and vendor ledger tests."""

import pytest
from httpx import AsyncClient


async def _box_item(client, headers, quantity=100, code="BOX-13KG") -> dict:
    resp = await client.post(
        "/api/inventory/items",
        json={
            "item_name": "13kg export carton",
            "item_code": code,
            "category": "BOX",
            "unit_cost": "2.00",
            "initial_quantity": quantity,
        },
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


async def _allocate(client, headers, batch_id, item_id, quantity):
    return await client.post(
        "/api/inventory/allocate",
        json={"batch_id": batch_id, "item_id": item_id, "quantity": quantity},
        headers=headers,
    )


@pytest.mark.api
@pytest.mark.asyncio
class TestInventory:
    """/api/inventory"""

    async def test_allocation_moves_stock_to_reserved(
        self, client: AsyncClient, make_batch, manager_headers
    ):
        batch = await make_batch(100)
        item = await _box_item(client, manager_headers, quantity=100)

        resp = await _allocate(client, manager_headers, batch["id"], item["id"], 60)
        assert resp.status_code == 201

        stock = (await client.get(
            f"/api/inventory/items/{item['id']}/stock", headers=manager_headers
        )).json()
        assert stock == {
            "item_id": item["id"],
            "total_quantity": 100,
            "available_quantity": 40,
            "reserved_quantity": 60,
        }

    async def test_insufficient_stock(self, client: AsyncClient, make_batch, manager_headers):
        batch = await make_batch(100)
        item = await _box_item(client, manager_headers, quantity=10)

        resp = await _allocate(client, manager_headers, batch["id"], item["id"], 11)
        assert resp.status_code == 422
        error = resp.json()["error"]
        assert error["code"] == "INSUFFICIENT_STOCK"
        assert error["message"] == "Insufficient stock available. Available: 10, Requested: 11"

        stock = (await client.get(
            f"/api/inventory/items/{item['id']}/stock", headers=manager_headers
        )).json()
        assert stock["available_quantity"] == 10
        assert stock["reserved_quantity"] == 0

    async def test_receiving_stock(self, client: AsyncClient, manager_headers):
        item = await _box_item(client, manager_headers, quantity=5)

        resp = await client.post(
            f"/api/inventory/items/{item['id']}/stock",
            json={"quantity": 20},
            headers=manager_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["total_quantity"] == 25
        assert resp.json()["available_quantity"] == 25

    async def test_duplicate_item_code(self, client: AsyncClient, manager_headers):
        await _box_item(client, manager_headers)

        resp = await client.post(
            "/api/inventory/items",
            json={"item_name": "Again", "item_code": "BOX-13KG", "category": "BOX"},
            headers=manager_headers,
        )
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "DUPLICATE_ITEM_CODE"

    async def test_store_keeper_may_allocate(
        self, client: AsyncClient, make_batch, manager_headers, store_headers
    ):
        batch = await make_batch(100)
        item = await _box_item(client, manager_headers)

        resp = await _allocate(client, store_headers, batch["id"], item["id"], 5)
        assert resp.status_code == 201

    async def test_vendor_may_not_allocate(
        self, client: AsyncClient, make_batch, manager_headers, vendor_headers
    ):
        batch = await make_batch(100)
        item = await _box_item(client, manager_headers)

        resp = await _allocate(client, vendor_headers, batch["id"], item["id"], 5)
        assert resp.status_code == 403


@pytest.mark.api
@pytest.mark.asyncio
class TestVendorLedger:
    """/api/vendors/{vendor_id}/..."""

    async def test_box_allocation_is_issued_to_vendor(
        self, client: AsyncClient, make_batch, manager_headers, vendor_user
    ):
        batch = await make_batch(100)
        item = await _box_item(client, manager_headers)
        await _allocate(client, manager_headers, batch["id"], item["id"], 80)

        balance = (await client.get(
            f"/api/vendors/{vendor_user.id}/balance", headers=manager_headers
        )).json()
        assert balance["boxes_issued"] == 80
        assert balance["pending_boxes"] == 80
        assert balance["pending_labor_cost"] == "0.00"

        entries = (await client.get(
            f"/api/vendors/{vendor_user.id}/ledger", headers=manager_headers
        )).json()
        assert len(entries) == 1
        assert entries[0]["transaction_type"] == "BOX_ISSUED"
        assert entries[0]["batch_id"] == batch["id"]
        assert entries[0]["balance_boxes"] == 80

    async def test_non_box_items_are_not_issued(
        self, client: AsyncClient, make_batch, manager_headers, vendor_user
    ):
        batch = await make_batch(100)
        label = (await client.post(
            "/api/inventory/items",
            json={"item_name": "Brand label", "item_code": "LBL-1", "category": "LABEL",
                  "unit_cost": "0.10", "initial_quantity": 1000},
            headers=manager_headers,
        )).json()
        await _allocate(client, manager_headers, batch["id"], label["id"], 100)

        balance = (await client.get(
            f"/api/vendors/{vendor_user.id}/balance", headers=manager_headers
        )).json()
        assert balance["boxes_issued"] == 0

    async def test_returns_and_damage(
        self, client: AsyncClient, make_batch, manager_headers, vendor_user
    ):
        batch = await make_batch(100)
        item = await _box_item(client, manager_headers)
        await _allocate(client, manager_headers, batch["id"], item["id"], 50)

        ret = await client.post(
            f"/api/vendors/{vendor_user.id}/box-returns",
            json={"quantity": 20, "batch_id": batch["id"]},
            headers=manager_headers,
        )
        assert ret.status_code == 201
        assert ret.json()["balance_boxes"] == 30

        dmg = await client.post(
            f"/api/vendors/{vendor_user.id}/damaged-boxes",
            json={"quantity": 5},
            headers=manager_headers,
        )
        assert dmg.status_code == 201
        assert dmg.json()["balance_boxes"] == 25

        too_many = await client.post(
            f"/api/vendors/{vendor_user.id}/box-returns",
            json={"quantity": 26},
            headers=manager_headers,
        )
        assert too_many.status_code == 422
        error = too_many.json()["error"]
        assert error["code"] == "INSUFFICIENT_BOXES"
        assert error["message"] == "Cannot return 26 boxes. Vendor only has 25 boxes pending."

    async def test_labor_payments(self, client: AsyncClient, manager_headers, vendor_user):
        base = f"/api/vendors/{vendor_user.id}"

        cost = await client.post(f"{base}/labor-costs", json={"amount": "300.00"}, headers=manager_headers)
        assert cost.status_code == 201
        assert cost.json()["balance_amount"] == "300.00"

        paid = await client.post(f"{base}/labor-payments", json={"amount": "120.50"}, headers=manager_headers)
        assert paid.status_code == 201
        assert paid.json()["balance_amount"] == "179.50"

        over = await client.post(f"{base}/labor-payments", json={"amount": "200.00"}, headers=manager_headers)
        assert over.status_code == 422
        error = over.json()["error"]
        assert error["code"] == "OVERPAYMENT"
        assert error["message"] == "Payment amount (200.00) exceeds pending labor cost (179.50)"

        balance = (await client.get(f"{base}/balance", headers=manager_headers)).json()
        assert balance["pending_labor_cost"] == "179.50"

    async def test_reconcile_batch(
        self, client: AsyncClient, make_batch, harvest, dispatch,
        manager_headers, store_headers, vendor_user,
    ):
        batch = await make_batch(100)
        item = await _box_item(client, manager_headers, quantity=200)
        await _allocate(client, manager_headers, batch["id"], item["id"], 100)

        await harvest(batch["id"], 95, boxes_wasted=5)
        gate_pass = (await dispatch(batch["id"], 95)).json()
        await client.post(
            f"/api/gate-passes/{gate_pass['id']}/receive",
            json={"received_boxes": 93},
            headers=store_headers,
        )

        resp = await client.post(
            f"/api/vendors/{vendor_user.id}/reconcile/{batch['id']}", headers=manager_headers
        )
        assert resp.status_code == 200
        assert resp.json() == {
            "batch_id": batch["id"],
            "batch_code": batch["batch_code"],
            "boxes_allocated": 100,
            "boxes_received": 93,
            "boxes_wasted": 5,
            "boxes_unaccounted": 2,
            "is_balanced": False,
            "returns_posted": 93,
            "damaged_posted": 5,
        }

        balance = (await client.get(
            f"/api/vendors/{vendor_user.id}/balance", headers=manager_headers
        )).json()
        assert balance["boxes_issued"] == 100
        assert balance["boxes_returned"] == 93
        assert balance["boxes_damaged"] == 5
        assert balance["pending_boxes"] == 2

        entries = (await client.get(
            f"/api/vendors/{vendor_user.id}/ledger", headers=manager_headers
        )).json()
        auto = [e for e in entries if e["transaction_type"] in ("BOX_RETURNED", "BOX_DAMAGED")]
        assert sorted((e["transaction_type"], e["quantity"]) for e in auto) == [
            ("BOX_DAMAGED", 5), ("BOX_RETURNED", 93),
        ]
        assert all(e["batch_id"] == batch["id"] for e in auto)

    async def test_reconcile_twice_posts_once(
        self, client: AsyncClient, make_batch, harvest, dispatch,
        manager_headers, store_headers, vendor_user,
    ):
        batch = await make_batch(50)
        item = await _box_item(client, manager_headers, quantity=100)
        await _allocate(client, manager_headers, batch["id"], item["id"], 50)
        await harvest(batch["id"], 40, boxes_wasted=2)
        gate_pass = (await dispatch(batch["id"], 40)).json()
        await client.post(
            f"/api/gate-passes/{gate_pass['id']}/receive",
            json={"received_boxes": 40},
            headers=store_headers,
        )
        url = f"/api/vendors/{vendor_user.id}/reconcile/{batch['id']}"

        first = (await client.post(url, headers=manager_headers)).json()
        assert (first["returns_posted"], first["damaged_posted"]) == (40, 2)

        second = (await client.post(url, headers=manager_headers)).json()
        assert (second["returns_posted"], second["damaged_posted"]) == (0, 0)
        assert second["boxes_unaccounted"] == 8

        balance = (await client.get(
            f"/api/vendors/{vendor_user.id}/balance", headers=manager_headers
        )).json()
        assert balance["pending_boxes"] == 8

    async def test_balanced_batch_posts_nothing(
        self, client: AsyncClient, make_batch, manager_headers, vendor_user
    ):
        batch = await make_batch(10)

        resp = await client.post(
            f"/api/vendors/{vendor_user.id}/reconcile/{batch['id']}", headers=manager_headers
        )
        assert resp.json()["is_balanced"] is True
        assert resp.json()["returns_posted"] == 0

        entries = (await client.get(
            f"/api/vendors/{vendor_user.id}/ledger", headers=manager_headers
        )).json()
        assert entries == []

    async def test_reconcile_wrong_vendor(
        self, client: AsyncClient, make_batch, manager_headers, other_vendor
    ):
        batch = await make_batch(10)

        resp = await client.post(
            f"/api/vendors/{other_vendor.id}/reconcile/{batch['id']}", headers=manager_headers
        )
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "VENDOR_BATCH_MISMATCH"

    async def test_ledger_is_admin_only(self, client: AsyncClient, vendor_headers, vendor_user):
        resp = await client.get(f"/api/vendors/{vendor_user.id}/balance", headers=vendor_headers)
        assert resp.status_code == 403
