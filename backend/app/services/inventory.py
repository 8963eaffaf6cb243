"""Inventory service — packing materials and their allocation to batches.

Allocating stock to a batch moves it from available to reserved, records
the allocation (the material input of the cost roll-up) and re-runs the
roll-up.  Box-category items are also booked to the batch vendor's ledger
as boxes issued.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.middleware.exceptions import BusinessLogicError, ResourceNotFoundError
from app.models.inventory import InventoryAllocation, InventoryItem, InventoryStock, ItemCategory
from app.schemas.inventory import AllocationRequest, InventoryItemCreate
from app.services.common import get_batch_or_404, get_user_or_404, record_event
from app.services.costing import recalculate_costs
from app.services.vendor_ledger import record_box_issuance

logger = logging.getLogger(__name__)


async def get_item_or_404(db: AsyncSession, item_id: str) -> InventoryItem:
    item = (
        await db.execute(select(InventoryItem).where(InventoryItem.id == item_id))
    ).scalar_one_or_none()
    if not item:
        raise ResourceNotFoundError("Inventory item", item_id)
    return item


async def _lock_stock(db: AsyncSession, item_id: str) -> InventoryStock:
    stock = (
        await db.execute(
            select(InventoryStock)
            .where(InventoryStock.item_id == item_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
    ).scalar_one_or_none()
    if stock is None:
        stock = InventoryStock(
            item_id=item_id, total_quantity=0, available_quantity=0, reserved_quantity=0
        )
        db.add(stock)
    return stock


async def create_item(body: InventoryItemCreate, db: AsyncSession) -> InventoryItem:
    existing = (
        await db.execute(select(InventoryItem.id).where(InventoryItem.item_code == body.item_code))
    ).scalar_one_or_none()
    if existing:
        raise BusinessLogicError(
            f"Item code already exists: {body.item_code}",
            error_code="DUPLICATE_ITEM_CODE",
        )

    item = InventoryItem(
        item_name=body.item_name,
        item_code=body.item_code,
        category=body.category,
        unit_of_measure=body.unit_of_measure,
        unit_cost=body.unit_cost,
        description=body.description,
        is_active=True,
    )
    db.add(item)
    await db.flush()

    db.add(InventoryStock(
        item_id=item.id,
        total_quantity=body.initial_quantity,
        available_quantity=body.initial_quantity,
        reserved_quantity=0,
    ))
    await db.flush()
    return item


async def add_stock(db: AsyncSession, item_id: str, quantity: int) -> InventoryStock:
    await get_item_or_404(db, item_id)
    stock = await _lock_stock(db, item_id)
    stock.total_quantity += quantity
    stock.available_quantity += quantity
    await db.flush()
    logger.info("Added %d units to stock of item %s", quantity, item_id)
    return stock


async def allocate_inventory(
    body: AllocationRequest,
    user_id: str,
    db: AsyncSession,
) -> InventoryAllocation:
    """Commit stock to a batch and roll its costs up again.

    Raises:
        BusinessLogicError (INSUFFICIENT_STOCK) when less than the requested
        quantity is available.
    """
    item = await get_item_or_404(db, body.item_id)
    batch = await get_batch_or_404(db, body.batch_id)
    await get_user_or_404(db, user_id)

    stock = await _lock_stock(db, item.id)
    if stock.available_quantity < body.quantity:
        raise BusinessLogicError(
            f"Insufficient stock available. Available: {stock.available_quantity}, "
            f"Requested: {body.quantity}",
            error_code="INSUFFICIENT_STOCK",
            details={"available": stock.available_quantity, "requested": body.quantity},
        )

    stock.available_quantity -= body.quantity
    stock.reserved_quantity += body.quantity

    allocation = InventoryAllocation(
        batch_id=batch.id,
        item_id=item.id,
        quantity=body.quantity,
        notes=body.notes,
        allocated_by=user_id,
    )
    db.add(allocation)

    if item.category == ItemCategory.BOX:
        await record_box_issuance(
            db, batch.vendor_id, body.quantity, user_id,
            batch_id=batch.id,
            notes=f"Issued {item.item_code} for batch {batch.batch_code}",
        )

    record_event(
        db, batch, "allocation", user_id,
        {"item_code": item.item_code, "quantity": body.quantity},
        notes=body.notes,
    )
    await db.flush()

    await recalculate_costs(db, batch.id)
    return allocation


# ── Reads ────────────────────────────────────────────────────

async def list_items(db: AsyncSession, active_only: bool = True) -> list[InventoryItem]:
    stmt = select(InventoryItem).order_by(InventoryItem.item_code)
    if active_only:
        stmt = stmt.where(InventoryItem.is_active == True)  # noqa: E712
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_stock(db: AsyncSession, item_id: str) -> InventoryStock:
    await get_item_or_404(db, item_id)
    stock = (
        await db.execute(select(InventoryStock).where(InventoryStock.item_id == item_id))
    ).scalar_one_or_none()
    if stock is None:
        raise ResourceNotFoundError("Inventory stock", item_id)
    return stock
