"""Inventory router — packing materials and batch allocations.

Endpoints:
    POST   /api/inventory/items                    Create an item (with opening stock)
    GET    /api/inventory/items                    List active items
    GET    /api/inventory/items/{item_id}/stock    Stock levels
    POST   /api/inventory/items/{item_id}/stock    Receive more stock
    POST   /api/inventory/allocate                 Allocate stock to a batch
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import require_permission
from app.database import get_db
from app.models.user import User
from app.schemas.inventory import (
    AllocationOut,
    AllocationRequest,
    InventoryItemCreate,
    InventoryItemOut,
    StockAdjust,
    StockOut,
)
from app.services.inventory import add_stock, allocate_inventory, create_item, get_stock, list_items
from app.utils.activity import log_activity
from app.utils.cache import invalidate_on_commit

router = APIRouter()


@router.post("/items", response_model=InventoryItemOut, status_code=status.HTTP_201_CREATED)
async def new_item(
    body: InventoryItemCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("inventory.write")),
):
    item = await create_item(body, db)
    await log_activity(
        db, user,
        action="created",
        entity_type="inventory_item",
        entity_id=item.id,
        entity_code=item.item_code,
        summary=f"Created {item.category.value} item {item.item_code}",
    )
    return item


@router.get("/items", response_model=list[InventoryItemOut])
async def items(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("inventory.read")),
):
    return await list_items(db)


@router.get("/items/{item_id}/stock", response_model=StockOut)
async def stock_level(
    item_id: str,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("inventory.read")),
):
    return await get_stock(db, item_id)


@router.post("/items/{item_id}/stock", response_model=StockOut)
async def receive_stock(
    item_id: str,
    body: StockAdjust,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("inventory.write")),
):
    return await add_stock(db, item_id, body.quantity)


@router.post("/allocate", response_model=AllocationOut, status_code=status.HTTP_201_CREATED)
async def allocate(
    body: AllocationRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("inventory.write")),
):
    """Allocate stock to a batch; 422 INSUFFICIENT_STOCK if not enough is available."""
    allocation = await allocate_inventory(body, user_id=user.id, db=db)

    await invalidate_on_commit(db, "costs:*")
    await log_activity(
        db, user,
        action="allocated",
        entity_type="batch",
        entity_id=allocation.batch_id,
        summary=f"Allocated {allocation.quantity} units of item {allocation.item_id}",
    )
    return allocation
