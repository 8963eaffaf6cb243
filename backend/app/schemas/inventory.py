"""Pydantic schemas for inventory items, stock and batch allocations."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from app.models.inventory import ItemCategory


class InventoryItemCreate(BaseModel):
    item_name: str = Field(..., min_length=1, max_length=255)
    item_code: str = Field(..., min_length=1, max_length=50)
    category: ItemCategory
    unit_of_measure: str = "pcs"
    unit_cost: Decimal = Field(Decimal("0.00"), ge=0, max_digits=10, decimal_places=2)
    description: str | None = None
    initial_quantity: int = Field(0, ge=0)


class InventoryItemOut(BaseModel):
    id: str
    item_name: str
    item_code: str
    category: ItemCategory
    unit_of_measure: str
    unit_cost: Decimal
    description: str | None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class StockAdjust(BaseModel):
    quantity: int = Field(..., gt=0)


class StockOut(BaseModel):
    item_id: str
    total_quantity: int
    available_quantity: int
    reserved_quantity: int

    model_config = {"from_attributes": True}


class AllocationRequest(BaseModel):
    """Payload for POST /api/inventory/allocate."""
    batch_id: str
    item_id: str
    quantity: int = Field(..., gt=0)
    notes: str | None = None


class AllocationOut(BaseModel):
    id: str
    batch_id: str
    item_id: str
    quantity: int
    notes: str | None
    allocated_by: str
    allocated_at: datetime

    model_config = {"from_attributes": True}
