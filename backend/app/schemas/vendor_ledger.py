"""Pydantic schemas for the vendor ledger and batch reconciliation."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from app.models.vendor_ledger import LedgerTransaction


class BoxMovement(BaseModel):
    """Box return or damage report from a vendor."""
    quantity: int = Field(..., gt=0)
    batch_id: str | None = None
    notes: str | None = None


class LaborAmount(BaseModel):
    """Labor cost owed to, or payment made to, a vendor."""
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    batch_id: str | None = None
    notes: str | None = None


class LedgerEntryOut(BaseModel):
    id: str
    vendor_id: str
    batch_id: str | None
    transaction_type: LedgerTransaction
    quantity: int
    amount: Decimal
    balance_boxes: int
    balance_amount: Decimal
    notes: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class VendorBalanceOut(BaseModel):
    vendor_id: str
    vendor_name: str
    boxes_issued: int
    boxes_returned: int
    boxes_damaged: int
    pending_boxes: int
    pending_labor_cost: Decimal


class BatchReconciliationOut(BaseModel):
    batch_id: str
    batch_code: str
    boxes_allocated: int
    boxes_received: int
    boxes_wasted: int
    boxes_unaccounted: int
    is_balanced: bool
    returns_posted: int = 0
    damaged_posted: int = 0
