"""Pydantic schemas for daily harvest reports and transport costs."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from app.models.costs import TransportType


# ── Daily harvest report ─────────────────────────────────────

class DailyReportRequest(BaseModel):
    """Payload for POST /api/harvest/daily.

    ``labor_cost`` is the day's total wage bill; when positive it is booked
    as a pending LaborCost spread over ``boxes_packed``.
    """
    batch_id: str
    report_date: date
    boxes_packed: int = Field(..., ge=0)
    boxes_wasted: int = Field(0, ge=0)
    labor_count: int = Field(0, ge=0)
    notes: str | None = None
    labor_cost: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)


class DailyReportOut(BaseModel):
    id: str
    batch_id: str
    report_date: date
    boxes_packed: int
    boxes_wasted: int
    labor_count: int
    notes: str | None
    created_by: str
    created_at: datetime

    model_config = {"from_attributes": True}


# ── Transport cost ───────────────────────────────────────────

class TransportCostRequest(BaseModel):
    """Payload for POST /api/transport."""
    batch_id: str
    cost_type: TransportType
    total_cost: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    vendor_name: str | None = None
    vehicle_number: str | None = None
    driver_name: str | None = None
    driver_phone: str | None = None
    distance_km: float | None = Field(None, ge=0)
    notes: str | None = None


class TransportCostOut(BaseModel):
    id: str
    batch_id: str
    cost_type: TransportType
    total_cost: Decimal
    cost_per_box: Decimal
    vendor_name: str | None
    vehicle_number: str | None
    driver_name: str | None
    distance_km: float | None
    created_at: datetime

    model_config = {"from_attributes": True}
