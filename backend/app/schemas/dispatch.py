"""Pydantic schemas for gate passes."""

from datetime import date, datetime

from pydantic import BaseModel, Field


class GatePassCreate(BaseModel):
    """Payload for POST /api/gate-passes."""
    batch_id: str
    truck_number: str = Field(..., min_length=1, max_length=30)
    driver_name: str | None = None
    driver_phone: str | None = None
    total_boxes: int = Field(..., gt=0)
    dispatch_date: date
    notes: str | None = None


class GatePassReceive(BaseModel):
    """Payload for POST /api/gate-passes/{gate_pass_id}/receive."""
    received_boxes: int = Field(..., ge=0)


class GatePassOut(BaseModel):
    id: str
    batch_id: str
    gate_pass_no: str
    truck_number: str
    driver_name: str | None
    driver_phone: str | None
    total_boxes: int
    dispatch_date: datetime
    notes: str | None
    created_by: str
    received_boxes: int | None
    received_at: datetime | None
    received_by: str | None
    shortage: int | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
