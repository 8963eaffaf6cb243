"""Pydantic schemas for farms, inspections and inspection decisions."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from app.models.farm import FarmStatus, InspectionStatus
from app.schemas.batch import BatchOut


# ── Farm ─────────────────────────────────────────────────────

class FarmCreate(BaseModel):
    farmer_name: str = Field(..., min_length=1, max_length=255)
    location: str | None = None
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    contact_number: str | None = None
    total_area: float | None = Field(None, gt=0)
    area_unit: str = "acres"
    produce_type: str = "banana"


class FarmOut(BaseModel):
    id: str
    farmer_name: str
    location: str | None
    latitude: float | None
    longitude: float | None
    contact_number: str | None
    total_area: float | None
    area_unit: str
    produce_type: str
    status: FarmStatus
    created_at: datetime

    model_config = {"from_attributes": True}


# ── Inspection ───────────────────────────────────────────────

class InspectionCreate(BaseModel):
    """Payload for POST /api/inspections — a vendor's field inspection."""
    farm_id: str
    estimated_boxes: int = Field(..., gt=0)
    inspection_notes: str | None = None
    gps_latitude: float | None = Field(None, ge=-90, le=90)
    gps_longitude: float | None = Field(None, ge=-180, le=180)
    gps_accuracy: float | None = Field(None, ge=0)


class InspectionOut(BaseModel):
    id: str
    farm_id: str
    vendor_id: str
    estimated_boxes: int
    inspection_notes: str | None
    gps_latitude: float | None
    gps_longitude: float | None
    status: InspectionStatus
    approved_by: str | None
    approved_at: datetime | None
    rejection_reason: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


# ── Decision ─────────────────────────────────────────────────

class InspectionDecisionRequest(BaseModel):
    """Payload for POST /api/inspections/{inspection_id}/decision."""
    approved: bool
    rejection_reason: str | None = None

    @model_validator(mode="after")
    def reason_required_on_reject(self):
        if not self.approved and not (self.rejection_reason or "").strip():
            raise ValueError("rejection_reason is required when rejecting an inspection")
        return self


class InspectionDecisionOut(BaseModel):
    outcome: Literal["approved", "rejected"]
    inspection: InspectionOut
    batch: BatchOut | None = None
