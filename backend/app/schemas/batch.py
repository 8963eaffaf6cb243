"""Pydantic schemas for batch reads and status transitions."""

from datetime import date, datetime

from pydantic import BaseModel

from app.models.batch import BatchStatus


# ── Status transition ────────────────────────────────────────

class BatchStatusUpdate(BaseModel):
    """Payload for PATCH /api/batches/{batch_id}/status."""
    status: BatchStatus


# ── Response ─────────────────────────────────────────────────

class BatchOut(BaseModel):
    id: str
    batch_code: str
    inspection_id: str | None
    farm_id: str
    vendor_id: str
    status: BatchStatus
    estimated_boxes: int
    allocated_boxes: int | None
    harvested_boxes: int | None
    remaining_boxes: int | None
    actual_boxes: int | None
    dispatched_boxes: int | None
    gate_pass_remaining: int | None
    start_date: date | None
    end_date: date | None
    created_by: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ── History event ────────────────────────────────────────────

class BatchHistoryOut(BaseModel):
    id: str
    event_type: str
    event_data: dict | None = None
    notes: str | None = None
    recorded_by: str | None = None
    recorded_at: datetime

    model_config = {"from_attributes": True}
