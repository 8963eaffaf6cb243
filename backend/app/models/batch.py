"""Batch — one approved harvest allocation, tracked box by box.

A Batch is created when a farm inspection is approved and carries the box
counters that every harvest report and gate pass mutates:

    remaining_boxes     = allocated_boxes  - harvested_boxes
    gate_pass_remaining = harvested_boxes  - dispatched_boxes
    actual_boxes        = harvested_boxes  (legacy mirror)

and always ``0 <= dispatched <= harvested <= allocated``.

Lifecycle:
    CREATED → IN_PROGRESS → HARVEST_IN_PROGRESS → HARVEST_COMPLETED
            → DISPATCH_IN_PROGRESS → DISPATCH_COMPLETED → IN_TRANSIT
            → DELIVERED → COMPLETED            (CANCELLED from anywhere)

Batches are never deleted.  Rows written by older releases may hold NULL
in the counter columns; ``normalize_counters()`` repairs them on load.
"""

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import (
    CheckConstraint, Date, DateTime, Enum as SAEnum, ForeignKey,
    Integer, String,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class BatchStatus(str, enum.Enum):
    CREATED = "CREATED"
    IN_PROGRESS = "IN_PROGRESS"
    HARVEST_IN_PROGRESS = "HARVEST_IN_PROGRESS"
    HARVEST_COMPLETED = "HARVEST_COMPLETED"
    DISPATCH_IN_PROGRESS = "DISPATCH_IN_PROGRESS"
    DISPATCH_COMPLETED = "DISPATCH_COMPLETED"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Batch(Base):
    __tablename__ = "batches"
    __table_args__ = (
        CheckConstraint("harvested_boxes >= 0", name="ck_batch_harvested_non_negative"),
        CheckConstraint("dispatched_boxes >= 0", name="ck_batch_dispatched_non_negative"),
        CheckConstraint(
            "harvested_boxes <= allocated_boxes", name="ck_batch_harvest_within_allocation"
        ),
        CheckConstraint(
            "dispatched_boxes <= harvested_boxes", name="ck_batch_dispatch_within_harvest"
        ),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    # BATCH-YYYYMMDD-NNNN
    batch_code: Mapped[str] = mapped_column(
        String(50), unique=True, nullable=False, index=True
    )

    # ── Origin ───────────────────────────────────────────────
    inspection_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("farm_inspections.id"), index=True
    )
    farm_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("farms.id"), nullable=False, index=True
    )
    vendor_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False, index=True
    )

    # ── Status ───────────────────────────────────────────────
    status: Mapped[BatchStatus] = mapped_column(
        SAEnum(BatchStatus, native_enum=False, length=30),
        default=BatchStatus.CREATED,
        index=True,
    )

    # ── Box counters ─────────────────────────────────────────
    estimated_boxes: Mapped[int] = mapped_column(Integer, nullable=False)
    allocated_boxes: Mapped[int | None] = mapped_column(Integer, default=0)
    harvested_boxes: Mapped[int | None] = mapped_column(Integer, default=0)
    remaining_boxes: Mapped[int | None] = mapped_column(Integer, default=0)
    actual_boxes: Mapped[int | None] = mapped_column(Integer, default=0)
    dispatched_boxes: Mapped[int | None] = mapped_column(Integer, default=0)
    gate_pass_remaining: Mapped[int | None] = mapped_column(Integer, default=0)

    # ── Dates ────────────────────────────────────────────────
    start_date: Mapped[date | None] = mapped_column(Date)
    end_date: Mapped[date | None] = mapped_column(Date)

    # ── Metadata ─────────────────────────────────────────────
    created_by: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Bumped on every UPDATE; a stale write raises StaleDataError
    version_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    def normalize_counters(self) -> None:
        """Fill NULL counters left by legacy rows and re-derive the dependents."""
        if self.harvested_boxes is None:
            self.harvested_boxes = self.actual_boxes or 0
        if self.dispatched_boxes is None:
            self.dispatched_boxes = 0
        if self.allocated_boxes is None:
            self.allocated_boxes = 0
        self.gate_pass_remaining = self.harvested_boxes - self.dispatched_boxes
        self.remaining_boxes = self.allocated_boxes - self.harvested_boxes

    def box_invariant_violations(self) -> list[str]:
        """Return the box-accounting rules this batch currently breaks."""
        problems = []
        harvested = self.harvested_boxes or 0
        dispatched = self.dispatched_boxes or 0
        allocated = self.allocated_boxes or 0
        if harvested < 0 or dispatched < 0:
            problems.append("box counters must not be negative")
        if harvested > allocated:
            problems.append(f"harvested ({harvested}) exceeds allocated ({allocated})")
        if dispatched > harvested:
            problems.append(f"dispatched ({dispatched}) exceeds harvested ({harvested})")
        return problems
