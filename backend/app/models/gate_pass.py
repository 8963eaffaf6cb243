"""GatePass — a truck leaving the farm with boxes from one batch.

Created at dispatch (``GP-YYYYMMDD-NNNN``), then received exactly once at
the warehouse, where any shortage between ``total_boxes`` and
``received_boxes`` is recorded.
"""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class GatePass(Base):
    __tablename__ = "gate_passes"
    __table_args__ = (
        CheckConstraint("total_boxes > 0", name="ck_gate_pass_total_positive"),
        CheckConstraint("received_boxes >= 0", name="ck_gate_pass_received_non_negative"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    batch_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("batches.id"), nullable=False, index=True
    )
    gate_pass_no: Mapped[str] = mapped_column(
        String(50), unique=True, nullable=False, index=True
    )

    # ── Vehicle ──────────────────────────────────────────────
    truck_number: Mapped[str] = mapped_column(String(30), nullable=False)
    driver_name: Mapped[str | None] = mapped_column(String(100))
    driver_phone: Mapped[str | None] = mapped_column(String(20))

    # ── Dispatch ─────────────────────────────────────────────
    total_boxes: Mapped[int] = mapped_column(Integer, nullable=False)
    dispatch_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    notes: Mapped[str | None] = mapped_column(Text)
    created_by: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)

    # ── Receipt (set once) ───────────────────────────────────
    received_boxes: Mapped[int | None] = mapped_column(Integer)
    received_at: Mapped[datetime | None] = mapped_column(DateTime)
    received_by: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id"))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    @property
    def shortage(self) -> int | None:
        if self.received_boxes is None:
            return None
        return self.total_boxes - self.received_boxes
