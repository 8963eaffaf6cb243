"""BatchHistory — immutable event log for a batch.

Records every lifecycle event of a batch: creation from an approved
inspection, status changes, harvest reports, gate passes (and their
receipt), allocations, transport costs and cost roll-ups.  This table is
the audit trail behind every counter on the batch row.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class BatchHistory(Base):
    __tablename__ = "batch_history"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    batch_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("batches.id"), nullable=False, index=True
    )

    # ── Event classification ─────────────────────────────────
    # created | status_change | harvest_report | dispatch |
    # gate_pass_received | allocation | transport_cost | cost_recalculated
    event_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)

    # ── Event data ───────────────────────────────────────────
    # Structure depends on event_type:
    #   status_change:      {"from": "DISPATCH_COMPLETED", "to": "IN_TRANSIT"}
    #   harvest_report:     {"report_id": "...", "boxes_packed": 60, "harvested_boxes": 60}
    #   dispatch:           {"gate_pass_no": "GP-20250101-0001", "total_boxes": 100}
    #   gate_pass_received: {"gate_pass_no": "...", "received_boxes": 98, "shortage": 2}
    event_data: Mapped[dict | None] = mapped_column(JSON)

    notes: Mapped[str | None] = mapped_column(Text)
    recorded_by: Mapped[str | None] = mapped_column(String(36))  # user_id
    recorded_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False, index=True
    )
