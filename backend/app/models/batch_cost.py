"""BatchCost — the single cost snapshot of a batch.

Overwritten in full by every roll-up; never appended.  Money is stored as
NUMERIC and handled as ``Decimal`` so per-box figures round half-up to
exactly two places.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base

ZERO = Decimal("0.00")


class BatchCost(Base):
    __tablename__ = "batch_costs"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    batch_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("batches.id"), unique=True, nullable=False
    )

    # ── Components ───────────────────────────────────────────
    material_cost_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=ZERO)
    material_cost_per_box: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=ZERO)
    outward_transport_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=ZERO)
    outward_transport_per_box: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=ZERO)
    labor_cost_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=ZERO)
    labor_cost_per_box: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=ZERO)
    inward_transport_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=ZERO)
    inward_transport_per_box: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=ZERO)

    # ── Totals ───────────────────────────────────────────────
    total_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=ZERO)
    final_cost_per_box: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=ZERO)

    calculated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
