"""Cost inputs recorded against a batch: transport legs and labor.

TransportCost  one truck leg, INWARD (materials to farm) or OUTWARD
               (boxes to warehouse)
LaborCost      wages for one harvest day; created alongside the daily
               report when the report carries a labor figure
"""

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Enum as SAEnum, Float, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class TransportType(str, enum.Enum):
    INWARD = "INWARD"
    OUTWARD = "OUTWARD"


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    PARTIAL = "PARTIAL"
    PAID = "PAID"


class TransportCost(Base):
    __tablename__ = "transport_costs"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    batch_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("batches.id"), nullable=False, index=True
    )
    cost_type: Mapped[TransportType] = mapped_column(
        SAEnum(TransportType, native_enum=False, length=10), nullable=False
    )

    # ── Carrier ──────────────────────────────────────────────
    vendor_name: Mapped[str | None] = mapped_column(String(255))
    vehicle_number: Mapped[str | None] = mapped_column(String(30))
    driver_name: Mapped[str | None] = mapped_column(String(100))
    driver_phone: Mapped[str | None] = mapped_column(String(20))
    distance_km: Mapped[float | None] = mapped_column(Float)

    # ── Money ────────────────────────────────────────────────
    total_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    cost_per_box: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0.00"))

    notes: Mapped[str | None] = mapped_column(Text)
    created_by: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class LaborCost(Base):
    __tablename__ = "labor_costs"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    report_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("daily_harvest_reports.id"), index=True
    )
    batch_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("batches.id"), nullable=False, index=True
    )
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    cost_per_box: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0.00"))

    # ── Payment ──────────────────────────────────────────────
    payment_status: Mapped[PaymentStatus] = mapped_column(
        SAEnum(PaymentStatus, native_enum=False, length=10), default=PaymentStatus.PENDING
    )
    paid_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0.00"))

    notes: Mapped[str | None] = mapped_column(Text)
    created_by: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
