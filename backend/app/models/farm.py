"""Farm and FarmInspection — the upstream of every batch.

A vendor inspects a farm and estimates how many boxes it will yield.
Approving that inspection is the only way a Batch comes into existence.

Farm lifecycle:        active → inspection_pending → ready_for_harvest
                                                   ↘ inspection_rejected
Inspection lifecycle:  pending → approved | rejected
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    CheckConstraint, DateTime, Enum as SAEnum, Float, ForeignKey,
    Integer, String, Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class FarmStatus(str, enum.Enum):
    ACTIVE = "active"
    INSPECTION_PENDING = "inspection_pending"
    READY_FOR_HARVEST = "ready_for_harvest"
    INSPECTION_REJECTED = "inspection_rejected"


class InspectionStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Farm(Base):
    __tablename__ = "farms"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    farmer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    location: Mapped[str | None] = mapped_column(String(255))
    latitude: Mapped[float | None] = mapped_column(Float)
    longitude: Mapped[float | None] = mapped_column(Float)
    contact_number: Mapped[str | None] = mapped_column(String(20))
    total_area: Mapped[float | None] = mapped_column(Float)
    area_unit: Mapped[str] = mapped_column(String(20), default="acres")
    produce_type: Mapped[str] = mapped_column(String(50), default="banana")

    # ── Status ───────────────────────────────────────────────
    status: Mapped[FarmStatus] = mapped_column(
        SAEnum(FarmStatus, native_enum=False, length=30, values_callable=_enum_values),
        default=FarmStatus.ACTIVE,
        index=True,
    )

    # ── Metadata ─────────────────────────────────────────────
    created_by: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    inspections = relationship("FarmInspection", back_populates="farm")


class FarmInspection(Base):
    __tablename__ = "farm_inspections"
    __table_args__ = (
        CheckConstraint("estimated_boxes > 0", name="ck_inspection_estimate_positive"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    farm_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("farms.id"), nullable=False, index=True
    )
    vendor_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False, index=True
    )

    # ── Findings ─────────────────────────────────────────────
    estimated_boxes: Mapped[int] = mapped_column(Integer, nullable=False)
    inspection_notes: Mapped[str | None] = mapped_column(Text)
    gps_latitude: Mapped[float | None] = mapped_column(Float)
    gps_longitude: Mapped[float | None] = mapped_column(Float)
    gps_accuracy: Mapped[float | None] = mapped_column(Float)

    # ── Decision ─────────────────────────────────────────────
    status: Mapped[InspectionStatus] = mapped_column(
        SAEnum(InspectionStatus, native_enum=False, length=20, values_callable=_enum_values),
        default=InspectionStatus.PENDING,
        index=True,
    )
    approved_by: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id"))
    approved_at: Mapped[datetime | None] = mapped_column(DateTime)
    rejection_reason: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    farm = relationship("Farm", back_populates="inspections")
