"""Sale — one invoiced sale of a completed batch's boxes.

A batch is sold once, after it reaches COMPLETED, and never for more boxes
than it actually harvested.  The invoice number (``INV-YYYYMMDD-NNNNN``)
is allocated like batch and gate-pass codes.  Amounts are fixed at
creation; only the payment fields move afterwards.
"""

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint, Date, DateTime, Enum as SAEnum, ForeignKey,
    Integer, Numeric, String, Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.costs import PaymentStatus


class SaleType(str, enum.Enum):
    DOMESTIC = "DOMESTIC"
    EXPORT = "EXPORT"


class Sale(Base):
    __tablename__ = "sales"
    __table_args__ = (
        CheckConstraint("total_boxes > 0", name="ck_sale_boxes_positive"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    batch_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("batches.id"), nullable=False, index=True
    )
    invoice_number: Mapped[str] = mapped_column(
        String(50), unique=True, nullable=False, index=True
    )

    # ── Buyer ────────────────────────────────────────────────
    buyer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    buyer_contact: Mapped[str | None] = mapped_column(String(255))
    buyer_address: Mapped[str | None] = mapped_column(Text)
    sale_type: Mapped[SaleType] = mapped_column(
        SAEnum(SaleType, native_enum=False, length=20), nullable=False
    )

    # ── Amounts ──────────────────────────────────────────────
    total_boxes: Mapped[int] = mapped_column(Integer, nullable=False)
    price_per_box: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="INR")
    exchange_rate: Mapped[Decimal] = mapped_column(Numeric(10, 4), default=Decimal("1"))
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    tax_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("0.00"))
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0.00"))
    grand_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    # ── Payment ──────────────────────────────────────────────
    payment_status: Mapped[PaymentStatus] = mapped_column(
        SAEnum(PaymentStatus, native_enum=False, length=20),
        default=PaymentStatus.PENDING,
    )
    paid_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0.00"))

    sale_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    created_by: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
