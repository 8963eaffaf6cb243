"""VendorLedger — running record of what each vendor owes or is owed.

Box movements (issued / returned / damaged) and labor money (cost /
payment) are appended as rows; each row carries the vendor's balances
*after* the transaction so the ledger can be read without re-summing.
"""

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class LedgerTransaction(str, enum.Enum):
    BOX_ISSUED = "BOX_ISSUED"
    BOX_RETURNED = "BOX_RETURNED"
    BOX_DAMAGED = "BOX_DAMAGED"
    LABOR_COST = "LABOR_COST"
    LABOR_PAYMENT = "LABOR_PAYMENT"


class VendorLedger(Base):
    __tablename__ = "vendor_ledger"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    vendor_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False, index=True
    )
    batch_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("batches.id"), index=True
    )
    transaction_type: Mapped[LedgerTransaction] = mapped_column(
        SAEnum(LedgerTransaction, native_enum=False, length=20), nullable=False, index=True
    )

    quantity: Mapped[int] = mapped_column(Integer, default=0)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0.00"))

    # ── Balances after this transaction ──────────────────────
    balance_boxes: Mapped[int] = mapped_column(Integer, default=0)
    balance_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0.00"))

    notes: Mapped[str | None] = mapped_column(Text)
    created_by: Mapped[str | None] = mapped_column(String(36))
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False, index=True
    )
