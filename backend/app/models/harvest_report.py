import uuid
from datetime import date, datetime

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class DailyHarvestReport(Base):
    """One day's packing output for a batch.  Append-only."""

    __tablename__ = "daily_harvest_reports"
    __table_args__ = (
        CheckConstraint("boxes_packed >= 0", name="ck_report_packed_non_negative"),
        CheckConstraint("boxes_wasted >= 0", name="ck_report_wasted_non_negative"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    batch_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("batches.id"), nullable=False, index=True
    )
    report_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    boxes_packed: Mapped[int] = mapped_column(Integer, nullable=False)
    boxes_wasted: Mapped[int] = mapped_column(Integer, default=0)
    labor_count: Mapped[int] = mapped_column(Integer, default=0)
    notes: Mapped[str | None] = mapped_column(Text)

    created_by: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
