"""Harvest router — daily harvest reports.

Endpoints:
    POST   /api/harvest/daily               Submit a day's packing for a batch
    GET    /api/harvest/batch/{batch_id}    Reports for a batch
    GET    /api/harvest/reports?date=       Reports filed for a date
"""

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import require_permission
from app.database import get_db
from app.models.user import User
from app.schemas.harvest import DailyReportOut, DailyReportRequest
from app.services.harvest import list_batch_reports, list_reports_by_date, submit_daily_report
from app.utils.cache import invalidate_on_commit

router = APIRouter()


@router.post("/daily", response_model=DailyReportOut, status_code=status.HTTP_201_CREATED)
async def submit_report(
    body: DailyReportRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("harvest.write")),
):
    """Record boxes packed today; rejected with 422 if it would exceed remaining boxes."""
    report, _batch = await submit_daily_report(body, user_id=user.id, db=db)
    await invalidate_on_commit(db, "costs:*")
    return report


@router.get("/batch/{batch_id}", response_model=list[DailyReportOut])
async def reports_for_batch(
    batch_id: str,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("harvest.read")),
):
    return await list_batch_reports(db, batch_id)


@router.get("/reports", response_model=list[DailyReportOut])
async def reports_for_date(
    report_date: date | None = Query(None, alias="date"),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("harvest.read")),
):
    return await list_reports_by_date(db, report_date or date.today())
