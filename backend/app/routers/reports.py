"""Reports router.

Endpoints:
    GET    /api/reports/profitability    Revenue vs cost per sale, latest first
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import require_permission
from app.config import settings
from app.database import get_db
from app.models.user import User
from app.schemas.sales import ProfitabilityRow
from app.services.sales import profitability_report
from app.utils.cache import cached

router = APIRouter()


@router.get("/profitability", response_model=list[ProfitabilityRow])
@cached(ttl=settings.cost_cache_ttl, prefix="costs")
async def profitability(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("reports.read")),
):
    return await profitability_report(db)
