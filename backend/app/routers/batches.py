"""Batch router — batch detail, status transitions and history.

Endpoints:
    GET    /api/batches/{batch_id}           Batch detail (actual_boxes re-summed)
    PATCH  /api/batches/{batch_id}/status    Request a status transition
    GET    /api/batches/{batch_id}/history   Event log, newest first
"""

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import require_permission
from app.database import get_db
from app.models.batch_history import BatchHistory
from app.models.user import User
from app.schemas.batch import BatchHistoryOut, BatchOut, BatchStatusUpdate
from app.services.batch_status import batch_view, get_batch, update_batch_status
from app.services.common import get_batch_or_404
from app.utils.activity import log_activity
from app.utils.cache import invalidate_on_commit

router = APIRouter()


@router.get("/{batch_id}", response_model=BatchOut)
async def batch_detail(
    batch_id: str,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("batch.read")),
):
    return await get_batch(db, batch_id)


@router.patch("/{batch_id}/status", response_model=BatchOut)
async def change_status(
    batch_id: str,
    body: BatchStatusUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("batch.write")),
):
    """Move a batch to a new status.

    Vendors may only update their own batches.  IN_TRANSIT, DELIVERED and
    HARVEST_COMPLETED are only reachable from specific statuses.
    """
    batch = await update_batch_status(db, batch_id, body.status, user.id)

    await invalidate_on_commit(db, "costs:*")
    await log_activity(
        db, user,
        action="status_changed",
        entity_type="batch",
        entity_id=batch.id,
        entity_code=batch.batch_code,
        summary=f"Batch {batch.batch_code} → {batch.status.value}",
    )
    return await batch_view(db, batch)


@router.get("/{batch_id}/history", response_model=list[BatchHistoryOut])
async def batch_history(
    batch_id: str,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("batch.read")),
):
    await get_batch_or_404(db, batch_id)
    result = await db.execute(
        select(BatchHistory)
        .where(BatchHistory.batch_id == batch_id)
        .order_by(BatchHistory.recorded_at.desc())
    )
    return result.scalars().all()
