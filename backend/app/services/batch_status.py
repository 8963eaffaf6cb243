"""Batch status machine.

Explicit status requests from users go through ``update_batch_status``.
Harvest reports and gate passes derive status from the box counters
instead (see ``app.services.harvest`` and ``app.services.dispatch``).

Guarded targets:
    HARVEST_COMPLETED     from HARVEST_IN_PROGRESS, CREATED, IN_PROGRESS,
                          DISPATCH_IN_PROGRESS
    IN_TRANSIT            from DISPATCH_COMPLETED
    DELIVERED             from IN_TRANSIT, DISPATCH_COMPLETED
Any other target is assigned as requested.
"""

import logging
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.middleware.exceptions import BusinessLogicError, PermissionDeniedError
from app.models.batch import Batch, BatchStatus
from app.models.harvest_report import DailyHarvestReport
from app.models.user import User, UserRole
from app.schemas.batch import BatchOut
from app.services.common import get_batch_or_404, get_user_or_404, lock_batch, record_event

logger = logging.getLogger(__name__)

ALLOWED_SOURCES: dict[BatchStatus, set[BatchStatus]] = {
    BatchStatus.HARVEST_COMPLETED: {
        BatchStatus.HARVEST_IN_PROGRESS,
        BatchStatus.CREATED,
        BatchStatus.IN_PROGRESS,
        BatchStatus.DISPATCH_IN_PROGRESS,
    },
    BatchStatus.IN_TRANSIT: {BatchStatus.DISPATCH_COMPLETED},
    BatchStatus.DELIVERED: {BatchStatus.IN_TRANSIT, BatchStatus.DISPATCH_COMPLETED},
}


def check_transition(current: BatchStatus, target: BatchStatus) -> None:
    allowed = ALLOWED_SOURCES.get(target)
    if allowed is not None and current not in allowed:
        sources = ", ".join(sorted(s.value for s in allowed))
        raise BusinessLogicError(
            f"Cannot move batch from {current.value} to {target.value}. "
            f"{target.value} is only allowed from: {sources}.",
            error_code="INVALID_STATUS_TRANSITION",
            details={"current_status": current.value, "requested_status": target.value},
        )


def ensure_can_modify(user: User, batch: Batch) -> None:
    """Vendors may only touch their own batches; admins and managers bypass."""
    if user.role == UserRole.VENDOR and batch.vendor_id != user.id:
        raise PermissionDeniedError("You are not authorized to update this batch.")


def set_status(batch: Batch, new_status: BatchStatus) -> None:
    """Assign a status, stamping start_date on first entry into harvest."""
    if new_status == BatchStatus.HARVEST_IN_PROGRESS and batch.start_date is None:
        batch.start_date = date.today()
    batch.status = new_status


async def update_batch_status(
    db: AsyncSession,
    batch_id: str,
    new_status: BatchStatus,
    user_id: str,
) -> Batch:
    batch = await lock_batch(db, batch_id)
    user = await get_user_or_404(db, user_id)
    ensure_can_modify(user, batch)

    previous = batch.status
    check_transition(previous, new_status)
    set_status(batch, new_status)

    record_event(
        db, batch, "status_change", user.id,
        {"from": previous.value, "to": new_status.value},
    )
    await db.flush()

    logger.info(
        "Batch %s status %s -> %s by %s",
        batch.batch_code, previous.value, new_status.value, user.id,
    )
    return batch


# ── Reads ────────────────────────────────────────────────────

async def summed_harvest(db: AsyncSession, batch_id: str) -> int:
    result = await db.execute(
        select(func.coalesce(func.sum(DailyHarvestReport.boxes_packed), 0)).where(
            DailyHarvestReport.batch_id == batch_id
        )
    )
    return int(result.scalar() or 0)


async def batch_view(db: AsyncSession, batch: Batch) -> BatchOut:
    """Response view whose ``actual_boxes`` is re-summed from the harvest reports."""
    view = BatchOut.model_validate(batch)
    view.actual_boxes = await summed_harvest(db, batch.id)
    return view


async def get_batch(db: AsyncSession, batch_id: str) -> BatchOut:
    batch = await get_batch_or_404(db, batch_id)
    return await batch_view(db, batch)
