"""Lookups and guards shared by the batch services.

Every read-check-write on a batch goes through ``lock_batch``: the row is
selected ``FOR UPDATE`` so a concurrent harvest report or gate pass on the
same batch waits instead of passing the same capacity check.  The batch's
``version_id`` column turns any write that slips past the lock into a
``StaleDataError`` (HTTP 409).
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.middleware.exceptions import BusinessLogicError, ResourceNotFoundError
from app.models.batch import Batch, BatchStatus
from app.models.batch_history import BatchHistory
from app.models.user import User


async def get_user_or_404(db: AsyncSession, user_id: str) -> User:
    user = (
        await db.execute(select(User).where(User.id == user_id))
    ).scalar_one_or_none()
    if not user:
        raise ResourceNotFoundError("User", user_id)
    return user


async def get_batch_or_404(db: AsyncSession, batch_id: str) -> Batch:
    batch = (
        await db.execute(select(Batch).where(Batch.id == batch_id))
    ).scalar_one_or_none()
    if not batch:
        raise ResourceNotFoundError("Batch", batch_id)
    return batch


async def lock_batch(db: AsyncSession, batch_id: str) -> Batch:
    """Load a batch for mutation: row-locked, refreshed, legacy counters repaired."""
    batch = (
        await db.execute(
            select(Batch)
            .where(Batch.id == batch_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
    ).scalar_one_or_none()
    if not batch:
        raise ResourceNotFoundError("Batch", batch_id)
    batch.normalize_counters()
    return batch


def ensure_batch_open(batch: Batch) -> None:
    """Cancelled batches take no more harvest reports or gate passes."""
    if batch.status == BatchStatus.CANCELLED:
        raise BusinessLogicError(
            f"Batch {batch.batch_code} is cancelled.",
            error_code="BATCH_CANCELLED",
            details={"status": batch.status.value},
        )


def ensure_box_invariant(batch: Batch) -> None:
    """Reject the write before flush if the counters went out of bounds."""
    problems = batch.box_invariant_violations()
    if problems:
        raise BusinessLogicError(
            f"Batch {batch.batch_code}: " + "; ".join(problems),
            error_code="BOX_INVARIANT_VIOLATION",
        )


def record_event(
    db: AsyncSession,
    batch: Batch,
    event_type: str,
    user_id: str | None,
    data: dict | None = None,
    notes: str | None = None,
) -> BatchHistory:
    history = BatchHistory(
        batch_id=batch.id,
        event_type=event_type,
        event_data=data,
        notes=notes,
        recorded_by=user_id,
    )
    db.add(history)
    return history
