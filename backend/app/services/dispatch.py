"""Dispatch accounting service.

Gate passes move harvested boxes off the farm.  Creating one consumes the
batch's dispatchable capacity (``gate_pass_remaining``) and advances the
batch status; receiving one at the warehouse records what actually
arrived.  A receipt shortage is logged and kept in the batch history but
does not change the batch counters; the vendor-ledger reconciliation
reports it against the boxes issued.
"""

import logging
from datetime import date, datetime, time

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.middleware.exceptions import BusinessLogicError, ResourceNotFoundError
from app.models.batch import Batch, BatchStatus
from app.models.gate_pass import GatePass
from app.schemas.dispatch import GatePassCreate
from app.services.batch_status import set_status
from app.services.common import (
    ensure_batch_open,
    ensure_box_invariant,
    get_batch_or_404,
    get_user_or_404,
    lock_batch,
    record_event,
)
from app.utils.numbering import insert_with_code

logger = logging.getLogger(__name__)


def derive_dispatch_status(batch: Batch) -> None:
    dispatched = batch.dispatched_boxes
    harvested = batch.harvested_boxes
    if 0 < dispatched < harvested:
        set_status(batch, BatchStatus.DISPATCH_IN_PROGRESS)
    elif dispatched >= harvested:
        if harvested >= batch.allocated_boxes:
            set_status(batch, BatchStatus.DISPATCH_COMPLETED)
        else:
            # Dispatch caught up with a harvest that is still running
            set_status(batch, BatchStatus.HARVEST_IN_PROGRESS)


async def create_gate_pass(
    body: GatePassCreate,
    user_id: str,
    db: AsyncSession,
) -> tuple[GatePass, Batch]:
    """Dispatch boxes from a batch under a new gate pass.

    Raises:
        ResourceNotFoundError if the batch or user does not exist.
        BusinessLogicError (DISPATCH_CAPACITY_EXCEEDED) if total_boxes
        exceeds the batch's dispatchable boxes.
        BusinessLogicError (BATCH_CANCELLED) if the batch is cancelled.
    """
    batch = await lock_batch(db, body.batch_id)
    await get_user_or_404(db, user_id)
    ensure_batch_open(batch)

    available = batch.gate_pass_remaining
    if body.total_boxes > available:
        raise BusinessLogicError(
            f"Limit exceeded. Only {available} boxes available for dispatch in this batch.",
            error_code="DISPATCH_CAPACITY_EXCEEDED",
            details={"gate_pass_remaining": available, "requested_boxes": body.total_boxes},
        )

    batch.dispatched_boxes += body.total_boxes
    batch.gate_pass_remaining = batch.harvested_boxes - batch.dispatched_boxes
    ensure_box_invariant(batch)
    derive_dispatch_status(batch)

    dispatch_at = datetime.combine(body.dispatch_date, time.min)

    def _build(code: str) -> GatePass:
        return GatePass(
            batch_id=batch.id,
            gate_pass_no=code,
            truck_number=body.truck_number,
            driver_name=body.driver_name,
            driver_phone=body.driver_phone,
            total_boxes=body.total_boxes,
            dispatch_date=dispatch_at,
            notes=body.notes,
            created_by=user_id,
        )

    gate_pass = await insert_with_code(db, "gate_pass", _build)

    record_event(
        db, batch, "dispatch", user_id,
        {
            "gate_pass_id": gate_pass.id,
            "gate_pass_no": gate_pass.gate_pass_no,
            "total_boxes": body.total_boxes,
            "dispatched_boxes": batch.dispatched_boxes,
            "gate_pass_remaining": batch.gate_pass_remaining,
            "status": batch.status.value,
        },
    )
    await db.flush()

    logger.info(
        "Gate pass %s for batch %s: %d boxes (%d/%d dispatched), status %s",
        gate_pass.gate_pass_no, batch.batch_code, body.total_boxes,
        batch.dispatched_boxes, batch.harvested_boxes, batch.status.value,
    )
    return gate_pass, batch


async def receive_gate_pass(
    db: AsyncSession,
    gate_pass_id: str,
    received_boxes: int,
    user_id: str,
) -> GatePass:
    """Record warehouse receipt of a gate pass (once)."""
    gate_pass = (
        await db.execute(
            select(GatePass)
            .where(GatePass.id == gate_pass_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
    ).scalar_one_or_none()
    if not gate_pass:
        raise ResourceNotFoundError("Gate pass", gate_pass_id)
    await get_user_or_404(db, user_id)

    if gate_pass.received_boxes is not None:
        raise BusinessLogicError(
            f"Gate pass {gate_pass.gate_pass_no} was already received "
            f"({gate_pass.received_boxes} boxes).",
            error_code="GATE_PASS_ALREADY_RECEIVED",
        )

    gate_pass.received_boxes = received_boxes
    gate_pass.received_at = datetime.utcnow()
    gate_pass.received_by = user_id

    shortage = gate_pass.total_boxes - received_boxes
    if shortage > 0:
        logger.warning(
            "Shortage on gate pass %s: dispatched %d, received %d (short %d)",
            gate_pass.gate_pass_no, gate_pass.total_boxes, received_boxes, shortage,
        )
    elif shortage < 0:
        logger.warning(
            "Gate pass %s received %d boxes, %d more than dispatched",
            gate_pass.gate_pass_no, received_boxes, -shortage,
        )

    batch = await get_batch_or_404(db, gate_pass.batch_id)
    record_event(
        db, batch, "gate_pass_received", user_id,
        {
            "gate_pass_id": gate_pass.id,
            "gate_pass_no": gate_pass.gate_pass_no,
            "total_boxes": gate_pass.total_boxes,
            "received_boxes": received_boxes,
            "shortage": shortage,
        },
    )
    await db.flush()
    return gate_pass


# ── Reads ────────────────────────────────────────────────────

async def list_batch_gate_passes(db: AsyncSession, batch_id: str) -> list[GatePass]:
    await get_batch_or_404(db, batch_id)
    result = await db.execute(
        select(GatePass)
        .where(GatePass.batch_id == batch_id)
        .order_by(GatePass.dispatch_date.desc(), GatePass.created_at.desc())
    )
    return list(result.scalars().all())


async def list_gate_passes_by_date(db: AsyncSession, dispatch_day: date) -> list[GatePass]:
    start = datetime.combine(dispatch_day, time.min)
    end = datetime.combine(dispatch_day, time.max)
    result = await db.execute(
        select(GatePass)
        .where(GatePass.dispatch_date.between(start, end))
        .order_by(GatePass.created_at.desc())
    )
    return list(result.scalars().all())


async def list_pending_gate_passes(db: AsyncSession) -> list[GatePass]:
    result = await db.execute(
        select(GatePass)
        .where(GatePass.received_boxes.is_(None))
        .order_by(GatePass.dispatch_date.desc(), GatePass.created_at.desc())
    )
    return list(result.scalars().all())
