"""Harvest accounting service.

Applies a daily harvest report to its batch:
  - Rejects a report that packs more boxes than the batch has remaining
  - Appends the report (immutable) and, if it carries a wage bill, a
    pending LaborCost spread over the boxes packed
  - Re-sums harvested boxes from every report of the batch so the
    counters always agree with the raw facts
  - Derives the batch status from the counters
  - Re-runs the cost roll-up

Everything happens inside the caller's transaction: a rejected report
leaves counters, status and costs exactly as they were.

Also records transport legs, which feed the same cost roll-up.
"""

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.middleware.exceptions import BusinessLogicError
from app.models.batch import Batch, BatchStatus
from app.models.costs import LaborCost, PaymentStatus, TransportCost
from app.models.harvest_report import DailyHarvestReport
from app.schemas.harvest import DailyReportRequest, TransportCostRequest
from app.services.batch_status import set_status, summed_harvest
from app.services.common import (
    ensure_batch_open,
    ensure_box_invariant,
    get_batch_or_404,
    get_user_or_404,
    lock_batch,
    record_event,
)
from app.services.costing import cost_basis_boxes, per_box, recalculate_costs, to_money

logger = logging.getLogger(__name__)


def derive_harvest_status(batch: Batch) -> None:
    harvested = batch.harvested_boxes
    allocated = batch.allocated_boxes
    if 0 < harvested < allocated:
        set_status(batch, BatchStatus.HARVEST_IN_PROGRESS)
    elif harvested >= allocated:
        set_status(batch, BatchStatus.HARVEST_COMPLETED)

    if batch.status == BatchStatus.CREATED:
        set_status(batch, BatchStatus.IN_PROGRESS)


def _apply_harvested(batch: Batch, harvested: int) -> None:
    batch.harvested_boxes = harvested
    batch.remaining_boxes = batch.allocated_boxes - harvested
    batch.gate_pass_remaining = harvested - batch.dispatched_boxes
    batch.actual_boxes = harvested


async def submit_daily_report(
    body: DailyReportRequest,
    user_id: str,
    db: AsyncSession,
) -> tuple[DailyHarvestReport, Batch]:
    """Record a day's packing for a batch and update its counters.

    Raises:
        ResourceNotFoundError if the batch or user does not exist.
        BusinessLogicError (HARVEST_CAPACITY_EXCEEDED) if boxes_packed
        exceeds the batch's remaining boxes.
        BusinessLogicError (BATCH_CANCELLED) if the batch is cancelled.
    """
    batch = await lock_batch(db, body.batch_id)
    await get_user_or_404(db, user_id)
    ensure_batch_open(batch)

    remaining = batch.remaining_boxes
    if body.boxes_packed > remaining:
        raise BusinessLogicError(
            f"Limit exceeded. Only {remaining} boxes remaining for harvest in this batch.",
            error_code="HARVEST_CAPACITY_EXCEEDED",
            details={"remaining_boxes": remaining, "requested_boxes": body.boxes_packed},
        )

    _apply_harvested(batch, batch.harvested_boxes + body.boxes_packed)
    ensure_box_invariant(batch)
    derive_harvest_status(batch)

    report = DailyHarvestReport(
        batch_id=batch.id,
        report_date=body.report_date,
        boxes_packed=body.boxes_packed,
        boxes_wasted=body.boxes_wasted,
        labor_count=body.labor_count,
        notes=body.notes,
        created_by=user_id,
    )
    db.add(report)
    await db.flush()  # populate report.id

    if body.labor_cost is not None and body.labor_cost > 0:
        labor_total = to_money(body.labor_cost)
        db.add(LaborCost(
            report_id=report.id,
            batch_id=batch.id,
            total_amount=labor_total,
            cost_per_box=per_box(labor_total, body.boxes_packed),
            payment_status=PaymentStatus.PENDING,
            paid_amount=Decimal("0.00"),
            notes=f"Labor for harvest report {body.report_date.isoformat()}",
            created_by=user_id,
        ))

    # Counters follow the reports, not the running delta
    _apply_harvested(batch, await summed_harvest(db, batch.id))
    ensure_box_invariant(batch)
    derive_harvest_status(batch)

    record_event(
        db, batch, "harvest_report", user_id,
        {
            "report_id": report.id,
            "report_date": body.report_date.isoformat(),
            "boxes_packed": body.boxes_packed,
            "boxes_wasted": body.boxes_wasted,
            "harvested_boxes": batch.harvested_boxes,
            "remaining_boxes": batch.remaining_boxes,
            "status": batch.status.value,
        },
        notes=body.notes,
    )
    await db.flush()

    await recalculate_costs(db, batch.id)

    logger.info(
        "Harvest report for batch %s: +%d boxes (%d/%d harvested), status %s",
        batch.batch_code, body.boxes_packed, batch.harvested_boxes,
        batch.allocated_boxes, batch.status.value,
    )
    return report, batch


async def add_transport_cost(
    body: TransportCostRequest,
    user_id: str,
    db: AsyncSession,
) -> TransportCost:
    batch = await get_batch_or_404(db, body.batch_id)
    await get_user_or_404(db, user_id)

    total = to_money(body.total_cost)
    transport = TransportCost(
        batch_id=batch.id,
        cost_type=body.cost_type,
        vendor_name=body.vendor_name,
        vehicle_number=body.vehicle_number,
        driver_name=body.driver_name,
        driver_phone=body.driver_phone,
        distance_km=body.distance_km,
        total_cost=total,
        cost_per_box=per_box(total, cost_basis_boxes(batch)),
        notes=body.notes,
        created_by=user_id,
    )
    db.add(transport)

    record_event(
        db, batch, "transport_cost", user_id,
        {"cost_type": body.cost_type.value, "total_cost": str(total)},
    )
    await db.flush()

    await recalculate_costs(db, batch.id)
    return transport


# ── Reads ────────────────────────────────────────────────────

async def list_batch_reports(db: AsyncSession, batch_id: str) -> list[DailyHarvestReport]:
    await get_batch_or_404(db, batch_id)
    result = await db.execute(
        select(DailyHarvestReport)
        .where(DailyHarvestReport.batch_id == batch_id)
        .order_by(DailyHarvestReport.report_date, DailyHarvestReport.created_at)
    )
    return list(result.scalars().all())


async def list_reports_by_date(db: AsyncSession, report_date: date) -> list[DailyHarvestReport]:
    result = await db.execute(
        select(DailyHarvestReport)
        .where(DailyHarvestReport.report_date == report_date)
        .order_by(DailyHarvestReport.created_at.desc())
    )
    return list(result.scalars().all())
