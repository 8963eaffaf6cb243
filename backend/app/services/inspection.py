"""Farm registry, inspection submission and inspection decisions.

Approving an inspection is the only way a batch is created:
  - Inspection → approved (approver + timestamp)
  - Farm → ready_for_harvest
  - Batch BATCH-YYYYMMDD-NNNN created with the inspection's estimate as
    both estimated and allocated boxes, every other counter at zero

Rejecting marks the inspection rejected (with reason) and the farm
inspection_rejected.  Both outcomes are normal results that commit.
"""

import logging
from datetime import date, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.middleware.exceptions import BusinessLogicError, ResourceNotFoundError
from app.models.batch import Batch, BatchStatus
from app.models.farm import Farm, FarmInspection, FarmStatus, InspectionStatus
from app.schemas.inspection import FarmCreate, InspectionCreate
from app.services.common import get_user_or_404, record_event
from app.utils.numbering import insert_with_code

logger = logging.getLogger(__name__)


# ── Farms ────────────────────────────────────────────────────

async def create_farm(body: FarmCreate, user_id: str, db: AsyncSession) -> Farm:
    farm = Farm(**body.model_dump(), status=FarmStatus.ACTIVE, created_by=user_id)
    db.add(farm)
    await db.flush()
    return farm


async def get_farm(db: AsyncSession, farm_id: str) -> Farm:
    farm = (
        await db.execute(select(Farm).where(Farm.id == farm_id))
    ).scalar_one_or_none()
    if not farm:
        raise ResourceNotFoundError("Farm", farm_id)
    return farm


# ── Inspections ──────────────────────────────────────────────

async def submit_inspection(
    body: InspectionCreate,
    vendor_id: str,
    db: AsyncSession,
) -> FarmInspection:
    farm = await get_farm(db, body.farm_id)
    await get_user_or_404(db, vendor_id)

    farm.status = FarmStatus.INSPECTION_PENDING
    inspection = FarmInspection(
        farm_id=farm.id,
        vendor_id=vendor_id,
        estimated_boxes=body.estimated_boxes,
        inspection_notes=body.inspection_notes,
        gps_latitude=body.gps_latitude,
        gps_longitude=body.gps_longitude,
        gps_accuracy=body.gps_accuracy,
        status=InspectionStatus.PENDING,
    )
    db.add(inspection)
    await db.flush()

    logger.info(
        "Inspection %s submitted for farm %s: %d boxes estimated",
        inspection.id, farm.id, body.estimated_boxes,
    )
    return inspection


def new_batch_from_inspection(
    inspection: FarmInspection,
    batch_code: str,
    created_by: str,
) -> Batch:
    """A fresh batch for an approved inspection, counters at their starting values."""
    estimate = inspection.estimated_boxes
    return Batch(
        batch_code=batch_code,
        inspection_id=inspection.id,
        farm_id=inspection.farm_id,
        vendor_id=inspection.vendor_id,
        status=BatchStatus.CREATED,
        estimated_boxes=estimate,
        allocated_boxes=estimate,
        remaining_boxes=estimate,
        harvested_boxes=0,
        actual_boxes=0,
        dispatched_boxes=0,
        gate_pass_remaining=0,
        start_date=date.today(),
        created_by=created_by,
    )


async def decide_inspection(
    db: AsyncSession,
    inspection_id: str,
    approved: bool,
    rejection_reason: str | None,
    approver_id: str,
) -> dict:
    """Approve (creating the batch) or reject a pending inspection.

    Returns:
        {"outcome": "approved" | "rejected", "inspection": FarmInspection,
         "batch": Batch | None}
    """
    inspection = (
        await db.execute(
            select(FarmInspection)
            .where(FarmInspection.id == inspection_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
    ).scalar_one_or_none()
    if not inspection:
        raise ResourceNotFoundError("Inspection", inspection_id)
    await get_user_or_404(db, approver_id)

    if inspection.status != InspectionStatus.PENDING:
        raise BusinessLogicError(
            f"Inspection was already {inspection.status.value}.",
            error_code="INSPECTION_ALREADY_DECIDED",
        )

    farm = await get_farm(db, inspection.farm_id)
    if not approved:
        inspection.status = InspectionStatus.REJECTED
        inspection.rejection_reason = rejection_reason
        farm.status = FarmStatus.INSPECTION_REJECTED
        await db.flush()
        logger.info("Inspection %s rejected: %s", inspection.id, rejection_reason)
        return {"outcome": "rejected", "inspection": inspection, "batch": None}

    inspection.status = InspectionStatus.APPROVED
    inspection.approved_by = approver_id
    inspection.approved_at = datetime.utcnow()
    farm.status = FarmStatus.READY_FOR_HARVEST

    batch = await insert_with_code(
        db, "batch",
        lambda code: new_batch_from_inspection(inspection, code, approver_id),
    )
    record_event(
        db, batch, "created", approver_id,
        {
            "inspection_id": inspection.id,
            "estimated_boxes": batch.estimated_boxes,
            "allocated_boxes": batch.allocated_boxes,
        },
    )
    await db.flush()

    logger.info(
        "Inspection %s approved; created batch %s with %d boxes",
        inspection.id, batch.batch_code, batch.estimated_boxes,
    )
    return {"outcome": "approved", "inspection": inspection, "batch": batch}
