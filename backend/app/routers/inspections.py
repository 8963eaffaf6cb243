"""Farm and inspection router.

Endpoints:
    POST   /api/farms                                  Register a farm
    GET    /api/farms/{farm_id}                        Farm detail
    POST   /api/inspections                            Submit a farm inspection
    POST   /api/inspections/{inspection_id}/decision   Approve (creates the batch) or reject
"""

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import require_permission
from app.database import get_db
from app.models.user import User
from app.schemas.batch import BatchOut
from app.schemas.inspection import (
    FarmCreate,
    FarmOut,
    InspectionCreate,
    InspectionDecisionOut,
    InspectionDecisionRequest,
    InspectionOut,
)
from app.services.inspection import create_farm, decide_inspection, get_farm, submit_inspection
from app.services.notifications import publish
from app.utils.activity import log_activity

farms_router = APIRouter()
router = APIRouter()


# ── Farms ────────────────────────────────────────────────────

@farms_router.post("", response_model=FarmOut, status_code=status.HTTP_201_CREATED)
async def register_farm(
    body: FarmCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("farm.write")),
):
    farm = await create_farm(body, user_id=user.id, db=db)
    await log_activity(
        db, user,
        action="created",
        entity_type="farm",
        entity_id=farm.id,
        summary=f"Registered farm of {farm.farmer_name}",
    )
    return farm


@farms_router.get("/{farm_id}", response_model=FarmOut)
async def farm_detail(
    farm_id: str,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("farm.read")),
):
    return await get_farm(db, farm_id)


# ── Inspections ──────────────────────────────────────────────

@router.post("", response_model=InspectionOut, status_code=status.HTTP_201_CREATED)
async def inspect_farm(
    body: InspectionCreate,
    background: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("inspection.write")),
):
    inspection = await submit_inspection(body, vendor_id=user.id, db=db)
    background.add_task(publish, "inspection.submitted", {
        "inspection_id": inspection.id,
        "farm_id": inspection.farm_id,
        "vendor_id": inspection.vendor_id,
        "estimated_boxes": inspection.estimated_boxes,
    })
    return inspection


@router.post("/{inspection_id}/decision", response_model=InspectionDecisionOut)
async def decide(
    inspection_id: str,
    body: InspectionDecisionRequest,
    background: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("inspection.approve")),
):
    """Approve or reject a pending inspection.

    Both outcomes return 200 and commit; ``outcome`` says which happened and
    ``batch`` carries the new batch on approval.
    """
    result = await decide_inspection(
        db, inspection_id, body.approved, body.rejection_reason, user.id
    )
    inspection = result["inspection"]
    batch = result["batch"]

    if batch is not None:
        await log_activity(
            db, user,
            action="approved",
            entity_type="inspection",
            entity_id=inspection.id,
            entity_code=batch.batch_code,
            summary=f"Approved inspection; created {batch.batch_code} ({batch.estimated_boxes} boxes)",
        )
        background.add_task(publish, "inspection.approved", {
            "inspection_id": inspection.id,
            "batch_id": batch.id,
            "batch_code": batch.batch_code,
            "vendor_id": inspection.vendor_id,
        })
    else:
        await log_activity(
            db, user,
            action="rejected",
            entity_type="inspection",
            entity_id=inspection.id,
            summary=f"Rejected inspection: {inspection.rejection_reason}",
        )
        background.add_task(publish, "inspection.rejected", {
            "inspection_id": inspection.id,
            "vendor_id": inspection.vendor_id,
            "reason": inspection.rejection_reason,
        })

    return InspectionDecisionOut(
        outcome=result["outcome"],
        inspection=InspectionOut.model_validate(inspection),
        batch=BatchOut.model_validate(batch) if batch is not None else None,
    )
