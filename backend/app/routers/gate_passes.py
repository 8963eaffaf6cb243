"""Gate pass router — dispatch and warehouse receipt.

Endpoints:
    POST   /api/gate-passes                       Dispatch boxes under a new gate pass
    POST   /api/gate-passes/{gate_pass_id}/receive Record boxes received (once)
    GET    /api/gate-passes/batch/{batch_id}      Gate passes of a batch
    GET    /api/gate-passes/pending               Not yet received, newest first
    GET    /api/gate-passes/reports?date=         Dispatched on a date
"""

from datetime import date

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import require_permission
from app.database import get_db
from app.models.user import User
from app.schemas.dispatch import GatePassCreate, GatePassOut, GatePassReceive
from app.services.dispatch import (
    create_gate_pass,
    list_batch_gate_passes,
    list_gate_passes_by_date,
    list_pending_gate_passes,
    receive_gate_pass,
)
from app.services.notifications import publish
from app.utils.activity import log_activity

router = APIRouter()


@router.post("", response_model=GatePassOut, status_code=status.HTTP_201_CREATED)
async def dispatch(
    body: GatePassCreate,
    background: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("dispatch.write")),
):
    """Create a gate pass; rejected with 422 if it exceeds the dispatchable boxes."""
    gate_pass, batch = await create_gate_pass(body, user_id=user.id, db=db)

    background.add_task(publish, "gate_pass.created", {
        "gate_pass_id": gate_pass.id,
        "gate_pass_no": gate_pass.gate_pass_no,
        "batch_id": batch.id,
        "total_boxes": gate_pass.total_boxes,
    })
    return gate_pass


@router.post("/{gate_pass_id}/receive", response_model=GatePassOut)
async def receive(
    gate_pass_id: str,
    body: GatePassReceive,
    background: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("dispatch.receive")),
):
    gate_pass = await receive_gate_pass(db, gate_pass_id, body.received_boxes, user.id)

    await log_activity(
        db, user,
        action="received",
        entity_type="gate_pass",
        entity_id=gate_pass.id,
        entity_code=gate_pass.gate_pass_no,
        summary=(
            f"Received {gate_pass.received_boxes}/{gate_pass.total_boxes} boxes "
            f"on {gate_pass.gate_pass_no}"
        ),
    )
    background.add_task(publish, "gate_pass.received", {
        "gate_pass_id": gate_pass.id,
        "gate_pass_no": gate_pass.gate_pass_no,
        "received_boxes": gate_pass.received_boxes,
        "shortage": gate_pass.shortage,
    })
    return gate_pass


@router.get("/batch/{batch_id}", response_model=list[GatePassOut])
async def gate_passes_for_batch(
    batch_id: str,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("dispatch.read")),
):
    return await list_batch_gate_passes(db, batch_id)


@router.get("/pending", response_model=list[GatePassOut])
async def pending_gate_passes(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("dispatch.receive")),
):
    return await list_pending_gate_passes(db)


@router.get("/reports", response_model=list[GatePassOut])
async def gate_passes_for_date(
    dispatch_date: date | None = Query(None, alias="date"),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("dispatch.read")),
):
    return await list_gate_passes_by_date(db, dispatch_date or date.today())
