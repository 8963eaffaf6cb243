"""Cost router — batch cost snapshots and transport legs.

Endpoints:
    GET    /api/costs                                 Every batch's snapshot (latest first)
    GET    /api/costs/batch/{batch_id}                Snapshot for a batch
    GET    /api/costs/batch/code/{batch_code}         Snapshot by batch code
    POST   /api/costs/batch/{batch_id}/recalculate    Force a roll-up
    POST   /api/transport                             Record a transport leg (transport_router)
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import require_permission
from app.config import settings
from app.database import get_db
from app.models.batch import Batch
from app.models.batch_cost import BatchCost
from app.models.user import User
from app.schemas.costing import BatchCostOut
from app.schemas.harvest import TransportCostOut, TransportCostRequest
from app.services.common import get_batch_or_404
from app.services.costing import (
    cost_basis_boxes,
    get_batch_cost,
    get_batch_cost_by_code,
    list_batch_costs,
    recalculate_costs,
)
from app.services.harvest import add_transport_cost
from app.utils.activity import log_activity
from app.utils.cache import cached, invalidate_on_commit

router = APIRouter()
transport_router = APIRouter()


def cost_view(batch: Batch, cost: BatchCost) -> BatchCostOut:
    return BatchCostOut(
        batch_id=batch.id,
        batch_code=batch.batch_code,
        box_count=cost_basis_boxes(batch),
        material_cost_total=cost.material_cost_total,
        material_cost_per_box=cost.material_cost_per_box,
        outward_transport_cost=cost.outward_transport_cost,
        outward_transport_per_box=cost.outward_transport_per_box,
        labor_cost_total=cost.labor_cost_total,
        labor_cost_per_box=cost.labor_cost_per_box,
        inward_transport_cost=cost.inward_transport_cost,
        inward_transport_per_box=cost.inward_transport_per_box,
        total_cost=cost.total_cost,
        final_cost_per_box=cost.final_cost_per_box,
        calculated_at=cost.calculated_at,
    )


@router.get("", response_model=list[BatchCostOut])
@cached(ttl=settings.cost_cache_ttl, prefix="costs")
async def all_batch_costs(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("costs.write")),
):
    return [cost_view(batch, cost) for batch, cost in await list_batch_costs(db)]


@router.get("/batch/{batch_id}", response_model=BatchCostOut)
@cached(ttl=settings.cost_cache_ttl, prefix="costs")
async def batch_cost(
    batch_id: str,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("costs.read")),
):
    batch, cost = await get_batch_cost(db, batch_id)
    return cost_view(batch, cost)


@router.get("/batch/code/{batch_code}", response_model=BatchCostOut)
@cached(ttl=settings.cost_cache_ttl, prefix="costs")
async def batch_cost_by_code(
    batch_code: str,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("costs.read")),
):
    batch, cost = await get_batch_cost_by_code(db, batch_code)
    return cost_view(batch, cost)


@router.post("/batch/{batch_id}/recalculate", response_model=BatchCostOut)
async def recalculate(
    batch_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("costs.write")),
):
    cost = await recalculate_costs(db, batch_id)
    batch = await get_batch_or_404(db, batch_id)

    await invalidate_on_commit(db, "costs:*")
    await log_activity(
        db, user,
        action="recalculated",
        entity_type="batch",
        entity_id=batch.id,
        entity_code=batch.batch_code,
        summary=f"Recalculated costs for {batch.batch_code}: {cost.final_cost_per_box}/box",
    )
    return cost_view(batch, cost)


@transport_router.post("", response_model=TransportCostOut, status_code=status.HTTP_201_CREATED)
async def record_transport(
    body: TransportCostRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("transport.write")),
):
    transport = await add_transport_cost(body, user_id=user.id, db=db)
    await invalidate_on_commit(db, "costs:*")
    return transport
