"""Cost roll-up engine.

``recalculate_costs`` rebuilds a batch's single BatchCost snapshot from the
raw cost facts (inventory allocations, transport legs, labor) every time
it is called.  It keeps no memory of the previous snapshot, so running it
twice with unchanged inputs yields identical figures, and any collaborator
that changes a cost fact can simply call it again.

Per-box figures divide by ``actual_boxes`` when the batch has harvested
anything, else by ``estimated_boxes``; they are rounded half-up to two
places and are zero when there is nothing to divide by.

Callers that mutate cost facts call this inside their own transaction so
the snapshot commits or rolls back together with the fact.
"""

import logging
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.middleware.exceptions import ResourceNotFoundError
from app.models.batch import Batch
from app.models.batch_cost import BatchCost
from app.models.costs import LaborCost, TransportCost, TransportType
from app.models.inventory import InventoryAllocation, InventoryItem
from app.services.common import get_batch_or_404

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    """Coerce a DB aggregate (Decimal, float, int or None) to a 2dp Decimal."""
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def per_box(total: Decimal, box_count: int) -> Decimal:
    if box_count <= 0:
        return Decimal("0.00")
    return (total / Decimal(box_count)).quantize(CENTS, rounding=ROUND_HALF_UP)


def cost_basis_boxes(batch: Batch) -> int:
    """Boxes the batch's costs are spread over: actual if any, else estimated."""
    if batch.actual_boxes and batch.actual_boxes > 0:
        return batch.actual_boxes
    if batch.estimated_boxes and batch.estimated_boxes > 0:
        return batch.estimated_boxes
    return 0


async def _material_total(db: AsyncSession, batch_id: str) -> Decimal:
    result = await db.execute(
        select(func.sum(InventoryAllocation.quantity * InventoryItem.unit_cost))
        .join(InventoryItem, InventoryAllocation.item_id == InventoryItem.id)
        .where(InventoryAllocation.batch_id == batch_id)
    )
    return to_money(result.scalar())


async def _transport_total(db: AsyncSession, batch_id: str, cost_type: TransportType) -> Decimal:
    result = await db.execute(
        select(func.sum(TransportCost.total_cost)).where(
            TransportCost.batch_id == batch_id,
            TransportCost.cost_type == cost_type,
        )
    )
    return to_money(result.scalar())


async def _labor_total(db: AsyncSession, batch_id: str) -> Decimal:
    result = await db.execute(
        select(func.sum(LaborCost.total_amount)).where(LaborCost.batch_id == batch_id)
    )
    return to_money(result.scalar())


async def recalculate_costs(db: AsyncSession, batch_id: str) -> BatchCost:
    """Recompute and overwrite the BatchCost snapshot for ``batch_id``."""
    batch = await get_batch_or_404(db, batch_id)

    material = await _material_total(db, batch_id)
    outward = await _transport_total(db, batch_id, TransportType.OUTWARD)
    inward = await _transport_total(db, batch_id, TransportType.INWARD)
    labor = await _labor_total(db, batch_id)

    box_count = cost_basis_boxes(batch)
    total = material + outward + labor + inward

    cost = (
        await db.execute(select(BatchCost).where(BatchCost.batch_id == batch_id))
    ).scalar_one_or_none()
    if cost is None:
        cost = BatchCost(batch_id=batch_id)
        db.add(cost)

    cost.material_cost_total = material
    cost.material_cost_per_box = per_box(material, box_count)
    cost.outward_transport_cost = outward
    cost.outward_transport_per_box = per_box(outward, box_count)
    cost.labor_cost_total = labor
    cost.labor_cost_per_box = per_box(labor, box_count)
    cost.inward_transport_cost = inward
    cost.inward_transport_per_box = per_box(inward, box_count)
    cost.total_cost = total
    cost.final_cost_per_box = per_box(total, box_count)
    cost.calculated_at = datetime.utcnow()

    await db.flush()

    logger.info(
        "Recalculated costs for batch %s: total=%s per_box=%s over %d boxes",
        batch.batch_code, total, cost.final_cost_per_box, box_count,
    )
    return cost


# ── Reads ────────────────────────────────────────────────────

def empty_cost(batch_id: str) -> BatchCost:
    """Unsaved all-zero snapshot for a batch that has never been rolled up."""
    zero = Decimal("0.00")
    return BatchCost(
        batch_id=batch_id,
        material_cost_total=zero,
        material_cost_per_box=zero,
        outward_transport_cost=zero,
        outward_transport_per_box=zero,
        labor_cost_total=zero,
        labor_cost_per_box=zero,
        inward_transport_cost=zero,
        inward_transport_per_box=zero,
        total_cost=zero,
        final_cost_per_box=zero,
        calculated_at=None,
    )


async def get_batch_cost(db: AsyncSession, batch_id: str) -> tuple[Batch, BatchCost]:
    batch = await get_batch_or_404(db, batch_id)
    cost = (
        await db.execute(select(BatchCost).where(BatchCost.batch_id == batch_id))
    ).scalar_one_or_none()
    return batch, cost or empty_cost(batch_id)


async def get_batch_cost_by_code(db: AsyncSession, batch_code: str) -> tuple[Batch, BatchCost]:
    batch = (
        await db.execute(select(Batch).where(Batch.batch_code == batch_code))
    ).scalar_one_or_none()
    if not batch:
        raise ResourceNotFoundError("Batch", batch_code)
    return await get_batch_cost(db, batch.id)


async def list_batch_costs(db: AsyncSession) -> list[tuple[Batch, BatchCost]]:
    rows = await db.execute(
        select(Batch, BatchCost)
        .join(BatchCost, BatchCost.batch_id == Batch.id)
        .order_by(BatchCost.calculated_at.desc())
    )
    return [(batch, cost) for batch, cost in rows.all()]
