"""Vendor ledger service.

Tracks, per vendor:
  - boxes issued (allocations of BOX items), returned, and reported damaged;
    pending boxes = issued - returned - damaged
  - labor cost owed and labor payments made;
    pending labor cost = cost - payments

Each posting locks the vendor's user row so two postings for the same
vendor cannot both pass a balance check, then writes a ledger row carrying
the balances after the transaction.

``reconcile_batch_inventory`` compares the boxes issued to a batch with
what reached the warehouse on its gate passes plus what was wasted.  While
boxes are still unaccounted for, it books the received boxes as returned
and the wasted ones as damaged, so the vendor's pending balance follows
the gate-pass receipts.  Only the part not already booked against the
batch is posted, so reconciling twice posts nothing new.
"""

import logging
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.middleware.exceptions import BusinessLogicError, ResourceNotFoundError
from app.models.gate_pass import GatePass
from app.models.harvest_report import DailyHarvestReport
from app.models.inventory import InventoryAllocation, InventoryItem, ItemCategory
from app.models.user import User
from app.models.vendor_ledger import LedgerTransaction, VendorLedger
from app.services.common import get_batch_or_404
from app.services.costing import to_money

logger = logging.getLogger(__name__)


async def _lock_vendor(db: AsyncSession, vendor_id: str) -> User:
    vendor = (
        await db.execute(select(User).where(User.id == vendor_id).with_for_update())
    ).scalar_one_or_none()
    if not vendor:
        raise ResourceNotFoundError("Vendor", vendor_id)
    return vendor


async def _sum_quantity(db: AsyncSession, vendor_id: str, kind: LedgerTransaction) -> int:
    result = await db.execute(
        select(func.coalesce(func.sum(VendorLedger.quantity), 0)).where(
            VendorLedger.vendor_id == vendor_id,
            VendorLedger.transaction_type == kind,
        )
    )
    return int(result.scalar() or 0)


async def _sum_amount(db: AsyncSession, vendor_id: str, kind: LedgerTransaction) -> Decimal:
    result = await db.execute(
        select(func.sum(VendorLedger.amount)).where(
            VendorLedger.vendor_id == vendor_id,
            VendorLedger.transaction_type == kind,
        )
    )
    return to_money(result.scalar())


async def _pending_boxes(db: AsyncSession, vendor_id: str) -> int:
    issued = await _sum_quantity(db, vendor_id, LedgerTransaction.BOX_ISSUED)
    returned = await _sum_quantity(db, vendor_id, LedgerTransaction.BOX_RETURNED)
    damaged = await _sum_quantity(db, vendor_id, LedgerTransaction.BOX_DAMAGED)
    return issued - returned - damaged


async def _pending_labor(db: AsyncSession, vendor_id: str) -> Decimal:
    cost = await _sum_amount(db, vendor_id, LedgerTransaction.LABOR_COST)
    paid = await _sum_amount(db, vendor_id, LedgerTransaction.LABOR_PAYMENT)
    return cost - paid


async def _post(
    db: AsyncSession,
    vendor_id: str,
    kind: LedgerTransaction,
    user_id: str | None,
    *,
    quantity: int = 0,
    amount: Decimal = Decimal("0.00"),
    batch_id: str | None = None,
    notes: str | None = None,
) -> VendorLedger:
    await db.flush()
    entry = VendorLedger(
        vendor_id=vendor_id,
        batch_id=batch_id,
        transaction_type=kind,
        quantity=quantity,
        amount=amount,
        notes=notes,
        created_by=user_id,
    )
    db.add(entry)
    await db.flush()

    entry.balance_boxes = await _pending_boxes(db, vendor_id)
    entry.balance_amount = await _pending_labor(db, vendor_id)
    await db.flush()

    logger.info(
        "Vendor %s ledger %s: qty=%d amount=%s (boxes pending %d, labor pending %s)",
        vendor_id, kind.value, quantity, amount, entry.balance_boxes, entry.balance_amount,
    )
    return entry


# ── Boxes ────────────────────────────────────────────────────

async def record_box_issuance(
    db: AsyncSession,
    vendor_id: str,
    quantity: int,
    user_id: str | None,
    batch_id: str | None = None,
    notes: str | None = None,
) -> VendorLedger:
    await _lock_vendor(db, vendor_id)
    return await _post(
        db, vendor_id, LedgerTransaction.BOX_ISSUED, user_id,
        quantity=quantity, batch_id=batch_id, notes=notes,
    )


async def record_box_return(
    db: AsyncSession,
    vendor_id: str,
    quantity: int,
    user_id: str | None,
    batch_id: str | None = None,
    notes: str | None = None,
) -> VendorLedger:
    await _lock_vendor(db, vendor_id)
    pending = await _pending_boxes(db, vendor_id)
    if quantity > pending:
        raise BusinessLogicError(
            f"Cannot return {quantity} boxes. Vendor only has {pending} boxes pending.",
            error_code="INSUFFICIENT_BOXES",
            details={"pending_boxes": pending, "requested": quantity},
        )
    return await _post(
        db, vendor_id, LedgerTransaction.BOX_RETURNED, user_id,
        quantity=quantity, batch_id=batch_id, notes=notes,
    )


async def record_damaged_boxes(
    db: AsyncSession,
    vendor_id: str,
    quantity: int,
    user_id: str | None,
    batch_id: str | None = None,
    notes: str | None = None,
) -> VendorLedger:
    await _lock_vendor(db, vendor_id)
    pending = await _pending_boxes(db, vendor_id)
    if quantity > pending:
        raise BusinessLogicError(
            f"Cannot mark {quantity} boxes damaged. Vendor only has {pending} boxes pending.",
            error_code="INSUFFICIENT_BOXES",
            details={"pending_boxes": pending, "requested": quantity},
        )
    return await _post(
        db, vendor_id, LedgerTransaction.BOX_DAMAGED, user_id,
        quantity=quantity, batch_id=batch_id, notes=notes,
    )


# ── Labor money ──────────────────────────────────────────────

async def record_labor_cost(
    db: AsyncSession,
    vendor_id: str,
    amount: Decimal,
    user_id: str | None,
    batch_id: str | None = None,
    notes: str | None = None,
) -> VendorLedger:
    await _lock_vendor(db, vendor_id)
    return await _post(
        db, vendor_id, LedgerTransaction.LABOR_COST, user_id,
        amount=to_money(amount), batch_id=batch_id, notes=notes,
    )


async def record_labor_payment(
    db: AsyncSession,
    vendor_id: str,
    amount: Decimal,
    user_id: str | None,
    batch_id: str | None = None,
    notes: str | None = None,
) -> VendorLedger:
    await _lock_vendor(db, vendor_id)
    amount = to_money(amount)
    pending = await _pending_labor(db, vendor_id)
    if amount > pending:
        raise BusinessLogicError(
            f"Payment amount ({amount:.2f}) exceeds pending labor cost ({pending:.2f})",
            error_code="OVERPAYMENT",
            details={"pending_labor_cost": str(pending), "amount": str(amount)},
        )
    return await _post(
        db, vendor_id, LedgerTransaction.LABOR_PAYMENT, user_id,
        amount=amount, batch_id=batch_id, notes=notes,
    )


# ── Reads ────────────────────────────────────────────────────

async def calculate_vendor_balance(db: AsyncSession, vendor_id: str) -> dict:
    vendor = (
        await db.execute(select(User).where(User.id == vendor_id))
    ).scalar_one_or_none()
    if not vendor:
        raise ResourceNotFoundError("Vendor", vendor_id)

    issued = await _sum_quantity(db, vendor_id, LedgerTransaction.BOX_ISSUED)
    returned = await _sum_quantity(db, vendor_id, LedgerTransaction.BOX_RETURNED)
    damaged = await _sum_quantity(db, vendor_id, LedgerTransaction.BOX_DAMAGED)
    return {
        "vendor_id": vendor.id,
        "vendor_name": vendor.full_name,
        "boxes_issued": issued,
        "boxes_returned": returned,
        "boxes_damaged": damaged,
        "pending_boxes": issued - returned - damaged,
        "pending_labor_cost": await _pending_labor(db, vendor_id),
    }


async def vendor_ledger_details(db: AsyncSession, vendor_id: str) -> list[VendorLedger]:
    result = await db.execute(
        select(VendorLedger)
        .where(VendorLedger.vendor_id == vendor_id)
        .order_by(VendorLedger.created_at.desc())
    )
    return list(result.scalars().all())


# ── Reconciliation ───────────────────────────────────────

async def _booked_for_batch(
    db: AsyncSession, vendor_id: str, batch_id: str, kind: LedgerTransaction
) -> int:
    result = await db.execute(
        select(func.coalesce(func.sum(VendorLedger.quantity), 0)).where(
            VendorLedger.vendor_id == vendor_id,
            VendorLedger.batch_id == batch_id,
            VendorLedger.transaction_type == kind,
        )
    )
    return int(result.scalar() or 0)


async def reconcile_batch_inventory(
    db: AsyncSession,
    batch_id: str,
    vendor_id: str,
    user_id: str | None,
) -> dict:
    """Boxes issued to a batch vs. boxes received on its gate passes plus waste.

    Raises:
        ResourceNotFoundError if the batch does not exist.
        BusinessLogicError (VENDOR_BATCH_MISMATCH) if the batch belongs to
        another vendor.
        BusinessLogicError (INSUFFICIENT_BOXES) if the postings would take
        the vendor's pending boxes below zero.
    """
    batch = await get_batch_or_404(db, batch_id)
    if batch.vendor_id != vendor_id:
        raise BusinessLogicError(
            f"Batch {batch.batch_code} does not belong to vendor {vendor_id}",
            error_code="VENDOR_BATCH_MISMATCH",
        )

    allocated = int((
        await db.execute(
            select(func.coalesce(func.sum(InventoryAllocation.quantity), 0))
            .join(InventoryItem, InventoryAllocation.item_id == InventoryItem.id)
            .where(
                InventoryAllocation.batch_id == batch_id,
                InventoryItem.category == ItemCategory.BOX,
            )
        )
    ).scalar() or 0)
    received = int((
        await db.execute(
            select(func.coalesce(func.sum(GatePass.received_boxes), 0)).where(
                GatePass.batch_id == batch_id
            )
        )
    ).scalar() or 0)
    wasted = int((
        await db.execute(
            select(func.coalesce(func.sum(DailyHarvestReport.boxes_wasted), 0)).where(
                DailyHarvestReport.batch_id == batch_id
            )
        )
    ).scalar() or 0)

    unaccounted = allocated - received - wasted
    logger.info(
        "Batch %s inventory reconciliation: allocated %d, received %d, wasted %d, pending %d",
        batch.batch_code, allocated, received, wasted, unaccounted,
    )

    returns_posted = damaged_posted = 0
    if unaccounted > 0:
        returns_posted = received - await _booked_for_batch(
            db, vendor_id, batch_id, LedgerTransaction.BOX_RETURNED
        )
        if returns_posted > 0:
            await record_box_return(
                db, vendor_id, returns_posted, user_id, batch_id=batch_id,
                notes=f"Auto-reconciliation: {returns_posted} boxes received",
            )
        damaged_posted = wasted - await _booked_for_batch(
            db, vendor_id, batch_id, LedgerTransaction.BOX_DAMAGED
        )
        if damaged_posted > 0:
            await record_damaged_boxes(
                db, vendor_id, damaged_posted, user_id, batch_id=batch_id,
                notes=f"Auto-reconciliation: {damaged_posted} boxes damaged",
            )
    elif unaccounted < 0:
        logger.warning(
            "Batch %s accounts for %d more boxes than were issued",
            batch.batch_code, -unaccounted,
        )

    return {
        "batch_id": batch.id,
        "batch_code": batch.batch_code,
        "boxes_allocated": allocated,
        "boxes_received": received,
        "boxes_wasted": wasted,
        "boxes_unaccounted": unaccounted,
        "is_balanced": unaccounted == 0,
        "returns_posted": max(returns_posted, 0),
        "damaged_posted": max(damaged_posted, 0),
    }
