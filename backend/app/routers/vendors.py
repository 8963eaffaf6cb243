"""Vendor ledger router (admin and manager only).

Endpoints:
    GET    /api/vendors/{vendor_id}/balance               Box and labor balances
    GET    /api/vendors/{vendor_id}/ledger                Ledger entries, newest first
    POST   /api/vendors/{vendor_id}/box-returns           Boxes returned by the vendor
    POST   /api/vendors/{vendor_id}/damaged-boxes         Boxes reported damaged
    POST   /api/vendors/{vendor_id}/labor-costs           Labor owed to the vendor
    POST   /api/vendors/{vendor_id}/labor-payments        Labor paid to the vendor
    POST   /api/vendors/{vendor_id}/reconcile/{batch_id}  Issued vs received vs wasted; books returns and damage
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import require_role
from app.database import get_db
from app.models.user import User, UserRole
from app.schemas.vendor_ledger import (
    BatchReconciliationOut,
    BoxMovement,
    LaborAmount,
    LedgerEntryOut,
    VendorBalanceOut,
)
from app.services import vendor_ledger as ledger
from app.utils.activity import log_activity

router = APIRouter()

_ledger_admin = require_role(UserRole.SUPER_ADMIN, UserRole.MANAGER)


@router.get("/{vendor_id}/balance", response_model=VendorBalanceOut)
async def vendor_balance(
    vendor_id: str,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(_ledger_admin),
):
    return await ledger.calculate_vendor_balance(db, vendor_id)


@router.get("/{vendor_id}/ledger", response_model=list[LedgerEntryOut])
async def vendor_ledger_entries(
    vendor_id: str,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(_ledger_admin),
):
    return await ledger.vendor_ledger_details(db, vendor_id)


async def _log_posting(db: AsyncSession, user: User, entry) -> None:
    await log_activity(
        db, user,
        action="recorded",
        entity_type="vendor_ledger",
        entity_id=entry.id,
        summary=(
            f"{entry.transaction_type.value} for vendor {entry.vendor_id}: "
            f"qty={entry.quantity} amount={entry.amount}"
        ),
    )


@router.post("/{vendor_id}/box-returns", response_model=LedgerEntryOut,
             status_code=status.HTTP_201_CREATED)
async def box_return(
    vendor_id: str,
    body: BoxMovement,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(_ledger_admin),
):
    entry = await ledger.record_box_return(
        db, vendor_id, body.quantity, user.id, batch_id=body.batch_id, notes=body.notes
    )
    await _log_posting(db, user, entry)
    return entry


@router.post("/{vendor_id}/damaged-boxes", response_model=LedgerEntryOut,
             status_code=status.HTTP_201_CREATED)
async def damaged_boxes(
    vendor_id: str,
    body: BoxMovement,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(_ledger_admin),
):
    entry = await ledger.record_damaged_boxes(
        db, vendor_id, body.quantity, user.id, batch_id=body.batch_id, notes=body.notes
    )
    await _log_posting(db, user, entry)
    return entry


@router.post("/{vendor_id}/labor-costs", response_model=LedgerEntryOut,
             status_code=status.HTTP_201_CREATED)
async def labor_cost(
    vendor_id: str,
    body: LaborAmount,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(_ledger_admin),
):
    entry = await ledger.record_labor_cost(
        db, vendor_id, body.amount, user.id, batch_id=body.batch_id, notes=body.notes
    )
    await _log_posting(db, user, entry)
    return entry


@router.post("/{vendor_id}/labor-payments", response_model=LedgerEntryOut,
             status_code=status.HTTP_201_CREATED)
async def labor_payment(
    vendor_id: str,
    body: LaborAmount,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(_ledger_admin),
):
    entry = await ledger.record_labor_payment(
        db, vendor_id, body.amount, user.id, batch_id=body.batch_id, notes=body.notes
    )
    await _log_posting(db, user, entry)
    return entry


@router.post("/{vendor_id}/reconcile/{batch_id}", response_model=BatchReconciliationOut)
async def reconcile_batch(
    vendor_id: str,
    batch_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(_ledger_admin),
):
    result = await ledger.reconcile_batch_inventory(db, batch_id, vendor_id, user.id)

    await log_activity(
        db, user,
        action="reconciled",
        entity_type="batch",
        entity_id=result["batch_id"],
        entity_code=result["batch_code"],
        summary=(
            f"Reconciled {result['batch_code']}: {result['boxes_unaccounted']} boxes unaccounted, "
            f"{result['returns_posted']} returned and {result['damaged_posted']} damaged booked"
        ),
    )
    return result
