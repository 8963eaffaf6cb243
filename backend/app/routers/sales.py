"""Sales router — invoiced sales of completed batches.

Endpoints:
    POST   /api/sales                           Sell a completed batch (allocates the invoice number)
    GET    /api/sales                           All sales, latest first
    GET    /api/sales/{sale_id}                 Sale detail
    GET    /api/sales/invoice/{invoice_number}  Sale by invoice number
    GET    /api/sales/batch/{batch_id}          Sales of a batch
    PUT    /api/sales/{sale_id}/payment         Record a payment / set payment status
"""

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import require_permission
from app.database import get_db
from app.models.user import User
from app.schemas.sales import SaleCreate, SaleOut, SalePayment
from app.services.notifications import publish
from app.services.sales import (
    create_sale,
    get_sale,
    get_sale_by_invoice,
    list_batch_sales,
    list_sales,
    record_payment,
)
from app.utils.activity import log_activity
from app.utils.cache import invalidate_on_commit

router = APIRouter()


@router.post("", response_model=SaleOut, status_code=status.HTTP_201_CREATED)
async def sell_batch(
    body: SaleCreate,
    background: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("sales.write")),
):
    """Create the sale of a COMPLETED batch; 422 if the batch is not sellable."""
    sale = await create_sale(body, user_id=user.id, db=db)
    await invalidate_on_commit(db, "costs:*")

    await log_activity(
        db, user,
        action="sold",
        entity_type="sale",
        entity_id=sale.id,
        entity_code=sale.invoice_number,
        summary=(
            f"Invoice {sale.invoice_number}: {sale.total_boxes} boxes to {sale.buyer_name}, "
            f"{sale.grand_total} {sale.currency}"
        ),
    )
    background.add_task(publish, "sale.created", {
        "sale_id": sale.id,
        "invoice_number": sale.invoice_number,
        "batch_id": sale.batch_id,
        "grand_total": str(sale.grand_total),
    })
    return sale


@router.get("", response_model=list[SaleOut])
async def all_sales(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("sales.read")),
):
    return await list_sales(db)


@router.get("/invoice/{invoice_number}", response_model=SaleOut)
async def sale_by_invoice(
    invoice_number: str,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("sales.read")),
):
    return await get_sale_by_invoice(db, invoice_number)


@router.get("/batch/{batch_id}", response_model=list[SaleOut])
async def sales_for_batch(
    batch_id: str,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("sales.read")),
):
    return await list_batch_sales(db, batch_id)


@router.get("/{sale_id}", response_model=SaleOut)
async def sale_detail(
    sale_id: str,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("sales.read")),
):
    return await get_sale(db, sale_id)


@router.put("/{sale_id}/payment", response_model=SaleOut)
async def update_payment(
    sale_id: str,
    body: SalePayment,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("sales.write")),
):
    sale = await record_payment(db, sale_id, body)
    await log_activity(
        db, user,
        action="payment_recorded",
        entity_type="sale",
        entity_id=sale.id,
        entity_code=sale.invoice_number,
        summary=(
            f"{sale.invoice_number}: paid {sale.paid_amount} of {sale.grand_total} "
            f"({sale.payment_status.value})"
        ),
    )
    return sale
