"""Sales and profitability service.

A completed batch is sold once, under a sequential invoice number:
  - the batch must be COMPLETED
  - a batch carries at most one sale
  - the quantity sold cannot exceed the boxes actually harvested
  - tax is a percentage of the line total, rounded half-up to 2dp

The batch row is locked while the sale is written, so two concurrent
sales of the same batch serialize and the second sees the first.

``profitability_report`` joins every sale to its batch's cost snapshot:
revenue is the sale's grand total, cost is the snapshot's final cost per
box times the boxes sold.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.middleware.exceptions import BusinessLogicError, ResourceNotFoundError
from app.models.batch import Batch, BatchStatus
from app.models.batch_cost import BatchCost
from app.models.costs import PaymentStatus
from app.models.farm import Farm
from app.models.sale import Sale
from app.schemas.sales import ProfitabilityRow, SaleCreate, SalePayment
from app.services.batch_status import summed_harvest
from app.services.common import get_batch_or_404, get_user_or_404, lock_batch, record_event
from app.services.costing import CENTS, to_money
from app.utils.numbering import insert_with_code

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


def tax_for(total: Decimal, percentage: Decimal | None) -> Decimal:
    if not percentage or percentage <= 0:
        return Decimal("0.00")
    return (total * percentage / HUNDRED).quantize(CENTS, rounding=ROUND_HALF_UP)


def payment_status_for(paid: Decimal, grand_total: Decimal) -> PaymentStatus:
    if paid >= grand_total:
        return PaymentStatus.PAID
    if paid > 0:
        return PaymentStatus.PARTIAL
    return PaymentStatus.PENDING


async def create_sale(body: SaleCreate, user_id: str, db: AsyncSession) -> Sale:
    """Sell a completed batch and allocate its invoice number.

    Raises:
        ResourceNotFoundError if the batch or user does not exist.
        BusinessLogicError (BATCH_NOT_COMPLETED, SALE_ALREADY_EXISTS,
        SALE_EXCEEDS_HARVEST) when a guard fails.
    """
    batch = await lock_batch(db, body.batch_id)
    await get_user_or_404(db, user_id)

    if batch.status != BatchStatus.COMPLETED:
        raise BusinessLogicError(
            "Batch must be completed before creating a sale",
            error_code="BATCH_NOT_COMPLETED",
            details={"status": batch.status.value},
        )

    existing = (
        await db.execute(select(func.count(Sale.id)).where(Sale.batch_id == batch.id))
    ).scalar() or 0
    if existing:
        raise BusinessLogicError(
            f"Sale already exists for batch {batch.batch_code}",
            error_code="SALE_ALREADY_EXISTS",
        )

    actual = await summed_harvest(db, batch.id)
    if body.total_boxes > actual:
        raise BusinessLogicError(
            f"Sale quantity cannot exceed actual boxes harvested ({actual})",
            error_code="SALE_EXCEEDS_HARVEST",
            details={"actual_boxes": actual, "requested_boxes": body.total_boxes},
        )

    total = to_money(body.price_per_box * body.total_boxes)
    tax = tax_for(total, body.tax_percentage)

    def _build(code: str) -> Sale:
        return Sale(
            batch_id=batch.id,
            invoice_number=code,
            buyer_name=body.buyer_name,
            buyer_contact=body.buyer_contact,
            buyer_address=body.buyer_address,
            sale_type=body.sale_type,
            total_boxes=body.total_boxes,
            price_per_box=to_money(body.price_per_box),
            currency=body.currency.upper(),
            exchange_rate=body.exchange_rate or Decimal("1"),
            total_amount=total,
            tax_percentage=body.tax_percentage or Decimal("0.00"),
            tax_amount=tax,
            grand_total=total + tax,
            payment_status=PaymentStatus.PENDING,
            paid_amount=Decimal("0.00"),
            sale_date=body.sale_date,
            created_by=user_id,
        )

    sale = await insert_with_code(db, "sale", _build)

    record_event(
        db, batch, "sale", user_id,
        {
            "sale_id": sale.id,
            "invoice_number": sale.invoice_number,
            "total_boxes": sale.total_boxes,
            "grand_total": str(sale.grand_total),
        },
    )
    await db.flush()

    logger.info(
        "Sale %s for batch %s: %d boxes at %s, grand total %s %s",
        sale.invoice_number, batch.batch_code, sale.total_boxes,
        sale.price_per_box, sale.grand_total, sale.currency,
    )
    return sale


async def record_payment(
    db: AsyncSession,
    sale_id: str,
    body: SalePayment,
) -> Sale:
    """Add a payment to a sale and move its payment status.

    Raises:
        ResourceNotFoundError if the sale does not exist.
        BusinessLogicError (OVERPAYMENT) if the payments would exceed the
        grand total.
    """
    sale = (
        await db.execute(
            select(Sale)
            .where(Sale.id == sale_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
    ).scalar_one_or_none()
    if not sale:
        raise ResourceNotFoundError("Sale", sale_id)

    if body.amount is not None:
        paid = to_money(sale.paid_amount) + to_money(body.amount)
        if paid > sale.grand_total:
            raise BusinessLogicError(
                f"Payment of {to_money(body.amount):.2f} exceeds the outstanding "
                f"{sale.grand_total - to_money(sale.paid_amount):.2f} on {sale.invoice_number}",
                error_code="OVERPAYMENT",
            )
        sale.paid_amount = paid

    sale.payment_status = body.payment_status or payment_status_for(
        to_money(sale.paid_amount), sale.grand_total
    )
    await db.flush()

    logger.info(
        "Sale %s payment: paid %s of %s, status %s",
        sale.invoice_number, sale.paid_amount, sale.grand_total, sale.payment_status.value,
    )
    return sale


# ── Reads ────────────────────────────────────────────────────

async def list_sales(db: AsyncSession) -> list[Sale]:
    result = await db.execute(
        select(Sale).order_by(Sale.sale_date.desc(), Sale.created_at.desc())
    )
    return list(result.scalars().all())


async def get_sale(db: AsyncSession, sale_id: str) -> Sale:
    sale = (
        await db.execute(select(Sale).where(Sale.id == sale_id))
    ).scalar_one_or_none()
    if not sale:
        raise ResourceNotFoundError("Sale", sale_id)
    return sale


async def get_sale_by_invoice(db: AsyncSession, invoice_number: str) -> Sale:
    sale = (
        await db.execute(select(Sale).where(Sale.invoice_number == invoice_number))
    ).scalar_one_or_none()
    if not sale:
        raise ResourceNotFoundError("Sale", invoice_number)
    return sale


async def list_batch_sales(db: AsyncSession, batch_id: str) -> list[Sale]:
    await get_batch_or_404(db, batch_id)
    result = await db.execute(
        select(Sale).where(Sale.batch_id == batch_id).order_by(Sale.created_at)
    )
    return list(result.scalars().all())


async def profitability_report(db: AsyncSession) -> list[ProfitabilityRow]:
    """One row per sale: revenue against the batch's cost per box."""
    result = await db.execute(
        select(Sale, Batch, Farm.farmer_name, BatchCost.final_cost_per_box)
        .join(Batch, Sale.batch_id == Batch.id)
        .outerjoin(Farm, Batch.farm_id == Farm.id)
        .outerjoin(BatchCost, BatchCost.batch_id == Sale.batch_id)
        .order_by(Sale.sale_date.desc(), Sale.created_at.desc())
    )

    rows = []
    for sale, batch, farm_name, final_cost_per_box in result.all():
        cost_per_box = to_money(final_cost_per_box)
        total_cost = to_money(cost_per_box * sale.total_boxes)
        revenue = to_money(sale.grand_total)
        net = revenue - total_cost
        margin = (
            (net * HUNDRED / revenue).quantize(CENTS, rounding=ROUND_HALF_UP)
            if revenue > 0 else Decimal("0.00")
        )
        rows.append(ProfitabilityRow(
            sale_id=sale.id,
            invoice_number=sale.invoice_number,
            batch_id=batch.id,
            batch_code=batch.batch_code,
            farm_name=farm_name or "N/A",
            buyer_name=sale.buyer_name,
            sale_date=sale.sale_date,
            total_boxes=sale.total_boxes,
            cost_per_box=cost_per_box,
            sale_price_per_box=sale.price_per_box,
            total_cost=total_cost,
            total_revenue=revenue,
            net_profit=net,
            profit_margin=margin,
        ))
    return rows
