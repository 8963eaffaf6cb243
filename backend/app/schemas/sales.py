"""Pydantic schemas for sales, invoices and the profitability report."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from app.models.costs import PaymentStatus
from app.models.sale import SaleType


class SaleCreate(BaseModel):
    """Payload for POST /api/sales."""
    batch_id: str
    buyer_name: str = Field(..., min_length=1, max_length=255)
    buyer_contact: str | None = None
    buyer_address: str | None = None
    sale_type: SaleType
    total_boxes: int = Field(..., gt=0)
    price_per_box: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    currency: str = Field("INR", min_length=3, max_length=3)
    exchange_rate: Decimal | None = Field(None, gt=0, max_digits=10, decimal_places=4)
    tax_percentage: Decimal | None = Field(None, ge=0, le=100, max_digits=5, decimal_places=2)
    sale_date: date


class SalePayment(BaseModel):
    """Payload for PUT /api/sales/{sale_id}/payment.

    ``amount`` is added to what has been paid so far.  Without an explicit
    ``payment_status`` the status follows the paid amount.
    """
    payment_status: PaymentStatus | None = None
    amount: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)


class SaleOut(BaseModel):
    id: str
    batch_id: str
    invoice_number: str
    buyer_name: str
    buyer_contact: str | None
    buyer_address: str | None
    sale_type: SaleType
    total_boxes: int
    price_per_box: Decimal
    currency: str
    exchange_rate: Decimal
    total_amount: Decimal
    tax_percentage: Decimal
    tax_amount: Decimal
    grand_total: Decimal
    payment_status: PaymentStatus
    paid_amount: Decimal
    sale_date: date
    created_by: str
    created_at: datetime

    model_config = {"from_attributes": True}


class ProfitabilityRow(BaseModel):
    sale_id: str
    invoice_number: str
    batch_id: str
    batch_code: str
    farm_name: str
    buyer_name: str
    sale_date: date
    total_boxes: int
    cost_per_box: Decimal
    sale_price_per_box: Decimal
    total_cost: Decimal
    total_revenue: Decimal
    net_profit: Decimal
    profit_margin: Decimal
