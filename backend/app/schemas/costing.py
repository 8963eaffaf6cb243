"""Pydantic schemas for batch cost snapshots.

Money fields are ``Decimal`` and serialize as strings ("5.00") so no
rounding happens on the way to the client.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel


class BatchCostOut(BaseModel):
    batch_id: str
    batch_code: str
    box_count: int
    material_cost_total: Decimal
    material_cost_per_box: Decimal
    outward_transport_cost: Decimal
    outward_transport_per_box: Decimal
    labor_cost_total: Decimal
    labor_cost_per_box: Decimal
    inward_transport_cost: Decimal
    inward_transport_per_box: Decimal
    total_cost: Decimal
    final_cost_per_box: Decimal
    calculated_at: datetime | None = None
