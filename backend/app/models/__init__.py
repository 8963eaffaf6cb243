"""Aggregate model imports for Alembic auto-detection and metadata.create_all."""

# Identity / upstream
from app.models.user import User, UserRole  # noqa: F401
from app.models.farm import Farm, FarmInspection, FarmStatus, InspectionStatus  # noqa: F401

# Core operational
from app.models.batch import Batch, BatchStatus  # noqa: F401
from app.models.batch_history import BatchHistory  # noqa: F401
from app.models.harvest_report import DailyHarvestReport  # noqa: F401
from app.models.gate_pass import GatePass  # noqa: F401

# Costing / inventory
from app.models.batch_cost import BatchCost  # noqa: F401
from app.models.costs import LaborCost, PaymentStatus, TransportCost, TransportType  # noqa: F401
from app.models.inventory import (  # noqa: F401
    InventoryAllocation, InventoryItem, InventoryStock, ItemCategory,
)
from app.models.vendor_ledger import LedgerTransaction, VendorLedger  # noqa: F401

# Sales
from app.models.sale import Sale, SaleType  # noqa: F401

# Audit
from app.models.activity_log import ActivityLog  # noqa: F401
