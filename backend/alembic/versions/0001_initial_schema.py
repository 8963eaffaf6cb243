"""Initial schema — farms, inspections, batches and box accounting.

Revision ID: 0001
Revises: (none)
Create Date: 2026-10-19

Run with:
    alembic upgrade head
"""

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa

ROLE_NAMES = ("SUPER_ADMIN", "MANAGER", "VENDOR", "STORE_KEEPER")


def _id():
    return sa.Column("id", sa.String(36), primary_key=True)


def _money(name, precision=12, **kw):
    return sa.Column(name, sa.Numeric(precision, 2), server_default="0.00", **kw)


def upgrade() -> None:
    # ── Users ────────────────────────────────────────────────

    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(20)),
        sa.Column("role", sa.Enum(*ROLE_NAMES, name="userrole")),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # ── Farms and inspections ────────────────────────────────

    op.create_table(
        "farms",
        _id(),
        sa.Column("farmer_name", sa.String(255), nullable=False),
        sa.Column("location", sa.String(255)),
        sa.Column("latitude", sa.Float()),
        sa.Column("longitude", sa.Float()),
        sa.Column("contact_number", sa.String(20)),
        sa.Column("total_area", sa.Float()),
        sa.Column("area_unit", sa.String(20), server_default="acres"),
        sa.Column("produce_type", sa.String(50), server_default="banana"),
        sa.Column("status", sa.String(30), server_default="active"),
        sa.Column("created_by", sa.String(36), sa.ForeignKey("users.id")),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_farms_status", "farms", ["status"])

    op.create_table(
        "farm_inspections",
        _id(),
        sa.Column("farm_id", sa.String(36), sa.ForeignKey("farms.id"), nullable=False),
        sa.Column("vendor_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("estimated_boxes", sa.Integer(), nullable=False),
        sa.Column("inspection_notes", sa.Text()),
        sa.Column("gps_latitude", sa.Float()),
        sa.Column("gps_longitude", sa.Float()),
        sa.Column("gps_accuracy", sa.Float()),
        sa.Column("status", sa.String(20), server_default="pending"),
        sa.Column("approved_by", sa.String(36), sa.ForeignKey("users.id")),
        sa.Column("approved_at", sa.DateTime()),
        sa.Column("rejection_reason", sa.Text()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.CheckConstraint("estimated_boxes > 0", name="ck_inspection_estimate_positive"),
    )
    op.create_index("ix_farm_inspections_farm_id", "farm_inspections", ["farm_id"])
    op.create_index("ix_farm_inspections_vendor_id", "farm_inspections", ["vendor_id"])
    op.create_index("ix_farm_inspections_status", "farm_inspections", ["status"])

    # ── Batches ──────────────────────────────────────────────

    op.create_table(
        "batches",
        _id(),
        sa.Column("batch_code", sa.String(50), nullable=False),
        sa.Column("inspection_id", sa.String(36), sa.ForeignKey("farm_inspections.id")),
        sa.Column("farm_id", sa.String(36), sa.ForeignKey("farms.id"), nullable=False),
        sa.Column("vendor_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", sa.String(30), server_default="CREATED"),
        sa.Column("estimated_boxes", sa.Integer(), nullable=False),
        # Counters stay nullable: rows imported from older releases carry NULLs
        sa.Column("allocated_boxes", sa.Integer(), server_default="0"),
        sa.Column("harvested_boxes", sa.Integer(), server_default="0"),
        sa.Column("remaining_boxes", sa.Integer(), server_default="0"),
        sa.Column("actual_boxes", sa.Integer(), server_default="0"),
        sa.Column("dispatched_boxes", sa.Integer(), server_default="0"),
        sa.Column("gate_pass_remaining", sa.Integer(), server_default="0"),
        sa.Column("start_date", sa.Date()),
        sa.Column("end_date", sa.Date()),
        sa.Column("created_by", sa.String(36), sa.ForeignKey("users.id")),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default="1"),
        sa.CheckConstraint("harvested_boxes >= 0", name="ck_batch_harvested_non_negative"),
        sa.CheckConstraint("dispatched_boxes >= 0", name="ck_batch_dispatched_non_negative"),
        sa.CheckConstraint(
            "harvested_boxes <= allocated_boxes", name="ck_batch_harvest_within_allocation"
        ),
        sa.CheckConstraint(
            "dispatched_boxes <= harvested_boxes", name="ck_batch_dispatch_within_harvest"
        ),
    )
    op.create_index("ix_batches_batch_code", "batches", ["batch_code"], unique=True)
    op.create_index("ix_batches_inspection_id", "batches", ["inspection_id"])
    op.create_index("ix_batches_farm_id", "batches", ["farm_id"])
    op.create_index("ix_batches_vendor_id", "batches", ["vendor_id"])
    op.create_index("ix_batches_status", "batches", ["status"])

    op.create_table(
        "batch_history",
        _id(),
        sa.Column("batch_id", sa.String(36), sa.ForeignKey("batches.id"), nullable=False),
        sa.Column("event_type", sa.String(50), nullable=False),
        sa.Column("event_data", sa.JSON()),
        sa.Column("notes", sa.Text()),
        sa.Column("recorded_by", sa.String(36)),
        sa.Column("recorded_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_batch_history_batch_id", "batch_history", ["batch_id"])
    op.create_index("ix_batch_history_event_type", "batch_history", ["event_type"])
    op.create_index("ix_batch_history_recorded_at", "batch_history", ["recorded_at"])

    # ── Harvest and dispatch ─────────────────────────────────

    op.create_table(
        "daily_harvest_reports",
        _id(),
        sa.Column("batch_id", sa.String(36), sa.ForeignKey("batches.id"), nullable=False),
        sa.Column("report_date", sa.Date(), nullable=False),
        sa.Column("boxes_packed", sa.Integer(), nullable=False),
        sa.Column("boxes_wasted", sa.Integer(), server_default="0"),
        sa.Column("labor_count", sa.Integer(), server_default="0"),
        sa.Column("notes", sa.Text()),
        sa.Column("created_by", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.CheckConstraint("boxes_packed >= 0", name="ck_report_packed_non_negative"),
        sa.CheckConstraint("boxes_wasted >= 0", name="ck_report_wasted_non_negative"),
    )
    op.create_index("ix_daily_harvest_reports_batch_id", "daily_harvest_reports", ["batch_id"])
    op.create_index(
        "ix_daily_harvest_reports_report_date", "daily_harvest_reports", ["report_date"]
    )

    op.create_table(
        "gate_passes",
        _id(),
        sa.Column("batch_id", sa.String(36), sa.ForeignKey("batches.id"), nullable=False),
        sa.Column("gate_pass_no", sa.String(50), nullable=False),
        sa.Column("truck_number", sa.String(30), nullable=False),
        sa.Column("driver_name", sa.String(100)),
        sa.Column("driver_phone", sa.String(20)),
        sa.Column("total_boxes", sa.Integer(), nullable=False),
        sa.Column("dispatch_date", sa.DateTime(), nullable=False),
        sa.Column("notes", sa.Text()),
        sa.Column("created_by", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("received_boxes", sa.Integer()),
        sa.Column("received_at", sa.DateTime()),
        sa.Column("received_by", sa.String(36), sa.ForeignKey("users.id")),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.CheckConstraint("total_boxes > 0", name="ck_gate_pass_total_positive"),
        sa.CheckConstraint("received_boxes >= 0", name="ck_gate_pass_received_non_negative"),
    )
    op.create_index("ix_gate_passes_batch_id", "gate_passes", ["batch_id"])
    op.create_index("ix_gate_passes_gate_pass_no", "gate_passes", ["gate_pass_no"], unique=True)
    op.create_index("ix_gate_passes_dispatch_date", "gate_passes", ["dispatch_date"])

    # ── Inventory ────────────────────────────────────────────

    op.create_table(
        "inventory_items",
        _id(),
        sa.Column("item_name", sa.String(255), nullable=False),
        sa.Column("item_code", sa.String(50), nullable=False),
        sa.Column("category", sa.String(20), nullable=False),
        sa.Column("unit_of_measure", sa.String(20), server_default="pcs"),
        _money("unit_cost", precision=10),
        sa.Column("description", sa.Text()),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_inventory_items_item_code", "inventory_items", ["item_code"], unique=True)

    op.create_table(
        "inventory_stock",
        _id(),
        sa.Column(
            "item_id", sa.String(36), sa.ForeignKey("inventory_items.id"),
            nullable=False, unique=True,
        ),
        sa.Column("total_quantity", sa.Integer(), server_default="0"),
        sa.Column("available_quantity", sa.Integer(), server_default="0"),
        sa.Column("reserved_quantity", sa.Integer(), server_default="0"),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.CheckConstraint("available_quantity >= 0", name="ck_stock_available_non_negative"),
        sa.CheckConstraint("reserved_quantity >= 0", name="ck_stock_reserved_non_negative"),
    )

    op.create_table(
        "inventory_allocations",
        _id(),
        sa.Column("batch_id", sa.String(36), sa.ForeignKey("batches.id"), nullable=False),
        sa.Column("item_id", sa.String(36), sa.ForeignKey("inventory_items.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("notes", sa.Text()),
        sa.Column("allocated_by", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("allocated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.CheckConstraint("quantity > 0", name="ck_allocation_quantity_positive"),
    )
    op.create_index("ix_inventory_allocations_batch_id", "inventory_allocations", ["batch_id"])
    op.create_index("ix_inventory_allocations_item_id", "inventory_allocations", ["item_id"])

    # ── Costs ────────────────────────────────────────────────

    op.create_table(
        "transport_costs",
        _id(),
        sa.Column("batch_id", sa.String(36), sa.ForeignKey("batches.id"), nullable=False),
        sa.Column("cost_type", sa.String(10), nullable=False),
        sa.Column("vendor_name", sa.String(255)),
        sa.Column("vehicle_number", sa.String(30)),
        sa.Column("driver_name", sa.String(100)),
        sa.Column("driver_phone", sa.String(20)),
        sa.Column("distance_km", sa.Float()),
        sa.Column("total_cost", sa.Numeric(12, 2), nullable=False),
        _money("cost_per_box", precision=10),
        sa.Column("notes", sa.Text()),
        sa.Column("created_by", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_transport_costs_batch_id", "transport_costs", ["batch_id"])

    op.create_table(
        "labor_costs",
        _id(),
        sa.Column("report_id", sa.String(36), sa.ForeignKey("daily_harvest_reports.id")),
        sa.Column("batch_id", sa.String(36), sa.ForeignKey("batches.id"), nullable=False),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
        _money("cost_per_box", precision=10),
        sa.Column("payment_status", sa.String(10), server_default="PENDING"),
        _money("paid_amount"),
        sa.Column("notes", sa.Text()),
        sa.Column("created_by", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_labor_costs_report_id", "labor_costs", ["report_id"])
    op.create_index("ix_labor_costs_batch_id", "labor_costs", ["batch_id"])

    op.create_table(
        "batch_costs",
        _id(),
        sa.Column(
            "batch_id", sa.String(36), sa.ForeignKey("batches.id"),
            nullable=False, unique=True,
        ),
        _money("material_cost_total"),
        _money("material_cost_per_box", precision=10),
        _money("outward_transport_cost"),
        _money("outward_transport_per_box", precision=10),
        _money("labor_cost_total"),
        _money("labor_cost_per_box", precision=10),
        _money("inward_transport_cost"),
        _money("inward_transport_per_box", precision=10),
        _money("total_cost"),
        _money("final_cost_per_box", precision=10),
        sa.Column("calculated_at", sa.DateTime(), server_default=sa.func.now()),
    )

    # ── Vendor ledger and audit ──────────────────────────────

    op.create_table(
        "vendor_ledger",
        _id(),
        sa.Column("vendor_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("batch_id", sa.String(36), sa.ForeignKey("batches.id")),
        sa.Column("transaction_type", sa.String(20), nullable=False),
        sa.Column("quantity", sa.Integer(), server_default="0"),
        _money("amount"),
        sa.Column("balance_boxes", sa.Integer(), server_default="0"),
        _money("balance_amount"),
        sa.Column("notes", sa.Text()),
        sa.Column("created_by", sa.String(36)),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_vendor_ledger_vendor_id", "vendor_ledger", ["vendor_id"])
    op.create_index("ix_vendor_ledger_batch_id", "vendor_ledger", ["batch_id"])
    op.create_index("ix_vendor_ledger_transaction_type", "vendor_ledger", ["transaction_type"])
    op.create_index("ix_vendor_ledger_created_at", "vendor_ledger", ["created_at"])

    op.create_table(
        "activity_logs",
        _id(),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("user_name", sa.String(200), nullable=False),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.String(36)),
        sa.Column("entity_code", sa.String(100)),
        sa.Column("summary", sa.Text()),
        sa.Column("details", sa.JSON()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_activity_logs_user_id", "activity_logs", ["user_id"])
    op.create_index("ix_activity_logs_action", "activity_logs", ["action"])
    op.create_index("ix_activity_logs_entity_type", "activity_logs", ["entity_type"])
    op.create_index("ix_activity_logs_created_at", "activity_logs", ["created_at"])


def downgrade() -> None:
    for table in (
        "activity_logs",
        "vendor_ledger",
        "batch_costs",
        "labor_costs",
        "transport_costs",
        "inventory_allocations",
        "inventory_stock",
        "inventory_items",
        "gate_passes",
        "daily_harvest_reports",
        "batch_history",
        "batches",
        "farm_inspections",
        "farms",
        "users",
    ):
        op.drop_table(table)
    sa.Enum(name="userrole").drop(op.get_bind(), checkfirst=True)
