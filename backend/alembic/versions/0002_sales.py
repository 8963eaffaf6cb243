"""Sales — invoiced sales of completed batches.

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-19
"""

revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa


def upgrade() -> None:
    op.create_table(
        "sales",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("batch_id", sa.String(36), sa.ForeignKey("batches.id"), nullable=False),
        sa.Column("invoice_number", sa.String(50), nullable=False),
        sa.Column("buyer_name", sa.String(255), nullable=False),
        sa.Column("buyer_contact", sa.String(255)),
        sa.Column("buyer_address", sa.Text()),
        sa.Column("sale_type", sa.String(20), nullable=False),
        sa.Column("total_boxes", sa.Integer(), nullable=False),
        sa.Column("price_per_box", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(3), server_default="INR"),
        sa.Column("exchange_rate", sa.Numeric(10, 4), server_default="1"),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("tax_percentage", sa.Numeric(5, 2), server_default="0.00"),
        sa.Column("tax_amount", sa.Numeric(12, 2), server_default="0.00"),
        sa.Column("grand_total", sa.Numeric(12, 2), nullable=False),
        sa.Column("payment_status", sa.String(20), server_default="PENDING"),
        sa.Column("paid_amount", sa.Numeric(12, 2), server_default="0.00"),
        sa.Column("sale_date", sa.Date(), nullable=False),
        sa.Column("created_by", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.CheckConstraint("total_boxes > 0", name="ck_sale_boxes_positive"),
    )
    op.create_index("ix_sales_batch_id", "sales", ["batch_id"])
    op.create_index("ix_sales_invoice_number", "sales", ["invoice_number"], unique=True)
    op.create_index("ix_sales_sale_date", "sales", ["sale_date"])


def downgrade() -> None:
    op.drop_table("sales")
