"""picking_engine_schema

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-18 09:12:44.102731

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3f1c2a9d7b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("sku", sa.String(length=128), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("erp_stock_code", sa.String(length=128), nullable=True),
        sa.Column("ecommerce_product_id", sa.String(length=128), nullable=True),
        sa.UniqueConstraint("sku"),
    )

    op.create_table(
        "product_packages",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id", ondelete="CASCADE"), nullable=False),
        sa.Column("barcode", sa.String(length=128), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.UniqueConstraint("barcode"),
    )
    op.create_index("ix_product_packages_product_id", "product_packages", ["product_id"])

    op.create_table(
        "shelves",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("shelf_code", sa.String(length=64), nullable=False),
        sa.Column("shelf_name", sa.String(length=255), nullable=True),
        sa.Column("zone", sa.String(length=32), nullable=True),
        sa.Column("aisle", sa.String(length=32), nullable=True),
        sa.Column("level", sa.String(length=32), nullable=True),
        sa.UniqueConstraint("shelf_code"),
    )

    op.create_table(
        "shelf_assignments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("shelf_id", sa.Integer(), sa.ForeignKey("shelves.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "package_id",
            sa.Integer(),
            sa.ForeignKey("product_packages.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("assigned_date", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("quantity >= 0", name="ck_shelf_assignments_qty_nonneg"),
    )
    op.create_index("ix_shelf_assignments_fifo", "shelf_assignments", ["package_id", "assigned_date"])

    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("order_number", sa.String(length=64), nullable=False),
        sa.Column("customer_code", sa.String(length=64), nullable=True),
        sa.Column("customer_name", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False, server_default=sa.text("'open'")),
        sa.Column(
            "fulfillment_status",
            sa.String(length=32),
            nullable=False,
            server_default=sa.text("'NOT_FULFILLED'"),
        ),
        sa.Column("ecommerce_order_id", sa.String(length=128), nullable=True),
        sa.Column("ecommerce_sync_status", sa.String(length=32), nullable=True),
        sa.Column("ecommerce_sync_error", sa.Text(), nullable=True),
        sa.Column("erp_delivery_note_id", sa.String(length=128), nullable=True),
        sa.Column(
            "erp_delivery_status",
            sa.String(length=32),
            nullable=False,
            server_default=sa.text("'pending'"),
        ),
        sa.Column("erp_delivery_method", sa.String(length=16), nullable=True),
        sa.Column("erp_delivery_error", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("order_number"),
    )
    op.create_index("ix_orders_status_fulfillment", "orders", ["status", "fulfillment_status"])

    op.create_table(
        "order_items",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("sku", sa.String(length=128), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("picked_qty", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.CheckConstraint("picked_qty >= 0 AND picked_qty <= quantity", name="ck_order_items_picked_range"),
    )
    op.create_index("ix_order_items_order_product", "order_items", ["order_id", "product_id"])

    op.create_table(
        "picks",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_picks_order_id", "picks", ["order_id"])

    op.create_table(
        "pick_scans",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("pick_id", sa.Integer(), sa.ForeignKey("picks.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "order_item_id",
            sa.Integer(),
            sa.ForeignKey("order_items.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("package_id", sa.Integer(), sa.ForeignKey("product_packages.id"), nullable=False),
        sa.Column(
            "shelf_assignment_id",
            sa.Integer(),
            sa.ForeignKey("shelf_assignments.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("stock_depleted", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("barcode", sa.String(length=128), nullable=False),
        sa.Column("scanned_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_pick_scans_pick_id", "pick_scans", ["pick_id"])
    op.create_index("ix_pick_scans_item_barcode", "pick_scans", ["order_item_id", "barcode"])

    op.create_table(
        "sync_jobs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("pick_id", sa.Integer(), sa.ForeignKey("picks.id", ondelete="SET NULL"), nullable=True),
        sa.Column("kind", sa.String(length=16), nullable=False),
        sa.Column("target_status", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default=sa.text("'PENDING'")),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("result", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_sync_jobs_status", "sync_jobs", ["status"])
    op.create_index("ix_sync_jobs_order_id", "sync_jobs", ["order_id"])


def downgrade() -> None:
    op.drop_index("ix_sync_jobs_order_id", table_name="sync_jobs")
    op.drop_index("ix_sync_jobs_status", table_name="sync_jobs")
    op.drop_table("sync_jobs")

    op.drop_index("ix_pick_scans_item_barcode", table_name="pick_scans")
    op.drop_index("ix_pick_scans_pick_id", table_name="pick_scans")
    op.drop_table("pick_scans")

    op.drop_index("ix_picks_order_id", table_name="picks")
    op.drop_table("picks")

    op.drop_index("ix_order_items_order_product", table_name="order_items")
    op.drop_table("order_items")

    op.drop_index("ix_orders_status_fulfillment", table_name="orders")
    op.drop_table("orders")

    op.drop_index("ix_shelf_assignments_fifo", table_name="shelf_assignments")
    op.drop_table("shelf_assignments")

    op.drop_table("shelves")

    op.drop_index("ix_product_packages_product_id", table_name="product_packages")
    op.drop_table("product_packages")

    op.drop_table("products")
