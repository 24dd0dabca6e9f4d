"""logistics core tables

Revision ID: 0001_logistics_core
Revises:
Create Date: 2026-10-19T00:00:00Z
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_logistics_core"
down_revision = None
branch_labels = None
depends_on = None


def _base():
    return [
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def _tenant():
    return sa.Column("tenant_id", sa.String(length=64), nullable=False, server_default="default", index=True)


def _updated():
    return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())


def _meta():
    return sa.Column("meta", sa.JSON(), nullable=False)


def upgrade():
    # Item master + stock
    op.create_table(
        "inv_item_master",
        *_base(),
        _tenant(),
        sa.Column("item_code", sa.String(length=64), nullable=False, index=True),
        sa.Column("description", sa.String(length=512), nullable=False),
        sa.Column("item_type", sa.String(length=32), nullable=False, server_default="PRODUCT", index=True),
        sa.Column("base_uom", sa.String(length=16), nullable=False, server_default="EA"),
        sa.Column("minimum_quantity", sa.Numeric(18, 6), nullable=False, server_default="0"),
        sa.Column("reorder_point", sa.Numeric(18, 6), nullable=True),
        sa.Column("standard_cost", sa.Numeric(18, 6), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("notes", sa.Text(), nullable=True),
        _meta(),
    )
    op.create_index("ix_inv_item_tenant_code", "inv_item_master", ["tenant_id", "item_code"], unique=True)

    op.create_table(
        "wms_location",
        *_base(),
        _tenant(),
        sa.Column("code", sa.String(length=64), nullable=False, index=True),
        sa.Column("type", sa.String(length=32), nullable=False, server_default="BIN"),
        _meta(),
    )
    op.create_index("ix_wms_location_tenant_code", "wms_location", ["tenant_id", "code"], unique=True)

    op.create_table(
        "wms_inventory_balance",
        *_base(),
        _tenant(),
        sa.Column("item_id", sa.String(length=36), sa.ForeignKey("inv_item_master.id"), nullable=False, index=True),
        sa.Column("location_id", sa.String(length=36), sa.ForeignKey("wms_location.id"), nullable=False, index=True),
        sa.Column("state", sa.String(length=24), nullable=False, server_default="AVAILABLE", index=True),
        sa.Column("qty", sa.Numeric(18, 6), nullable=False, server_default="0"),
        _meta(),
    )
    op.create_index("ix_balance_item_loc_state", "wms_inventory_balance", ["item_id", "location_id", "state"])

    # Purchasing
    op.create_table(
        "purchase_vendor",
        *_base(),
        _tenant(),
        sa.Column("vendor_code", sa.String(length=32), nullable=False, index=True),
        sa.Column("vendor_name", sa.String(length=256), nullable=False, index=True),
        sa.Column("lead_time_days", sa.Integer(), nullable=False, server_default="14"),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="ACTIVE"),
        _meta(),
    )

    op.create_table(
        "purchase_order",
        *_base(),
        _updated(),
        _tenant(),
        sa.Column("po_number", sa.String(length=64), nullable=False, index=True),
        sa.Column("vendor_id", sa.String(length=36), sa.ForeignKey("purchase_vendor.id"), nullable=False, index=True),
        sa.Column("po_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=24), nullable=False, server_default="DRAFT", index=True),
        sa.Column("delivery_status", sa.String(length=24), nullable=False, server_default="PENDING"),
        sa.Column("estimated_delivery_date", sa.Date(), nullable=True, index=True),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="USD"),
        sa.Column("total_amount", sa.Numeric(18, 2), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text(), nullable=True),
        _meta(),
    )
    op.create_index("ix_purchase_order_status_eta", "purchase_order", ["status", "estimated_delivery_date"])

    op.create_table(
        "purchase_order_line",
        *_base(),
        sa.Column("purchase_order_id", sa.String(length=36), sa.ForeignKey("purchase_order.id"), nullable=False, index=True),
        sa.Column("line_number", sa.Integer(), nullable=False),
        sa.Column("item_id", sa.String(length=36), sa.ForeignKey("inv_item_master.id"), nullable=False, index=True),
        sa.Column("quantity", sa.Numeric(18, 6), nullable=False),
        sa.Column("uom", sa.String(length=16), nullable=False, server_default="EA"),
        sa.Column("unit_price", sa.Numeric(18, 6), nullable=False, server_default="0"),
        _meta(),
    )
    op.create_index("ix_purchase_order_line_po_line", "purchase_order_line", ["purchase_order_id", "line_number"])

    op.create_table(
        "purchase_goods_receipt",
        *_base(),
        _tenant(),
        sa.Column("receipt_number", sa.String(length=64), nullable=False, index=True),
        sa.Column("purchase_order_id", sa.String(length=36), sa.ForeignKey("purchase_order.id"), nullable=False, index=True),
        sa.Column("receipt_date", sa.Date(), nullable=False),
        _meta(),
    )

    op.create_table(
        "purchase_goods_receipt_line",
        *_base(),
        sa.Column("goods_receipt_id", sa.String(length=36), sa.ForeignKey("purchase_goods_receipt.id"), nullable=False, index=True),
        sa.Column("purchase_order_line_id", sa.String(length=36), sa.ForeignKey("purchase_order_line.id"), nullable=False, index=True),
        sa.Column("received_quantity", sa.Numeric(18, 6), nullable=False),
        _meta(),
    )

    # Sales
    op.create_table(
        "sales_customer",
        *_base(),
        _tenant(),
        sa.Column("customer_code", sa.String(length=32), nullable=False, index=True),
        sa.Column("customer_name", sa.String(length=256), nullable=True, index=True),
        sa.Column("first_name", sa.String(length=128), nullable=True),
        sa.Column("last_name", sa.String(length=128), nullable=True),
        _meta(),
    )

    op.create_table(
        "sales_order",
        *_base(),
        _updated(),
        _tenant(),
        sa.Column("order_number", sa.String(length=64), nullable=False, index=True),
        sa.Column("customer_id", sa.String(length=36), sa.ForeignKey("sales_customer.id"), nullable=True, index=True),
        sa.Column("order_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=24), nullable=False, server_default="PENDING", index=True),
        sa.Column("priority", sa.String(length=16), nullable=False, server_default="NORMAL", index=True),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="USD"),
        sa.Column("total_amount", sa.Numeric(18, 2), nullable=False, server_default="0"),
        sa.Column("billing_name", sa.String(length=256), nullable=True),
        sa.Column("shipping_address_line1", sa.String(length=256), nullable=True),
        sa.Column("shipping_city", sa.String(length=128), nullable=True),
        sa.Column("shipping_postal_code", sa.String(length=32), nullable=True),
        sa.Column("shipping_country", sa.String(length=3), nullable=True),
        sa.Column("shipping_method", sa.String(length=64), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _meta(),
    )
    op.create_index("ix_sales_order_status_priority", "sales_order", ["status", "priority", "created_at"])

    op.create_table(
        "sales_order_line",
        *_base(),
        sa.Column("order_id", sa.String(length=36), sa.ForeignKey("sales_order.id"), nullable=False, index=True),
        sa.Column("line_number", sa.Integer(), nullable=False),
        sa.Column("item_id", sa.String(length=36), sa.ForeignKey("inv_item_master.id"), nullable=True, index=True),
        sa.Column("description", sa.String(length=512), nullable=True),
        sa.Column("quantity", sa.Numeric(18, 6), nullable=False),
        sa.Column("unit_price", sa.Numeric(18, 6), nullable=False, server_default="0"),
        _meta(),
    )
    op.create_index("ix_sales_order_line_order_line", "sales_order_line", ["order_id", "line_number"])

    # Manufacturing
    op.create_table(
        "mrp_bom",
        *_base(),
        _tenant(),
        sa.Column("bom_number", sa.String(length=64), nullable=False, index=True),
        sa.Column("parent_item_id", sa.String(length=36), sa.ForeignKey("inv_item_master.id"), nullable=False, index=True),
        sa.Column("revision", sa.String(length=16), nullable=False, server_default="A"),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="ACTIVE"),
        sa.Column("notes", sa.Text(), nullable=True),
        _meta(),
    )

    op.create_table(
        "mrp_bom_line",
        *_base(),
        sa.Column("bom_id", sa.String(length=36), sa.ForeignKey("mrp_bom.id"), nullable=False, index=True),
        sa.Column("line_number", sa.Integer(), nullable=False),
        sa.Column("component_item_id", sa.String(length=36), sa.ForeignKey("inv_item_master.id"), nullable=False, index=True),
        sa.Column("quantity_per", sa.Numeric(18, 6), nullable=False),
        sa.Column("uom", sa.String(length=16), nullable=False, server_default="EA"),
        _meta(),
    )
    op.create_index("ix_mrp_bom_line_bom_line", "mrp_bom_line", ["bom_id", "line_number"])

    op.create_table(
        "mrp_production_order",
        *_base(),
        _updated(),
        _tenant(),
        sa.Column("production_order_number", sa.String(length=64), nullable=False, index=True),
        sa.Column("item_id", sa.String(length=36), sa.ForeignKey("inv_item_master.id"), nullable=False, index=True),
        sa.Column("ordered_quantity", sa.Numeric(18, 6), nullable=False),
        sa.Column("planned_start_date", sa.Date(), nullable=True, index=True),
        sa.Column("planned_end_date", sa.Date(), nullable=True, index=True),
        sa.Column("sales_order_id", sa.String(length=36), sa.ForeignKey("sales_order.id"), nullable=True, index=True),
        sa.Column("priority", sa.String(length=16), nullable=False, server_default="NORMAL"),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="DRAFT", index=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _meta(),
    )
    op.create_index("ix_mrp_production_order_status_end", "mrp_production_order", ["status", "planned_end_date"])


def downgrade():
    for table in (
        "mrp_production_order",
        "mrp_bom_line",
        "mrp_bom",
        "sales_order_line",
        "sales_order",
        "sales_customer",
        "purchase_goods_receipt_line",
        "purchase_goods_receipt",
        "purchase_order_line",
        "purchase_order",
        "purchase_vendor",
        "wms_inventory_balance",
        "wms_location",
        "inv_item_master",
    ):
        op.drop_table(table)
