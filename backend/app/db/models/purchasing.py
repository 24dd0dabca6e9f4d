"""
MODULE: PURCHASING & PROCUREMENT
Vendors, purchase orders and goods receipts (partial receiving)
"""

from __future__ import annotations

from app.db.base import Base
from app.db.models.common import HasId, HasCreatedAt, HasUpdatedAt
from datetime import date
from decimal import Decimal
from sqlalchemy import String, Date, Integer, Numeric, ForeignKey, JSON, Index, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

# ============= VENDOR MANAGEMENT =============

class Vendor(Base, HasId, HasCreatedAt):
    """Vendor/Supplier master"""
    __tablename__ = "purchase_vendor"

    tenant_id: Mapped[str] = mapped_column(String(64), default="default", index=True, nullable=False)
    vendor_code: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    vendor_name: Mapped[str] = mapped_column(String(256), nullable=False, index=True)
    lead_time_days: Mapped[int] = mapped_column(Integer, default=14, nullable=False)

    status: Mapped[str] = mapped_column(String(16), default="ACTIVE", nullable=False)
    # ACTIVE|INACTIVE|BLOCKED
    meta: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)


# ============= PURCHASE ORDERS =============

class PurchaseOrder(Base, HasId, HasCreatedAt, HasUpdatedAt):
    """Purchase order header"""
    __tablename__ = "purchase_order"

    tenant_id: Mapped[str] = mapped_column(String(64), default="default", index=True, nullable=False)
    po_number: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    vendor_id: Mapped[str] = mapped_column(ForeignKey("purchase_vendor.id"), nullable=False, index=True)
    po_date: Mapped[date] = mapped_column(Date, nullable=False)

    status: Mapped[str] = mapped_column(String(24), default="DRAFT", nullable=False, index=True)
    # DRAFT|SENT|CONFIRMED|PARTIALLY_RECEIVED|RECEIVED|CANCELLED

    # Delivery tracking
    delivery_status: Mapped[str] = mapped_column(String(24), default="PENDING", nullable=False)
    # PENDING|SHIPPED|IN_TRANSIT|DELAYED|DELIVERED
    estimated_delivery_date: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)

    currency: Mapped[str] = mapped_column(String(3), default="USD", nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0, nullable=False)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    meta: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

    vendor: Mapped[Vendor] = relationship()

Index("ix_purchase_order_status_eta", PurchaseOrder.status, PurchaseOrder.estimated_delivery_date)


class PurchaseOrderLine(Base, HasId, HasCreatedAt):
    """Purchase order line items"""
    __tablename__ = "purchase_order_line"

    purchase_order_id: Mapped[str] = mapped_column(ForeignKey("purchase_order.id"), nullable=False, index=True)
    line_number: Mapped[int] = mapped_column(Integer, nullable=False)

    item_id: Mapped[str] = mapped_column(ForeignKey("inv_item_master.id"), nullable=False, index=True)
    quantity: Mapped[Decimal] = mapped_column(Numeric(18, 6), nullable=False)
    uom: Mapped[str] = mapped_column(String(16), default="EA", nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(18, 6), default=0, nullable=False)

    meta: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

    purchase_order: Mapped[PurchaseOrder] = relationship()

Index("ix_purchase_order_line_po_line", PurchaseOrderLine.purchase_order_id, PurchaseOrderLine.line_number)


# ============= RECEIVING =============

class GoodsReceipt(Base, HasId, HasCreatedAt):
    """Goods receipt against a purchase order (one per delivery)"""
    __tablename__ = "purchase_goods_receipt"

    tenant_id: Mapped[str] = mapped_column(String(64), default="default", index=True, nullable=False)
    receipt_number: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    purchase_order_id: Mapped[str] = mapped_column(ForeignKey("purchase_order.id"), nullable=False, index=True)
    receipt_date: Mapped[date] = mapped_column(Date, nullable=False)
    meta: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)


class GoodsReceiptLine(Base, HasId, HasCreatedAt):
    __tablename__ = "purchase_goods_receipt_line"

    goods_receipt_id: Mapped[str] = mapped_column(ForeignKey("purchase_goods_receipt.id"), nullable=False, index=True)
    purchase_order_line_id: Mapped[str] = mapped_column(ForeignKey("purchase_order_line.id"), nullable=False, index=True)
    received_quantity: Mapped[Decimal] = mapped_column(Numeric(18, 6), nullable=False)
    meta: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

    goods_receipt: Mapped[GoodsReceipt] = relationship()
