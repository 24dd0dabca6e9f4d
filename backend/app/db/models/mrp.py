"""
File: app/db/models/mrp.py
Bills of materials + production orders
"""

from __future__ import annotations

from app.db.base import Base
from app.db.models.common import HasId, HasCreatedAt, HasUpdatedAt
from datetime import date
from decimal import Decimal
from sqlalchemy import String, Date, Integer, Numeric, ForeignKey, JSON, Index, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

# ============= BILL OF MATERIALS (BOM) =============
class MRPBOM(Base, HasId, HasCreatedAt):
    __tablename__ = "mrp_bom"

    tenant_id: Mapped[str] = mapped_column(String(64), default="default", index=True, nullable=False)
    bom_number: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    parent_item_id: Mapped[str] = mapped_column(ForeignKey("inv_item_master.id"), nullable=False, index=True)
    revision: Mapped[str] = mapped_column(String(16), default="A", nullable=False)

    status: Mapped[str] = mapped_column(String(16), default="ACTIVE", nullable=False)  # ACTIVE|DRAFT|OBSOLETE
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    meta: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

class MRPBOMLine(Base, HasId, HasCreatedAt):
    __tablename__ = "mrp_bom_line"

    bom_id: Mapped[str] = mapped_column(ForeignKey("mrp_bom.id"), nullable=False, index=True)
    line_number: Mapped[int] = mapped_column(Integer, nullable=False)

    # Component
    component_item_id: Mapped[str] = mapped_column(ForeignKey("inv_item_master.id"), nullable=False, index=True)

    # Quantity per one unit of the parent item
    quantity_per: Mapped[Decimal] = mapped_column(Numeric(18, 6), nullable=False)
    uom: Mapped[str] = mapped_column(String(16), default="EA", nullable=False)

    meta: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

    bom: Mapped[MRPBOM] = relationship()

Index("ix_mrp_bom_line_bom_line", MRPBOMLine.bom_id, MRPBOMLine.line_number)

# ============= PRODUCTION ORDERS =============
class MRPProductionOrder(Base, HasId, HasCreatedAt, HasUpdatedAt):
    __tablename__ = "mrp_production_order"

    tenant_id: Mapped[str] = mapped_column(String(64), default="default", index=True, nullable=False)
    production_order_number: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    # Product
    item_id: Mapped[str] = mapped_column(ForeignKey("inv_item_master.id"), nullable=False, index=True)
    ordered_quantity: Mapped[Decimal] = mapped_column(Numeric(18, 6), nullable=False)

    # Schedule
    planned_start_date: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)
    planned_end_date: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)

    # Source
    sales_order_id: Mapped[str | None] = mapped_column(ForeignKey("sales_order.id"), nullable=True, index=True)

    # Priority: LOW|NORMAL|HIGH|URGENT, or a numeric 1-10 from older imports
    priority: Mapped[str] = mapped_column(String(16), default="NORMAL", nullable=False)

    status: Mapped[str] = mapped_column(String(16), default="DRAFT", nullable=False, index=True)  # DRAFT|PLANNED|IN_PROGRESS|COMPLETED|CANCELLED
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    meta: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

Index("ix_mrp_production_order_status_end", MRPProductionOrder.status, MRPProductionOrder.planned_end_date)

# ============================================================================
# Backward compatibility exports (API import stability)
# ============================================================================
BOM = MRPBOM
BOMLine = MRPBOMLine
ProductionOrder = MRPProductionOrder
