"""
MODULE: INVENTORY MANAGEMENT
Item master (finished products and raw materials) with the planning
thresholds the logistics engine reads: minimum stock and reorder point.
"""

from __future__ import annotations

from app.db.base import Base
from app.db.models.common import HasId, HasCreatedAt
from decimal import Decimal
from sqlalchemy import String, Numeric, JSON, Boolean, Index, Text
from sqlalchemy.orm import Mapped, mapped_column

# ============= ITEM MASTER =============

class InventoryItem(Base, HasId, HasCreatedAt):
    """
    Catalog item. Products are sold on sales orders and built by production
    orders; materials are bought on purchase orders and consumed by BOMs.
    """
    __tablename__ = "inv_item_master"

    tenant_id: Mapped[str] = mapped_column(String(64), default="default", index=True, nullable=False)
    item_code: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    description: Mapped[str] = mapped_column(String(512), nullable=False)

    item_type: Mapped[str] = mapped_column(String(32), default="PRODUCT", nullable=False, index=True)
    # PRODUCT|MATERIAL

    base_uom: Mapped[str] = mapped_column(String(16), default="EA", nullable=False)

    # Planning thresholds
    minimum_quantity: Mapped[Decimal] = mapped_column(Numeric(18, 6), default=0, nullable=False)
    reorder_point: Mapped[Decimal | None] = mapped_column(Numeric(18, 6), nullable=True)

    standard_cost: Mapped[Decimal | None] = mapped_column(Numeric(18, 6), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    meta: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

Index("ix_inv_item_tenant_code", InventoryItem.tenant_id, InventoryItem.item_code, unique=True)
