from __future__ import annotations

from decimal import Decimal

from sqlalchemy import String, JSON, ForeignKey, Numeric, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.db.models.common import HasId, HasCreatedAt
from app.db.models.inventory import InventoryItem


# NOTE:
# Balances are stored per storage location. On-hand for planning is the sum of
# AVAILABLE balances over all locations of the tenant.


class WMSLocation(Base, HasId, HasCreatedAt):
    __tablename__ = "wms_location"

    tenant_id: Mapped[str] = mapped_column(String(64), default="default", index=True, nullable=False)
    code: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(32), default="BIN", nullable=False)
    meta: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)


Index("ix_wms_location_tenant_code", WMSLocation.tenant_id, WMSLocation.code, unique=True)


class InventoryBalance(Base, HasId, HasCreatedAt):
    __tablename__ = "wms_inventory_balance"

    tenant_id: Mapped[str] = mapped_column(String(64), default="default", index=True, nullable=False)
    item_id: Mapped[str] = mapped_column(ForeignKey("inv_item_master.id"), nullable=False, index=True)
    location_id: Mapped[str] = mapped_column(ForeignKey("wms_location.id"), nullable=False, index=True)
    state: Mapped[str] = mapped_column(String(24), default="AVAILABLE", nullable=False, index=True)
    qty: Mapped[Decimal] = mapped_column(Numeric(18, 6), default=0, nullable=False)
    meta: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

    item: Mapped[InventoryItem] = relationship()
    location: Mapped[WMSLocation] = relationship()


Index("ix_balance_item_loc_state", InventoryBalance.item_id, InventoryBalance.location_id, InventoryBalance.state)
