"""Relational snapshot reads for the logistics engine.

Every query is tenant scoped. Rows are turned into the frozen value types in
``services.logistics.types`` before they leave this module, so the engines
never see ORM objects or sessions.
"""

from __future__ import annotations

import functools
import logging
import os
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Sequence

from sqlalchemy import case, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.tenant import get_tenant_id
from app.db.models.inventory import InventoryItem
from app.db.models.inventory_exec import InventoryBalance
from app.db.models.mrp import MRPBOM, MRPBOMLine, MRPProductionOrder
from app.db.models.purchasing import GoodsReceiptLine, PurchaseOrder, PurchaseOrderLine, Vendor
from app.db.models.sales import Customer, SalesOrder, SalesOrderLine
from services.logistics.errors import NotFound, UpstreamUnavailable
from services.logistics.types import (
    DEFAULT_PRIORITY_RANK,
    PRIORITY_RANK,
    ZERO,
    BOMComponent,
    DemandLine,
    DemandOrder,
    InboundCommitment,
    Item,
    ProductionOrderSnapshot,
    ReadyToShipOrder,
)

logger = logging.getLogger(__name__)

AVAILABLE = "AVAILABLE"
SNAPSHOT_ISOLATION_LEVEL = os.getenv("LOGISTICS_SNAPSHOT_ISOLATION_LEVEL", "REPEATABLE READ")


def _dec(value) -> Decimal:
    if value is None:
        return ZERO
    return value if isinstance(value, Decimal) else Decimal(str(value))


def _upstream(fn):
    """Re-raise database failures as UpstreamUnavailable; never return partial data."""
    @functools.wraps(fn)
    def wrapper(self, *args, **kwargs):
        try:
            return fn(self, *args, **kwargs)
        except SQLAlchemyError as e:
            logger.error("logistics snapshot read failed (%s)", fn.__name__, exc_info=True)
            raise UpstreamUnavailable(f"{fn.__name__}: database unavailable") from e
    return wrapper


def customer_display_name(customer: Customer | None, billing_name: str | None) -> str:
    if customer is not None and customer.display_name:
        return customer.display_name
    return billing_name or "-"


def shipping_address(so: SalesOrder) -> str:
    parts = [so.shipping_address_line1, so.shipping_city, so.shipping_postal_code, so.shipping_country]
    return ", ".join(p for p in parts if p)


class SnapshotLoader:
    def __init__(self, db: Session, tenant_id: str | None = None):
        self.db = db
        self.tenant_id = tenant_id or get_tenant_id()

    @_upstream
    def begin_snapshot(self) -> None:
        """Open the read transaction that every following query shares.

        Runs at SNAPSHOT_ISOLATION_LEVEL so writes committed between two reads
        stay invisible. A transaction that is already open is reused as is.
        SQLite has a single writer and is left at its default level.
        """
        if self.db.in_transaction():
            return
        if self.db.get_bind().dialect.name == "sqlite":
            return
        self.db.connection(execution_options={"isolation_level": SNAPSHOT_ISOLATION_LEVEL})

    def _priority_rank(self):
        return case(PRIORITY_RANK, value=SalesOrder.priority, else_=DEFAULT_PRIORITY_RANK)

    # ============= CATALOG / STOCK =============

    @_upstream
    def get_item(self, item_id: str) -> Item:
        row = self.db.query(InventoryItem).filter(
            InventoryItem.tenant_id == self.tenant_id,
            InventoryItem.id == item_id,
        ).first()
        if not row:
            raise NotFound(f"item {item_id} not found")
        return Item(
            id=row.id,
            name=row.description,
            code=row.item_code,
            unit=row.base_uom,
            min_stock=_dec(row.minimum_quantity),
            reorder_point=_dec(row.reorder_point) if row.reorder_point is not None else None,
        )

    @_upstream
    def on_hand(self, item_ids: Iterable[str] | None = None) -> dict[str, Decimal]:
        """AVAILABLE quantity per item summed over all locations."""
        q = self.db.query(InventoryBalance.item_id, func.sum(InventoryBalance.qty)).filter(
            InventoryBalance.tenant_id == self.tenant_id,
            InventoryBalance.state == AVAILABLE,
        )
        if item_ids is not None:
            q = q.filter(InventoryBalance.item_id.in_(list(item_ids)))
        return {item_id: _dec(qty) for item_id, qty in q.group_by(InventoryBalance.item_id).all()}

    # ============= SUPPLY =============

    @_upstream
    def inbound_commitments(self, statuses: Iterable[str]) -> list[InboundCommitment]:
        """Open purchase order lines in creation order (PO created_at, line number)."""
        received = (
            self.db.query(
                GoodsReceiptLine.purchase_order_line_id.label("line_id"),
                func.sum(GoodsReceiptLine.received_quantity).label("qty"),
            )
            .group_by(GoodsReceiptLine.purchase_order_line_id)
            .subquery()
        )
        rows = (
            self.db.query(PurchaseOrderLine, PurchaseOrder, Vendor, InventoryItem, received.c.qty)
            .join(PurchaseOrder, PurchaseOrderLine.purchase_order_id == PurchaseOrder.id)
            .join(Vendor, PurchaseOrder.vendor_id == Vendor.id)
            .join(InventoryItem, PurchaseOrderLine.item_id == InventoryItem.id)
            .outerjoin(received, received.c.line_id == PurchaseOrderLine.id)
            .filter(
                PurchaseOrder.tenant_id == self.tenant_id,
                PurchaseOrder.status.in_(list(statuses)),
            )
            .order_by(
                PurchaseOrder.created_at.asc(),
                PurchaseOrder.id.asc(),
                PurchaseOrderLine.line_number.asc(),
                PurchaseOrderLine.id.asc(),
            )
            .all()
        )
        return [
            InboundCommitment(
                purchase_order_id=po.id,
                purchase_order_number=po.po_number,
                line_id=ln.id,
                vendor_id=v.id,
                vendor_name=v.vendor_name,
                item_id=it.id,
                item_name=it.description,
                ordered_quantity=_dec(ln.quantity),
                received_quantity=_dec(qty),
                expected_arrival_date=po.estimated_delivery_date,
                status=po.status,
                delivery_status=po.delivery_status,
                unit_price=_dec(ln.unit_price),
                created_at=po.created_at,
            )
            for ln, po, v, it, qty in rows
        ]

    # ============= DEMAND =============

    @_upstream
    def open_orders(
        self,
        statuses: Sequence[str],
        *,
        customer_id: str | None = None,
        limit: int | None = 50,
    ) -> list[DemandOrder]:
        """Open sales orders, highest priority and oldest first, capped at ``limit`` (None for all)."""
        q = (
            self.db.query(SalesOrder, Customer)
            .outerjoin(Customer, SalesOrder.customer_id == Customer.id)
            .filter(SalesOrder.tenant_id == self.tenant_id, SalesOrder.status.in_(list(statuses)))
        )
        if customer_id:
            q = q.filter(SalesOrder.customer_id == customer_id)
        headers = (
            q.order_by(self._priority_rank().desc(), SalesOrder.created_at.asc(), SalesOrder.id.asc())
            .limit(limit)
            .all()
        )
        if not headers:
            return []

        lines: dict[str, list[DemandLine]] = {}
        rows = (
            self.db.query(SalesOrderLine, InventoryItem)
            .join(InventoryItem, SalesOrderLine.item_id == InventoryItem.id)
            .filter(SalesOrderLine.order_id.in_([so.id for so, _ in headers]))
            .order_by(SalesOrderLine.order_id, SalesOrderLine.line_number, SalesOrderLine.id)
            .all()
        )
        for ln, it in rows:
            lines.setdefault(ln.order_id, []).append(DemandLine(
                line_id=ln.id,
                item_id=it.id,
                item_name=it.description,
                required_quantity=_dec(ln.quantity),
            ))

        return [
            DemandOrder(
                order_id=so.id,
                order_number=so.order_number,
                created_at=so.created_at,
                lines=tuple(lines.get(so.id, ())),
                priority=so.priority,
                customer_name=customer_display_name(cust, so.billing_name),
                status=so.status,
                total_amount=_dec(so.total_amount),
            )
            for so, cust in headers
        ]

    @_upstream
    def ready_to_ship(self, limit: int = 50) -> list[ReadyToShipOrder]:
        counts = (
            self.db.query(SalesOrderLine.order_id.label("order_id"), func.sum(SalesOrderLine.quantity).label("qty"))
            .group_by(SalesOrderLine.order_id)
            .subquery()
        )
        rows = (
            self.db.query(SalesOrder, Customer, counts.c.qty)
            .outerjoin(Customer, SalesOrder.customer_id == Customer.id)
            .outerjoin(counts, counts.c.order_id == SalesOrder.id)
            .filter(SalesOrder.tenant_id == self.tenant_id, SalesOrder.status == "READY")
            .order_by(self._priority_rank().desc(), SalesOrder.created_at.asc(), SalesOrder.id.asc())
            .limit(limit)
            .all()
        )
        return [
            ReadyToShipOrder(
                order_id=so.id,
                order_number=so.order_number,
                customer_name=customer_display_name(cust, so.billing_name),
                order_date=so.order_date,
                priority=so.priority,
                total_amount=_dec(so.total_amount),
                item_count=_dec(qty),
                shipping_address=shipping_address(so),
                shipping_method=so.shipping_method,
            )
            for so, cust, qty in rows
        ]

    # ============= PRODUCTION =============

    @_upstream
    def production_orders(
        self,
        statuses: Sequence[str],
        *,
        today: date | None = None,
        horizon_days: int | None = None,
        production_order_id: str | None = None,
    ) -> list[ProductionOrderSnapshot]:
        """Production orders in ``statuses``; with a horizon, only those ending by then (or undated)."""
        q = (
            self.db.query(MRPProductionOrder, InventoryItem, SalesOrder.order_number)
            .join(InventoryItem, MRPProductionOrder.item_id == InventoryItem.id)
            .outerjoin(SalesOrder, MRPProductionOrder.sales_order_id == SalesOrder.id)
            .filter(MRPProductionOrder.tenant_id == self.tenant_id)
        )
        if production_order_id:
            q = q.filter(MRPProductionOrder.id == production_order_id)
        else:
            q = q.filter(MRPProductionOrder.status.in_(list(statuses)))
            if horizon_days is not None:
                until = (today or date.today()) + timedelta(days=horizon_days)
                q = q.filter(
                    (MRPProductionOrder.planned_end_date <= until)
                    | (MRPProductionOrder.planned_end_date.is_(None))
                )
        return [
            ProductionOrderSnapshot(
                production_order_id=po.id,
                order_number=po.production_order_number,
                product_id=it.id,
                quantity=_dec(po.ordered_quantity),
                status=po.status,
                priority=po.priority,
                product_name=it.description,
                product_code=it.item_code,
                planned_start_date=po.planned_start_date,
                planned_end_date=po.planned_end_date,
                created_at=po.created_at,
                linked_order_id=po.sales_order_id,
                linked_order_number=so_number,
            )
            for po, it, so_number in q.all()
        ]

    @_upstream
    def active_boms(self, product_ids: Iterable[str]) -> dict[str, tuple[BOMComponent, ...]]:
        """Components of the newest ACTIVE BOM per product."""
        product_ids = list(set(product_ids))
        if not product_ids:
            return {}
        boms = (
            self.db.query(MRPBOM)
            .filter(
                MRPBOM.tenant_id == self.tenant_id,
                MRPBOM.parent_item_id.in_(product_ids),
                MRPBOM.status == "ACTIVE",
            )
            .order_by(MRPBOM.created_at.desc(), MRPBOM.id.desc())
            .all()
        )
        chosen: dict[str, str] = {}
        for bom in boms:
            chosen.setdefault(bom.parent_item_id, bom.id)
        if not chosen:
            return {}

        by_bom: dict[str, list[BOMComponent]] = {}
        rows = (
            self.db.query(MRPBOMLine, InventoryItem)
            .join(InventoryItem, MRPBOMLine.component_item_id == InventoryItem.id)
            .filter(MRPBOMLine.bom_id.in_(list(chosen.values())))
            .order_by(MRPBOMLine.bom_id, MRPBOMLine.line_number)
            .all()
        )
        for ln, it in rows:
            by_bom.setdefault(ln.bom_id, []).append(BOMComponent(
                material_id=it.id,
                quantity_per=_dec(ln.quantity_per),
                material_name=it.description,
                material_code=it.item_code,
            ))
        return {product_id: tuple(by_bom.get(bom_id, ())) for product_id, bom_id in chosen.items()}
