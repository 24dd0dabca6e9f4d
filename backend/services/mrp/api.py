from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.core.cache import CacheStore, get_cache
from app.core.tenant import get_tenant_id
from app.db.session import get_db
from app.db.models.mrp import BOM, BOMLine, ProductionOrder
from services._crud import commit_planning_change, parse_date, to_decimal
import uuid

router = APIRouter(prefix="/mrp", tags=["mrp"])

PRODUCTION_STATUSES = {"DRAFT", "PLANNED", "IN_PROGRESS", "COMPLETED", "CANCELLED"}

def _status(value) -> str:
    v = str(value).upper()
    if v not in PRODUCTION_STATUSES:
        raise HTTPException(400, f"status must be one of {sorted(PRODUCTION_STATUSES)}")
    return v

def _get_production_order(db: Session, po_id: str) -> ProductionOrder:
    po = db.query(ProductionOrder).filter(ProductionOrder.tenant_id == get_tenant_id(), ProductionOrder.id == po_id).first()
    if not po:
        raise HTTPException(404, "not found")
    return po

@router.post("/boms")
def create_bom(payload: dict, db: Session = Depends(get_db), cache: CacheStore = Depends(get_cache)):
    parent_item_id = payload.get("parent_item_id")
    if not parent_item_id:
        raise HTTPException(400, "parent_item_id required")
    b = BOM(tenant_id=get_tenant_id(), bom_number=payload.get("bom_number") or f"BOM-{str(uuid.uuid4())[:8].upper()}",
            parent_item_id=parent_item_id, revision=payload.get("revision") or "A", status=payload.get("status") or "ACTIVE", meta={})
    db.add(b); db.flush()
    for n, ln in enumerate(payload.get("lines") or [], start=1):
        if not ln.get("component_item_id"):
            raise HTTPException(400, "lines[].component_item_id required")
        qty = to_decimal(ln.get("quantity_per", ln.get("quantity")), "quantity_per")
        if qty <= 0:
            raise HTTPException(400, "quantity_per must be positive")
        db.add(BOMLine(bom_id=b.id, line_number=ln.get("line_number") or n, component_item_id=ln["component_item_id"],
                       quantity_per=qty, uom=ln.get("uom") or "EA", meta={}))
    commit_planning_change(db, cache)
    return {"id": b.id, "bom_number": b.bom_number}

@router.post("/production-orders")
def create_production_order(payload: dict, db: Session = Depends(get_db), cache: CacheStore = Depends(get_cache)):
    item_id = payload.get("item_id")
    if not item_id:
        raise HTTPException(400, "item_id required")
    qty = to_decimal(payload.get("quantity"), "quantity")
    if qty <= 0:
        raise HTTPException(400, "quantity must be positive")
    po = ProductionOrder(
        tenant_id=get_tenant_id(),
        production_order_number=payload.get("production_order_number") or f"MO-{str(uuid.uuid4())[:8].upper()}",
        item_id=item_id,
        ordered_quantity=qty,
        planned_start_date=parse_date(payload.get("planned_start_date"), "planned_start_date"),
        planned_end_date=parse_date(payload.get("planned_end_date"), "planned_end_date"),
        sales_order_id=payload.get("sales_order_id"),
        priority=str(payload.get("priority") or "NORMAL").upper(),
        status=_status(payload.get("status") or "DRAFT"),
        meta={},
    )
    db.add(po)
    commit_planning_change(db, cache)
    return {"id": po.id, "production_order_number": po.production_order_number}

@router.patch("/production-orders/{po_id}")
def update_production_order(po_id: str, payload: dict, db: Session = Depends(get_db), cache: CacheStore = Depends(get_cache)):
    po = _get_production_order(db, po_id)
    if "status" in payload:
        po.status = _status(payload["status"])
    if "priority" in payload:
        po.priority = str(payload["priority"]).upper()
    for f in ("planned_start_date", "planned_end_date"):
        if f in payload:
            setattr(po, f, parse_date(payload[f], f))
    if "quantity" in payload:
        po.ordered_quantity = to_decimal(payload["quantity"], "quantity")
    commit_planning_change(db, cache)
    return {"id": po.id, "status": po.status}

@router.get("/health")
def health():
    return {"ok": True}
