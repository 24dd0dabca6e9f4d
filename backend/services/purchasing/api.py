from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session
from app.core.cache import CacheStore, get_cache
from app.core.tenant import get_tenant_id
from app.db.session import get_db
from app.db.models.purchasing import Vendor, PurchaseOrder, PurchaseOrderLine, GoodsReceipt, GoodsReceiptLine
from services._crud import commit_planning_change, commit_refresh, parse_date, to_decimal
from datetime import date
import uuid

router = APIRouter(prefix="/purchasing", tags=["purchasing"])

PO_STATUSES = {"DRAFT", "SENT", "CONFIRMED", "PARTIALLY_RECEIVED", "RECEIVED", "CANCELLED"}
DELIVERY_STATUSES = {"PENDING", "SHIPPED", "IN_TRANSIT", "DELAYED", "DELIVERED"}

def _checked(value, allowed: set[str], field: str) -> str:
    v = str(value).upper()
    if v not in allowed:
        raise HTTPException(400, f"{field} must be one of {sorted(allowed)}")
    return v

def _get_po(db: Session, po_id: str) -> PurchaseOrder:
    po = db.query(PurchaseOrder).filter(PurchaseOrder.tenant_id == get_tenant_id(), PurchaseOrder.id == po_id).first()
    if not po:
        raise HTTPException(404, "not found")
    return po

@router.get("/vendors")
def list_vendors(db: Session = Depends(get_db), limit: int = 200):
    vs = db.query(Vendor).filter(Vendor.tenant_id == get_tenant_id()).order_by(Vendor.created_at.desc()).limit(limit).all()
    return [{"id": v.id, "code": v.vendor_code, "name": v.vendor_name} for v in vs]

@router.post("/vendors")
def create_vendor(payload: dict, db: Session = Depends(get_db)):
    code = payload.get("vendor_code") or payload.get("code") or str(uuid.uuid4())[:8].upper()
    v = Vendor(tenant_id=get_tenant_id(), vendor_code=code, vendor_name=payload.get("vendor_name") or payload.get("name") or code,
               lead_time_days=int(payload.get("lead_time_days") or 14), meta=payload.get("meta") or {})
    commit_refresh(db, v)
    return {"id": v.id, "code": v.vendor_code}

@router.post("/purchase-orders")
def create_po(payload: dict, db: Session = Depends(get_db), cache: CacheStore = Depends(get_cache)):
    vendor_id = payload.get("vendor_id")
    if not vendor_id:
        raise HTTPException(400, "vendor_id required")
    po = PurchaseOrder(
        tenant_id=get_tenant_id(),
        po_number=payload.get("po_number") or f"PO-{str(uuid.uuid4())[:8].upper()}",
        vendor_id=vendor_id,
        status=_checked(payload.get("status") or "DRAFT", PO_STATUSES, "status"),
        delivery_status=_checked(payload.get("delivery_status") or "PENDING", DELIVERY_STATUSES, "delivery_status"),
        estimated_delivery_date=parse_date(payload.get("estimated_delivery_date"), "estimated_delivery_date"),
        currency=payload.get("currency") or "USD",
        po_date=parse_date(payload.get("po_date"), "po_date") or date.today(),
        meta={},
    )
    db.add(po); db.flush()
    total = to_decimal(0, "total_amount")
    for n, ln in enumerate(payload.get("lines") or [], start=1):
        if not ln.get("item_id"):
            raise HTTPException(400, "lines[].item_id required")
        qty = to_decimal(ln.get("quantity"), "quantity")
        price = to_decimal(ln.get("unit_price"), "unit_price")
        total += qty * price
        db.add(PurchaseOrderLine(purchase_order_id=po.id, line_number=ln.get("line_number") or n, item_id=ln["item_id"],
                                 quantity=qty, uom=ln.get("uom") or "EA", unit_price=price, meta={}))
    po.total_amount = total
    commit_planning_change(db, cache)
    return {"id": po.id, "po_number": po.po_number}

@router.patch("/purchase-orders/{po_id}")
def update_po(po_id: str, payload: dict, db: Session = Depends(get_db), cache: CacheStore = Depends(get_cache)):
    po = _get_po(db, po_id)
    if "status" in payload:
        po.status = _checked(payload["status"], PO_STATUSES, "status")
    if "delivery_status" in payload:
        po.delivery_status = _checked(payload["delivery_status"], DELIVERY_STATUSES, "delivery_status")
    if "estimated_delivery_date" in payload:
        po.estimated_delivery_date = parse_date(payload["estimated_delivery_date"], "estimated_delivery_date")
    commit_planning_change(db, cache)
    return {"id": po.id, "status": po.status, "delivery_status": po.delivery_status,
            "estimated_delivery_date": po.estimated_delivery_date}

@router.get("/purchase-orders/{po_id}")
def get_purchase_order(po_id: str, db: Session = Depends(get_db)):
    po = _get_po(db, po_id)
    lines = db.query(PurchaseOrderLine).filter(PurchaseOrderLine.purchase_order_id == po_id).order_by(PurchaseOrderLine.line_number).all()
    return {
        "id": po.id,
        "po_number": po.po_number,
        "vendor_id": po.vendor_id,
        "status": po.status,
        "delivery_status": po.delivery_status,
        "estimated_delivery_date": po.estimated_delivery_date,
        "currency": po.currency,
        "lines": [{"id": ln.id, "item_id": ln.item_id, "quantity": float(ln.quantity), "unit_price": float(ln.unit_price)} for ln in lines],
    }

@router.post("/goods-receipts")
def receive(payload: dict, db: Session = Depends(get_db), cache: CacheStore = Depends(get_cache)):
    """Record a (partial) delivery; the PO moves to PARTIALLY_RECEIVED or RECEIVED."""
    if not payload.get("purchase_order_id"):
        raise HTTPException(400, "purchase_order_id required")
    po = _get_po(db, payload["purchase_order_id"])
    lines = {ln.id: ln for ln in db.query(PurchaseOrderLine).filter(PurchaseOrderLine.purchase_order_id == po.id).all()}
    rows = payload.get("lines") or []
    if not rows:
        raise HTTPException(400, "lines required")
    gr = GoodsReceipt(tenant_id=po.tenant_id, receipt_number=payload.get("receipt_number") or f"GR-{str(uuid.uuid4())[:8].upper()}",
                      purchase_order_id=po.id, receipt_date=parse_date(payload.get("receipt_date"), "receipt_date") or date.today(), meta={})
    db.add(gr); db.flush()
    for r in rows:
        line_id = r.get("purchase_order_line_id")
        if line_id not in lines:
            raise HTTPException(400, f"line {line_id} is not on purchase order {po.po_number}")
        qty = to_decimal(r.get("received_quantity"), "received_quantity")
        if qty <= 0:
            raise HTTPException(400, "received_quantity must be positive")
        db.add(GoodsReceiptLine(goods_receipt_id=gr.id, purchase_order_line_id=line_id, received_quantity=qty, meta={}))
    db.flush()

    received = dict(
        db.query(GoodsReceiptLine.purchase_order_line_id, func.sum(GoodsReceiptLine.received_quantity))
        .filter(GoodsReceiptLine.purchase_order_line_id.in_(list(lines)))
        .group_by(GoodsReceiptLine.purchase_order_line_id)
        .all()
    )
    complete = all(to_decimal(received.get(lid), "received_quantity") >= ln.quantity for lid, ln in lines.items())
    po.status = "RECEIVED" if complete else "PARTIALLY_RECEIVED"
    if complete:
        po.delivery_status = "DELIVERED"
    commit_planning_change(db, cache)
    return {"id": gr.id, "receipt_number": gr.receipt_number, "purchase_order_status": po.status}

@router.get("/health")
def health():
    return {"ok": True}
