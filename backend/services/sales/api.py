from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.core.cache import CacheStore, get_cache
from app.core.tenant import get_tenant_id
from app.db.session import get_db
from app.db.models.sales import Customer, SalesOrder, SalesOrderLine
from services._crud import commit_planning_change, commit_refresh, parse_date, to_decimal
from datetime import date
import uuid

router = APIRouter(prefix="/sales", tags=["sales"])

ORDER_STATUSES = {"PENDING", "CONFIRMED", "PROCESSING", "READY", "SHIPPED", "DELIVERED", "CANCELLED"}
PRIORITIES = {"LOW", "NORMAL", "HIGH", "URGENT"}
SHIPPING_FIELDS = ("shipping_address_line1", "shipping_city", "shipping_postal_code", "shipping_country", "shipping_method")

def _checked(value, allowed: set[str], field: str) -> str:
    v = str(value).upper()
    if v not in allowed:
        raise HTTPException(400, f"{field} must be one of {sorted(allowed)}")
    return v

def _get_order(db: Session, order_id: str) -> SalesOrder:
    o = db.query(SalesOrder).filter(SalesOrder.tenant_id == get_tenant_id(), SalesOrder.id == order_id).first()
    if not o:
        raise HTTPException(404, "not found")
    return o

@router.get("/customers")
def list_customers(db: Session = Depends(get_db), limit: int = 200):
    cs = db.query(Customer).filter(Customer.tenant_id == get_tenant_id()).order_by(Customer.created_at.desc()).limit(limit).all()
    return [{"id": c.id, "code": c.customer_code, "name": c.display_name} for c in cs]

@router.post("/customers")
def create_customer(payload: dict, db: Session = Depends(get_db)):
    code = payload.get("customer_code") or payload.get("code") or str(uuid.uuid4())[:8].upper()
    c = Customer(
        tenant_id=get_tenant_id(),
        customer_code=code,
        customer_name=payload.get("customer_name") or payload.get("name"),
        first_name=payload.get("first_name"),
        last_name=payload.get("last_name"),
        meta=payload.get("meta") or {},
    )
    commit_refresh(db, c)
    return {"id": c.id, "code": c.customer_code, "name": c.display_name}

@router.post("/orders")
def create_order(payload: dict, db: Session = Depends(get_db), cache: CacheStore = Depends(get_cache)):
    customer_id = payload.get("customer_id")
    if not customer_id and not payload.get("billing_name"):
        raise HTTPException(400, "customer_id or billing_name required")
    lines = payload.get("lines") or []
    o = SalesOrder(
        tenant_id=get_tenant_id(),
        order_number=payload.get("order_number") or f"SO-{str(uuid.uuid4())[:8].upper()}",
        customer_id=customer_id,
        billing_name=payload.get("billing_name"),
        status=_checked(payload.get("status") or "PENDING", ORDER_STATUSES, "status"),
        priority=_checked(payload.get("priority") or "NORMAL", PRIORITIES, "priority"),
        currency=payload.get("currency") or "USD",
        order_date=parse_date(payload.get("order_date"), "order_date") or date.today(),
        meta=payload.get("meta") or {},
        **{f: payload.get(f) for f in SHIPPING_FIELDS},
    )
    db.add(o); db.flush()
    total = to_decimal(0, "total_amount")
    for n, ln in enumerate(lines, start=1):
        qty = to_decimal(ln.get("quantity"), "quantity")
        price = to_decimal(ln.get("unit_price"), "unit_price")
        total += qty * price
        db.add(SalesOrderLine(order_id=o.id, line_number=ln.get("line_number") or n, item_id=ln.get("item_id"),
                              description=ln.get("description"), quantity=qty, unit_price=price, meta={}))
    o.total_amount = to_decimal(payload["total_amount"], "total_amount") if payload.get("total_amount") is not None else total
    commit_planning_change(db, cache)
    return {"id": o.id, "order_number": o.order_number}

@router.patch("/orders/{order_id}")
def update_order(order_id: str, payload: dict, db: Session = Depends(get_db), cache: CacheStore = Depends(get_cache)):
    o = _get_order(db, order_id)
    if "status" in payload:
        o.status = _checked(payload["status"], ORDER_STATUSES, "status")
    if "priority" in payload:
        o.priority = _checked(payload["priority"], PRIORITIES, "priority")
    for f in SHIPPING_FIELDS:
        if f in payload:
            setattr(o, f, payload[f])
    commit_planning_change(db, cache)
    return {"id": o.id, "status": o.status, "priority": o.priority}

@router.get("/orders/{order_id}")
def get_order(order_id: str, db: Session = Depends(get_db)):
    o = _get_order(db, order_id)
    lines = db.query(SalesOrderLine).filter(SalesOrderLine.order_id == order_id).order_by(SalesOrderLine.line_number).all()
    return {
        "id": o.id,
        "order_number": o.order_number,
        "customer_id": o.customer_id,
        "status": o.status,
        "priority": o.priority,
        "currency": o.currency,
        "total_amount": float(o.total_amount),
        "lines": [{"id": ln.id, "item_id": ln.item_id, "quantity": float(ln.quantity), "unit_price": float(ln.unit_price)} for ln in lines],
    }

@router.get("/health")
def health():
    return {"ok": True}
