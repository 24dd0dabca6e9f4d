from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.core.cache import CacheStore, get_cache
from app.core.tenant import get_tenant_id
from app.db.session import get_db
from app.db.models.inventory import InventoryItem
from app.db.models.inventory_exec import InventoryBalance, WMSLocation
from services._crud import commit_planning_change, commit_refresh, to_decimal
import uuid

router = APIRouter(prefix="/inventory", tags=["inventory"])

@router.get("/items")
def list_items(db: Session = Depends(get_db), limit: int = 200):
    qs = db.query(InventoryItem).filter(InventoryItem.tenant_id == get_tenant_id()).order_by(InventoryItem.created_at.desc()).limit(limit).all()
    return [{"id": i.id, "code": i.item_code, "name": i.description, "type": i.item_type, "uom": i.base_uom} for i in qs]

@router.post("/items")
def create_item(payload: dict, db: Session = Depends(get_db)):
    code = payload.get("item_code") or payload.get("code") or str(uuid.uuid4())[:8].upper()
    reorder_point = payload.get("reorder_point")
    i = InventoryItem(
        tenant_id=get_tenant_id(),
        item_code=code,
        description=payload.get("description") or payload.get("name") or code,
        item_type=(payload.get("item_type") or "PRODUCT").upper(),
        base_uom=payload.get("base_uom") or "EA",
        minimum_quantity=to_decimal(payload.get("minimum_quantity"), "minimum_quantity"),
        reorder_point=to_decimal(reorder_point, "reorder_point") if reorder_point is not None else None,
        meta=payload.get("meta") or {},
    )
    commit_refresh(db, i)
    return {"id": i.id, "code": i.item_code}

@router.get("/items/{item_id}")
def get_item(item_id: str, db: Session = Depends(get_db)):
    i = db.query(InventoryItem).filter(InventoryItem.tenant_id == get_tenant_id(), InventoryItem.id == item_id).first()
    if not i:
        raise HTTPException(404, "Item not found")
    return {
        "id": i.id,
        "code": i.item_code,
        "name": i.description,
        "type": i.item_type,
        "uom": i.base_uom,
        "minimum_quantity": float(i.minimum_quantity),
        "reorder_point": float(i.reorder_point) if i.reorder_point is not None else None,
        "meta": i.meta,
    }

@router.post("/balances")
def set_balance(payload: dict, db: Session = Depends(get_db), cache: CacheStore = Depends(get_cache)):
    """Set the quantity of an item at a location (location created on first use)."""
    tenant_id = get_tenant_id()
    item_id = payload.get("item_id")
    if not item_id:
        raise HTTPException(400, "item_id required")
    if not db.query(InventoryItem).filter(InventoryItem.tenant_id == tenant_id, InventoryItem.id == item_id).first():
        raise HTTPException(404, "Item not found")
    loc_code = payload.get("location_code") or "MAIN"
    state = payload.get("state") or "AVAILABLE"
    loc = db.query(WMSLocation).filter(WMSLocation.tenant_id == tenant_id, WMSLocation.code == loc_code).first()
    if not loc:
        loc = commit_refresh(db, WMSLocation(tenant_id=tenant_id, code=loc_code, meta={}))
    bal = db.query(InventoryBalance).filter(
        InventoryBalance.tenant_id == tenant_id,
        InventoryBalance.item_id == item_id,
        InventoryBalance.location_id == loc.id,
        InventoryBalance.state == state,
    ).first()
    if not bal:
        bal = InventoryBalance(tenant_id=tenant_id, item_id=item_id, location_id=loc.id, state=state, meta={})
        db.add(bal)
    bal.qty = to_decimal(payload.get("qty"), "qty")
    commit_planning_change(db, cache)
    db.refresh(bal)
    return {"id": bal.id, "item_id": item_id, "location_id": loc.id, "state": bal.state, "qty": float(bal.qty)}

@router.get("/health")
def health():
    return {"ok": True}
