from __future__ import annotations

from contextlib import contextmanager
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.core.cache import CacheStore, get_cache
from app.db.session import get_db
from services.logistics.allocation import summarize_fulfillment
from services.logistics.errors import InvalidInput, NotFound, UpstreamUnavailable
from services.logistics.readiness import summarize_readiness
from services.logistics.service import DEFAULT_HORIZON_DAYS, FORECAST_LIMIT, LogisticsPlanningService
from services.logistics.supply import group_by_purchase_order, summarize_supply
from services.logistics.types import (
    FulfillmentResult,
    ReadinessResult,
    SupplyEntry,
    SupplyFilters,
    Timeline,
)

router = APIRouter(prefix="/logistics", tags=["logistics"])


@contextmanager
def _http_errors():
    try:
        yield
    except NotFound as e:
        raise HTTPException(404, str(e))
    except InvalidInput as e:
        raise HTTPException(400, str(e))
    except UpstreamUnavailable as e:
        raise HTTPException(503, str(e))


def _csv(value: Optional[str]) -> Optional[list[str]]:
    if not value:
        return None
    parts = [p.strip().upper() for p in value.split(",") if p.strip()]
    return parts or None


# ============= SERIALIZERS =============

def _entry(e: SupplyEntry) -> dict:
    return {
        "line_id": e.line_id,
        "item_id": e.item_id,
        "item_name": e.item_name,
        "ordered_quantity": float(e.ordered_quantity),
        "received_quantity": float(e.received_quantity),
        "pending_quantity": float(e.pending_quantity),
        "unit_price": float(e.unit_price),
        "expected_arrival_date": e.expected_arrival_date,
    }


def _fulfillment(r: FulfillmentResult) -> dict:
    return {
        "order_id": r.order_id,
        "order_number": r.order_number,
        "customer_name": r.customer_name,
        "order_date": r.order_date,
        "status": r.status,
        "priority": r.priority.value,
        "total_amount": float(r.total_amount),
        "fulfillment_status": r.fulfillment_status.value,
        "ready_percentage": r.ready_percentage,
        "estimated_fulfillment_date": r.estimated_fulfillment_date,
        "missing_items": [{
            "item_id": s.item_id,
            "item_name": s.item_name,
            "required": float(s.required_quantity),
            "available": float(s.available_quantity),
            "shortage": float(s.shortage_quantity),
            "expected_arrival_date": s.expected_arrival_date,
        } for s in r.shortages],
        "allocations": [{"line_id": a.line_id, "item_id": a.item_id, "quantity": float(a.quantity)} for a in r.allocations],
    }


def _readiness(r: ReadinessResult) -> dict:
    o = r.order
    return {
        "id": o.production_order_id,
        "order_number": o.order_number,
        "product_id": o.product_id,
        "product_name": o.product_name,
        "product_code": o.product_code,
        "quantity": float(o.quantity),
        "status": o.status,
        "priority": r.priority.value,
        "planned_start_date": o.planned_start_date,
        "planned_end_date": o.planned_end_date,
        "sales_order_id": o.linked_order_id,
        "sales_order_number": o.linked_order_number,
        "materials_ready": r.materials_ready,
        "missing_materials": [{
            "material_id": s.material_id,
            "material_name": s.material_name,
            "material_code": s.material_code,
            "required": float(s.required_quantity),
            "available": float(s.available_quantity),
            "shortage": float(s.shortage_quantity),
        } for s in r.shortages],
    }


def _timeline(t: Timeline) -> dict:
    return {
        "item_id": t.item.id,
        "item_name": t.item.name,
        "item_code": t.item.code,
        "unit": t.item.unit,
        "current_stock": float(t.current_stock),
        "min_stock": float(t.item.min_stock),
        "reorder_point": float(t.item.reorder_threshold),
        "projected_stockout": t.projected_stockout,
        "suggested_reorder_date": t.suggested_reorder_date,
        "timeline": [{
            "date": e.date,
            "type": e.kind.value,
            "quantity": float(e.quantity),
            "balance_after": float(e.balance_after),
            "description": e.description,
            "source": e.source,
            "source_id": e.source_id,
        } for e in t.events],
    }


# ============= ENDPOINTS =============

@router.get("/health")
def health():
    return {"ok": True, "service": "logistics"}


@router.get("/incoming")
def incoming(
    days_ahead: int = DEFAULT_HORIZON_DAYS,
    vendor_id: Optional[str] = None,
    status: Optional[str] = None,
    item_id: Optional[List[str]] = Query(None),
    db: Session = Depends(get_db),
):
    defaults = SupplyFilters()
    filters = SupplyFilters(
        vendor_id=vendor_id,
        item_ids=frozenset(item_id) if item_id else None,
        statuses=frozenset(_csv(status) or defaults.statuses),
    )
    svc = LogisticsPlanningService(db)
    with _http_errors():
        ledger = svc.list_incoming_supply(days_ahead, filters)
    summary = summarize_supply(ledger, today=svc.today)
    return {
        "orders": [{
            "id": g.purchase_order_id,
            "po_number": g.purchase_order_number,
            "vendor_id": g.vendor_id,
            "vendor_name": g.vendor_name,
            "expected_arrival_date": g.expected_arrival_date,
            "delivery_status": g.delivery_status,
            "items": [_entry(e) for e in g.entries],
        } for g in group_by_purchase_order(ledger)],
        "summary": {
            "total_orders": summary.total_orders,
            "pending_deliveries": summary.pending_deliveries,
            "in_transit": summary.in_transit,
            "delayed": summary.delayed,
            "total_pending_quantity": float(summary.total_pending_quantity),
            "expected_this_week": summary.expected_this_week,
        },
    }


@router.get("/fulfillment-forecast")
def fulfillment_forecast(
    customer_id: Optional[str] = None,
    limit: int = FORECAST_LIMIT,
    include_shipped: bool = False,
    db: Session = Depends(get_db),
):
    with _http_errors():
        results = LogisticsPlanningService(db).forecast_fulfillment(
            customer_id=customer_id, limit=limit, include_shipped=include_shipped,
        )
    summary = summarize_fulfillment(results)
    return {
        "orders": [_fulfillment(r) for r in results],
        "summary": {
            "total_orders": summary.total_orders,
            "ready_to_ship": summary.ready_to_ship,
            "partially_ready": summary.partially_ready,
            "blocked": summary.blocked,
            "waiting_materials": summary.waiting_materials,
        },
    }


@router.get("/ready-to-ship")
def ready_to_ship(limit: int = FORECAST_LIMIT, db: Session = Depends(get_db)):
    with _http_errors():
        rows = LogisticsPlanningService(db).list_ready_to_ship(limit)
    return [{
        "id": r.order_id,
        "order_number": r.order_number,
        "customer_name": r.customer_name,
        "order_date": r.order_date,
        "priority": r.priority,
        "total_value": float(r.total_amount),
        "item_count": float(r.item_count),
        "shipping_address": r.shipping_address,
        "shipping_method": r.shipping_method,
    } for r in rows]


@router.get("/production-schedule")
def production_schedule(
    status: Optional[str] = None,
    days_ahead: int = DEFAULT_HORIZON_DAYS,
    production_order_id: Optional[str] = None,
    db: Session = Depends(get_db),
):
    with _http_errors():
        results = LogisticsPlanningService(db).check_production_readiness(
            statuses=_csv(status), horizon_days=days_ahead, production_order_id=production_order_id,
        )
    summary = summarize_readiness(results)
    return {
        "orders": [_readiness(r) for r in results],
        "summary": {
            "total_orders": summary.total_orders,
            "ready_to_start": summary.ready_to_start,
            "in_progress": summary.in_progress,
            "waiting_materials": summary.waiting_materials,
        },
    }


@router.get("/material-timeline/{item_id}")
def material_timeline(item_id: str, days_ahead: int = DEFAULT_HORIZON_DAYS, db: Session = Depends(get_db)):
    with _http_errors():
        t = LogisticsPlanningService(db).project_material_timeline(item_id, days_ahead)
    return _timeline(t)


@router.get("/dashboard")
def get_dashboard(db: Session = Depends(get_db), cache: CacheStore = Depends(get_cache)):
    with _http_errors():
        summary, cached = LogisticsPlanningService(db).get_dashboard(cache)
    return {
        "incoming": summary.incoming,
        "fulfillment": summary.fulfillment,
        "production": summary.production,
        "alerts": [{
            "type": a.type,
            "message": a.message,
            "entity_type": a.entity_type,
            "entity_id": a.entity_id,
        } for a in summary.alerts],
        "generated_on": summary.generated_on,
        "cached": cached,
    }


@router.post("/cache/invalidate")
def invalidate_cache(db: Session = Depends(get_db), cache: CacheStore = Depends(get_cache)):
    LogisticsPlanningService(db).invalidate_dashboard_cache(cache)
    return {"ok": True}
