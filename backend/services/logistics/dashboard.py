"""Logistics dashboard: KPI composition and its cache lifecycle.

``compute_dashboard`` is pure. Caching lives only in ``cached_dashboard``,
which wraps any zero-argument compute callable; a broken cache degrades to
recomputation and never fails the request.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Sequence

from app.core.cache import CacheStore
from services.logistics.allocation import summarize_fulfillment
from services.logistics.readiness import summarize_readiness
from services.logistics.supply import pending_value, summarize_supply
from services.logistics.types import (
    Alert,
    DashboardSummary,
    FulfillmentResult,
    FulfillmentStatus,
    ReadinessResult,
    SupplyEntry,
)

logger = logging.getLogger(__name__)

DASHBOARD_CACHE_TTL = int(os.getenv("LOGISTICS_DASHBOARD_CACHE_TTL", "60"))
DASHBOARD_KEY_PREFIX = "logistics:dashboard"

# INFO alert once this many orders are waiting to be shipped
READY_TO_SHIP_ALERT_THRESHOLD = 5


def dashboard_cache_key(tenant_id: str) -> str:
    return f"{DASHBOARD_KEY_PREFIX}:{tenant_id}"


def _avg_rate(results: Sequence[FulfillmentResult]) -> int:
    if not results:
        return 100
    mean = Decimal(sum(r.ready_percentage for r in results)) / len(results)
    return int(mean.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def build_alerts(*, delayed: int, blocked: int, production_waiting: int, ready_to_ship: int) -> list[Alert]:
    alerts = []
    if delayed > 0:
        alerts.append(Alert("WARNING", f"{delayed} deliveries are late", "PurchaseOrder"))
    if blocked > 0:
        alerts.append(Alert("ERROR", f"{blocked} orders blocked by missing stock", "SalesOrder"))
    if production_waiting > 0:
        alerts.append(Alert("WARNING", f"{production_waiting} production orders waiting for materials", "ProductionOrder"))
    if ready_to_ship > READY_TO_SHIP_ALERT_THRESHOLD:
        alerts.append(Alert("INFO", f"{ready_to_ship} orders ready to ship", "SalesOrder"))
    return alerts


def compute_dashboard(
    supply_week: Sequence[SupplyEntry],
    fulfillment: Sequence[FulfillmentResult],
    readiness: Sequence[ReadinessResult],
    *,
    today: date,
) -> DashboardSummary:
    """Compose KPIs from the three engines.

    ``supply_week`` is the supply ledger built with a 7-day horizon.
    """
    supply_summary = summarize_supply(supply_week, today=today)
    fulfillment_summary = summarize_fulfillment(fulfillment)
    readiness_summary = summarize_readiness(readiness)
    ready = [r for r in fulfillment if r.fulfillment_status == FulfillmentStatus.READY]

    return DashboardSummary(
        incoming={
            "total_orders": supply_summary.total_orders,
            "expected_this_week": supply_summary.expected_this_week,
            "delayed": supply_summary.delayed,
            "total_value": float(pending_value(supply_week)),
        },
        fulfillment={
            "ready_to_ship": fulfillment_summary.ready_to_ship,
            "ready_value": float(sum((r.total_amount for r in ready), Decimal(0))),
            "blocked": fulfillment_summary.blocked,
            "avg_fulfillment_rate": _avg_rate(fulfillment),
        },
        production={
            "active_orders": readiness_summary.total_orders,
            "ready_to_start": readiness_summary.ready_to_start,
            "waiting_materials": readiness_summary.waiting_materials,
        },
        alerts=tuple(build_alerts(
            delayed=supply_summary.delayed,
            blocked=fulfillment_summary.blocked,
            production_waiting=readiness_summary.waiting_materials,
            ready_to_ship=fulfillment_summary.ready_to_ship,
        )),
        generated_on=today,
    )


def dump_dashboard(summary: DashboardSummary) -> bytes:
    payload = asdict(summary)
    payload["generated_on"] = summary.generated_on.isoformat() if summary.generated_on else None
    return json.dumps(payload, sort_keys=True).encode("utf-8")


def load_dashboard(raw: bytes) -> DashboardSummary:
    payload = json.loads(raw.decode("utf-8"))
    generated_on = payload.get("generated_on")
    return DashboardSummary(
        incoming=payload["incoming"],
        fulfillment=payload["fulfillment"],
        production=payload["production"],
        alerts=tuple(Alert(**a) for a in payload.get("alerts") or []),
        generated_on=date.fromisoformat(generated_on) if generated_on else None,
    )


def cached_dashboard(
    compute: Callable[[], DashboardSummary],
    *,
    cache: CacheStore,
    key: str,
    ttl_seconds: int = DASHBOARD_CACHE_TTL,
) -> tuple[DashboardSummary, bool]:
    """Serve from cache when possible. Returns ``(summary, served_from_cache)``."""
    try:
        raw = cache.get(key)
        if raw is not None:
            logger.debug("logistics dashboard served from cache (%s)", key)
            return load_dashboard(raw), True
    except Exception:
        logger.warning("logistics dashboard cache read failed, recomputing", exc_info=True)

    summary = compute()
    try:
        cache.set(key, dump_dashboard(summary), ttl_seconds)
    except Exception:
        logger.error("logistics dashboard cache write failed", exc_info=True)
    return summary, False


def invalidate_dashboard_cache(cache: CacheStore, tenant_id: str) -> None:
    """Drop the tenant's cached dashboard. Call after every relevant write."""
    key = dashboard_cache_key(tenant_id)
    try:
        cache.delete(key)
        logger.debug("logistics cache invalidated (%s)", key)
    except Exception:
        logger.error("error invalidating logistics cache (%s)", key, exc_info=True)
