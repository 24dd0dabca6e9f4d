"""Logistics planning operations.

Each call opens one snapshot transaction through ``SnapshotLoader.begin_snapshot``
(REPEATABLE READ on servers that support it), reads everything it needs inside
it and hands the result to the pure engines. ``today`` is fixed per service
instance so a whole request sees a single "now".
"""

from __future__ import annotations

import logging
import os
from datetime import date
from decimal import Decimal
from typing import Sequence

from sqlalchemy.orm import Session

from app.core.cache import CacheStore
from app.core.tenant import get_tenant_id
from services.logistics import allocation, dashboard, readiness, supply, timeline
from services.logistics.errors import InvalidInput, NotFound
from services.logistics.repository import SnapshotLoader
from services.logistics.types import (
    DashboardSummary,
    FulfillmentResult,
    ReadinessResult,
    ReadyToShipOrder,
    SameDayPolicy,
    SupplyEntry,
    SupplyFilters,
    Timeline,
)

logger = logging.getLogger(__name__)

DEFAULT_HORIZON_DAYS = int(os.getenv("LOGISTICS_DEFAULT_HORIZON_DAYS", "30"))
FORECAST_SUPPLY_HORIZON_DAYS = int(os.getenv("LOGISTICS_FORECAST_SUPPLY_HORIZON_DAYS", "60"))
FORECAST_LIMIT = int(os.getenv("LOGISTICS_FORECAST_LIMIT", "50"))
DASHBOARD_SUPPLY_DAYS = 7
SAME_DAY_POLICY = SameDayPolicy(os.getenv("LOGISTICS_SAME_DAY_POLICY", SameDayPolicy.INCOMING_FIRST.value))

OPEN_ORDER_STATUSES = ("CONFIRMED", "PROCESSING", "READY")


class LogisticsPlanningService:
    def __init__(self, db: Session, *, today: date | None = None, tenant_id: str | None = None):
        self.tenant_id = tenant_id or get_tenant_id()
        self.today = today or date.today()
        self.loader = SnapshotLoader(db, self.tenant_id)

    # ---- supply ----

    def list_incoming_supply(
        self,
        horizon_days: int = DEFAULT_HORIZON_DAYS,
        filters: SupplyFilters | None = None,
    ) -> list[SupplyEntry]:
        supply.check_horizon(horizon_days)
        filters = filters or SupplyFilters()
        self.loader.begin_snapshot()
        commitments = self.loader.inbound_commitments(filters.statuses)
        return supply.build_supply_ledger(commitments, today=self.today, horizon_days=horizon_days, filters=filters)

    # ---- demand ----

    def forecast_fulfillment(
        self,
        *,
        customer_id: str | None = None,
        limit: int | None = FORECAST_LIMIT,
        include_shipped: bool = False,
    ) -> list[FulfillmentResult]:
        if limit is not None and limit < 1:
            raise InvalidInput(f"limit must be >= 1, got {limit}")
        self.loader.begin_snapshot()
        statuses = OPEN_ORDER_STATUSES + (("SHIPPED",) if include_shipped else ())
        orders = self.loader.open_orders(statuses, customer_id=customer_id, limit=limit)
        if not orders:
            return []
        item_ids = {ln.item_id for o in orders for ln in o.lines}
        on_hand = self.loader.on_hand(item_ids)
        ledger = self.list_incoming_supply(
            FORECAST_SUPPLY_HORIZON_DAYS, SupplyFilters(item_ids=frozenset(item_ids)),
        )
        return allocation.forecast_fulfillment(on_hand, allocation.sort_demand(orders), ledger, self.today)

    def list_ready_to_ship(self, limit: int = FORECAST_LIMIT) -> list[ReadyToShipOrder]:
        if limit is None or limit < 1:
            raise InvalidInput(f"limit must be >= 1, got {limit}")
        self.loader.begin_snapshot()
        return self.loader.ready_to_ship(limit)

    # ---- production ----

    def check_production_readiness(
        self,
        *,
        statuses: Sequence[str] | None = None,
        horizon_days: int = DEFAULT_HORIZON_DAYS,
        production_order_id: str | None = None,
    ) -> list[ReadinessResult]:
        supply.check_horizon(horizon_days)
        self.loader.begin_snapshot()
        orders = self.loader.production_orders(
            tuple(statuses or readiness.OPEN_PRODUCTION_STATUSES),
            today=self.today,
            horizon_days=horizon_days,
            production_order_id=production_order_id,
        )
        if production_order_id and not orders:
            raise NotFound(f"production order {production_order_id} not found")
        orders = readiness.sort_production(orders)
        boms = self.loader.active_boms(o.product_id for o in orders)
        materials = {c.material_id for comps in boms.values() for c in comps}
        on_hand = self.loader.on_hand(materials) if materials else {}
        return [readiness.check_readiness(o, boms.get(o.product_id, ()), on_hand) for o in orders]

    # ---- timeline ----

    def project_material_timeline(
        self,
        item_id: str,
        horizon_days: int = DEFAULT_HORIZON_DAYS,
        same_day_policy: SameDayPolicy = SAME_DAY_POLICY,
    ) -> Timeline:
        supply.check_horizon(horizon_days)
        self.loader.begin_snapshot()
        item = self.loader.get_item(item_id)
        on_hand = self.loader.on_hand([item_id]).get(item_id, Decimal(0))
        ledger = self.list_incoming_supply(horizon_days, SupplyFilters(item_ids=frozenset({item_id})))
        orders = self.loader.production_orders(readiness.OPEN_PRODUCTION_STATUSES)
        boms = self.loader.active_boms(o.product_id for o in orders)
        consumption = readiness.consumption_for(orders, boms, item_id)
        return timeline.project_timeline(
            item, on_hand, ledger, consumption,
            today=self.today, horizon_days=horizon_days, same_day_policy=same_day_policy,
        )

    # ---- dashboard ----

    def compute_dashboard(self) -> DashboardSummary:
        self.loader.begin_snapshot()
        supply_week = self.list_incoming_supply(DASHBOARD_SUPPLY_DAYS)
        fulfillment = self.forecast_fulfillment(limit=None)
        production = self.check_production_readiness()
        return dashboard.compute_dashboard(supply_week, fulfillment, production, today=self.today)

    def get_dashboard(self, cache: CacheStore) -> tuple[DashboardSummary, bool]:
        return dashboard.cached_dashboard(
            self.compute_dashboard,
            cache=cache,
            key=dashboard.dashboard_cache_key(self.tenant_id),
        )

    def invalidate_dashboard_cache(self, cache: CacheStore) -> None:
        dashboard.invalidate_dashboard_cache(cache, self.tenant_id)
