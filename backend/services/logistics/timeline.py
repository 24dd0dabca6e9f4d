from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable

from services.logistics.supply import check_horizon
from services.logistics.types import (
    ConsumptionCommitment,
    EventKind,
    Item,
    SameDayPolicy,
    SupplyEntry,
    Timeline,
    TimelineEvent,
)

logger = logging.getLogger(__name__)

_KIND_RANK = {
    SameDayPolicy.INCOMING_FIRST: {EventKind.INCOMING: 0, EventKind.CONSUMPTION: 1},
    SameDayPolicy.CONSUMPTION_FIRST: {EventKind.CONSUMPTION: 0, EventKind.INCOMING: 1},
}


def _first_date(events: Iterable[TimelineEvent], threshold: Decimal) -> date | None:
    for e in events:
        if e.balance_after <= threshold:
            return e.date
    return None


def project_timeline(
    item: Item,
    on_hand: Decimal,
    supply: Iterable[SupplyEntry],
    consumption: Iterable[ConsumptionCommitment],
    *,
    today: date,
    horizon_days: int,
    same_day_policy: SameDayPolicy = SameDayPolicy.INCOMING_FIRST,
) -> Timeline:
    """Project the stock balance of one item forward in time.

    Incoming supply adds, planned production consumes. Events dated after
    ``today + horizon_days`` are left out; supply without a known arrival
    date cannot be placed on the timeline and is skipped. Consumption
    without a planned date, and any overdue supply or consumption, is
    applied on ``today`` right after the current stock.
    """
    horizon_days = check_horizon(horizon_days)
    until = today + timedelta(days=horizon_days)

    pending: list[tuple[date, EventKind, Decimal, str, str, str]] = []
    for s in supply:
        if s.item_id != item.id or s.expected_arrival_date is None:
            continue
        if s.expected_arrival_date > until or s.pending_quantity <= 0:
            continue
        pending.append((max(s.expected_arrival_date, today), EventKind.INCOMING, s.pending_quantity,
                        f"Arrival from PO {s.source_number or s.source_id}", "PurchaseOrder", s.source_id))
    for c in consumption:
        if c.material_id != item.id:
            continue
        when = max(c.planned_date or today, today)
        if when > until:
            continue
        label = f"Production {c.production_order_number}"
        if c.product_name:
            label += f" - {c.product_name}"
        pending.append((when, EventKind.CONSUMPTION, -c.required_quantity, label,
                        "ProductionOrder", c.production_order_id))

    rank = _KIND_RANK[SameDayPolicy(same_day_policy)]
    order = sorted(range(len(pending)), key=lambda i: (pending[i][0], rank[pending[i][1]], i))

    events = [TimelineEvent(date=today, kind=EventKind.CURRENT, quantity=on_hand,
                            balance_after=on_hand, description="Current stock")]
    balance = on_hand
    for i in order:
        when, kind, qty, description, source, source_id = pending[i]
        balance += qty
        events.append(TimelineEvent(date=when, kind=kind, quantity=qty, balance_after=balance,
                                    description=description, source=source, source_id=source_id))

    logger.debug("timeline %s: %d events, closing balance %s", item.id, len(events), balance)
    if len(events) == 1:
        # nothing projected: only an already exhausted stock yields a date
        return Timeline(
            item=item,
            current_stock=on_hand,
            events=tuple(events),
            projected_stockout=today if on_hand <= 0 else None,
        )
    return Timeline(
        item=item,
        current_stock=on_hand,
        events=tuple(events),
        projected_stockout=_first_date(events, Decimal(0)),
        suggested_reorder_date=_first_date(events, item.reorder_threshold),
    )
