"""Greedy allocation of on-hand stock to open sales orders.

Orders are processed strictly in priority order and each one takes what it
needs from a shared pool before the next order looks at it, so the order of
consumption decides who wins scarce stock. Every step is a pure function of
(pool, order) and returns a new pool; the caller's mapping is never touched.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Mapping, Sequence

from services.logistics.types import (
    ZERO,
    Allocation,
    DemandOrder,
    FulfillmentResult,
    FulfillmentStatus,
    FulfillmentSummary,
    PriorityClass,
    Shortage,
    SupplyEntry,
)

logger = logging.getLogger(__name__)

HIGH_NUMERIC_PRIORITY = 8
LOW_NUMERIC_PRIORITY = 2


def classify_priority(raw) -> PriorityClass:
    """Display class for a sales or production order priority.

    Accepts the named levels (URGENT/HIGH/NORMAL/LOW) and the numeric 1-10
    scale some production orders still carry.
    """
    if raw is None:
        return PriorityClass.MEDIUM
    text = str(raw).strip().upper()
    if text in ("URGENT", "HIGH"):
        return PriorityClass.HIGH
    if text == "LOW":
        return PriorityClass.LOW
    try:
        n = int(text)
    except ValueError:
        return PriorityClass.MEDIUM
    if n >= HIGH_NUMERIC_PRIORITY:
        return PriorityClass.HIGH
    if n <= LOW_NUMERIC_PRIORITY:
        return PriorityClass.LOW
    return PriorityClass.MEDIUM


def sort_demand(orders: Iterable[DemandOrder]) -> list[DemandOrder]:
    """Priority descending, then oldest first, then order id."""
    return sorted(orders, key=lambda o: (-o.priority_rank, o.created_at, o.order_id))


def ready_percentage(covered: int, total: int) -> int:
    if total == 0:
        return 100
    pct = Decimal(covered) * 100 / Decimal(total)
    return int(pct.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def find_expected_arrival(ledger: Sequence[SupplyEntry], item_id: str, shortage: Decimal) -> date | None:
    """First dated ledger entry for the item that covers the whole shortage.

    The ledger is already sorted by arrival date, so first fit is also the
    earliest. A shortage is never split across several arrivals.
    """
    for entry in ledger:
        if entry.item_id != item_id or entry.expected_arrival_date is None:
            continue
        if entry.pending_quantity >= shortage:
            return entry.expected_arrival_date
    return None


def _status(shortages: list[Shortage], covered: int) -> FulfillmentStatus:
    if not shortages:
        return FulfillmentStatus.READY
    if covered > 0:
        return FulfillmentStatus.PARTIAL
    if all(s.expected_arrival_date is not None for s in shortages):
        return FulfillmentStatus.WAITING_MATERIALS
    return FulfillmentStatus.BLOCKED


def _estimated_date(status: FulfillmentStatus, shortages: list[Shortage], today: date) -> date | None:
    if status == FulfillmentStatus.READY:
        return today
    dates = [s.expected_arrival_date for s in shortages]
    if dates and all(d is not None for d in dates):
        # cannot ship before the slowest shortfall arrives
        return max(dates)
    return None


def allocate_order(
    on_hand: Mapping[str, Decimal],
    order: DemandOrder,
    ledger: Sequence[SupplyEntry],
    today: date,
) -> tuple[FulfillmentResult, dict[str, Decimal]]:
    """Allocate one order against the pool; returns the result and the remaining pool."""
    pool = dict(on_hand)
    shortages: list[Shortage] = []
    allocations: list[Allocation] = []
    covered_lines = 0

    for line in order.lines:
        available = pool.get(line.item_id, ZERO)
        required = line.required_quantity
        if required <= 0:
            covered_lines += 1
            continue
        if available >= required:
            pool[line.item_id] = available - required
            allocations.append(Allocation(line.line_id, line.item_id, required))
            covered_lines += 1
            continue

        covered = max(available, ZERO)
        short = required - covered
        pool[line.item_id] = ZERO
        if covered > 0:
            allocations.append(Allocation(line.line_id, line.item_id, covered))
        shortages.append(Shortage(
            item_id=line.item_id,
            item_name=line.item_name,
            required_quantity=required,
            available_quantity=covered,
            shortage_quantity=short,
            expected_arrival_date=find_expected_arrival(ledger, line.item_id, short),
        ))

    status = _status(shortages, covered_lines)
    result = FulfillmentResult(
        order_id=order.order_id,
        order_number=order.order_number,
        customer_name=order.customer_name,
        order_date=order.created_at,
        status=order.status,
        total_amount=order.total_amount,
        priority=classify_priority(order.priority),
        fulfillment_status=status,
        ready_percentage=ready_percentage(covered_lines, len(order.lines)),
        shortages=tuple(shortages),
        allocations=tuple(allocations),
        estimated_fulfillment_date=_estimated_date(status, shortages, today),
    )
    return result, pool


def forecast_fulfillment(
    on_hand: Mapping[str, Decimal],
    orders: Sequence[DemandOrder],
    ledger: Sequence[SupplyEntry],
    today: date,
) -> list[FulfillmentResult]:
    """Fold ``allocate_order`` over orders already sorted with ``sort_demand``."""
    pool: Mapping[str, Decimal] = on_hand
    results = []
    for order in orders:
        result, pool = allocate_order(pool, order, ledger, today)
        results.append(result)
    logger.debug("fulfillment forecast: %d orders, %d ready", len(results),
                 sum(1 for r in results if r.fulfillment_status == FulfillmentStatus.READY))
    return results


def summarize_fulfillment(results: Iterable[FulfillmentResult]) -> FulfillmentSummary:
    results = list(results)

    def count(status: FulfillmentStatus) -> int:
        return sum(1 for r in results if r.fulfillment_status == status)

    return FulfillmentSummary(
        total_orders=len(results),
        ready_to_ship=count(FulfillmentStatus.READY),
        partially_ready=count(FulfillmentStatus.PARTIAL),
        blocked=count(FulfillmentStatus.BLOCKED),
        waiting_materials=count(FulfillmentStatus.WAITING_MATERIALS),
    )
