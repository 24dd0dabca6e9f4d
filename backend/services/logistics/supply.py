from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable

from services.logistics.errors import InvalidInput
from services.logistics.types import (
    ZERO,
    InboundCommitment,
    InboundGroup,
    SupplyEntry,
    SupplyFilters,
    SupplySummary,
)

logger = logging.getLogger(__name__)

IN_TRANSIT_STATUSES = {"SHIPPED", "IN_TRANSIT"}


def check_horizon(horizon_days: int) -> int:
    if horizon_days is None or int(horizon_days) < 0:
        raise InvalidInput(f"horizon must be >= 0 days, got {horizon_days}")
    return int(horizon_days)


def _ledger_key(indexed: tuple[int, InboundCommitment]):
    idx, c = indexed
    # dated first (ascending), unknown dates last; then creation order
    return (
        c.expected_arrival_date is None,
        c.expected_arrival_date or date.max,
        idx,
    )


def build_supply_ledger(
    commitments: Iterable[InboundCommitment],
    *,
    today: date,
    horizon_days: int,
    filters: SupplyFilters | None = None,
) -> list[SupplyEntry]:
    """Turn open purchase commitments into pending inbound quantities.

    ``commitments`` must be in creation order (purchase order created_at,
    then line number); that order breaks ties between equal arrival dates.
    Commitments without an arrival date are kept and sorted last.
    """
    horizon_days = check_horizon(horizon_days)
    filters = filters or SupplyFilters()
    until = today + timedelta(days=horizon_days)

    kept: list[tuple[int, InboundCommitment]] = []
    for idx, c in enumerate(commitments):
        if c.pending_quantity <= 0:
            continue
        if filters.statuses and c.status not in filters.statuses:
            continue
        if filters.vendor_id and c.vendor_id != filters.vendor_id:
            continue
        if filters.item_ids is not None and c.item_id not in filters.item_ids:
            continue
        if c.expected_arrival_date is not None and c.expected_arrival_date > until:
            continue
        kept.append((idx, c))

    kept.sort(key=_ledger_key)
    ledger = [
        SupplyEntry(
            item_id=c.item_id,
            pending_quantity=c.pending_quantity,
            expected_arrival_date=c.expected_arrival_date,
            source_id=c.purchase_order_id,
            source_number=c.purchase_order_number,
            line_id=c.line_id,
            item_name=c.item_name,
            vendor_id=c.vendor_id,
            vendor_name=c.vendor_name,
            delivery_status=c.delivery_status or "PENDING",
            ordered_quantity=c.ordered_quantity,
            received_quantity=c.received_quantity,
            unit_price=c.unit_price,
        )
        for _, c in kept
    ]
    logger.debug("supply ledger: %d open lines within %d days", len(ledger), horizon_days)
    return ledger


def due_within(entries: Iterable[SupplyEntry], *, today: date, days: int) -> list[SupplyEntry]:
    """Dated entries arriving on or before ``today + days``. Unknown dates never count."""
    until = today + timedelta(days=days)
    return [e for e in entries if e.expected_arrival_date is not None and e.expected_arrival_date <= until]


def group_by_purchase_order(entries: Iterable[SupplyEntry]) -> list[InboundGroup]:
    grouped: dict[str, list[SupplyEntry]] = {}
    for e in entries:
        grouped.setdefault(e.source_id, []).append(e)
    groups = []
    for po_id, rows in grouped.items():
        head = rows[0]
        groups.append(InboundGroup(
            purchase_order_id=po_id,
            purchase_order_number=head.source_number,
            vendor_id=head.vendor_id,
            vendor_name=head.vendor_name,
            expected_arrival_date=head.expected_arrival_date,
            delivery_status=head.delivery_status,
            entries=tuple(rows),
        ))
    return groups


def _is_delayed(group: InboundGroup, today: date) -> bool:
    if group.delivery_status == "DELAYED":
        return True
    return (
        group.expected_arrival_date is not None
        and group.expected_arrival_date < today
        and group.delivery_status != "DELIVERED"
    )


def summarize_supply(entries: Iterable[SupplyEntry], *, today: date) -> SupplySummary:
    """Pipeline counts per purchase order (not per line)."""
    entries = list(entries)
    groups = group_by_purchase_order(entries)
    week_ahead = today + timedelta(days=7)
    return SupplySummary(
        total_orders=len(groups),
        pending_deliveries=sum(1 for g in groups if g.delivery_status == "PENDING"),
        in_transit=sum(1 for g in groups if g.delivery_status in IN_TRANSIT_STATUSES),
        delayed=sum(1 for g in groups if _is_delayed(g, today)),
        total_pending_quantity=sum((e.pending_quantity for e in entries), ZERO),
        expected_this_week=sum(
            1 for g in groups
            if g.expected_arrival_date is not None and g.expected_arrival_date <= week_ahead
        ),
    )


def pending_value(entries: Iterable[SupplyEntry]) -> Decimal:
    return sum((e.pending_quantity * e.unit_price for e in entries), ZERO)
