from decimal import Decimal

import pytest

from conftest import TODAY, D, day
from services.logistics.errors import InvalidInput
from services.logistics.supply import (
    build_supply_ledger,
    due_within,
    group_by_purchase_order,
    pending_value,
    summarize_supply,
)
from services.logistics.types import InboundCommitment, SupplyFilters


def commitment(po="PO1", line="L1", item="X", ordered=10, received=0, eta=None, status="CONFIRMED",
               vendor="V1", delivery="PENDING", price=1):
    return InboundCommitment(
        purchase_order_id=po,
        purchase_order_number=f"N-{po}",
        line_id=line,
        vendor_id=vendor,
        vendor_name=f"Vendor {vendor}",
        item_id=item,
        item_name=f"Item {item}",
        ordered_quantity=D(ordered),
        received_quantity=D(received),
        expected_arrival_date=eta,
        status=status,
        delivery_status=delivery,
        unit_price=D(price),
    )


def test_pending_is_ordered_minus_received():
    ledger = build_supply_ledger([commitment(ordered=10, received=4, eta=day(3))], today=TODAY, horizon_days=30)
    assert [e.pending_quantity for e in ledger] == [Decimal(6)]


def test_over_received_line_is_clamped_and_dropped():
    c = commitment(ordered=10, received=12, eta=day(1))
    assert c.received_quantity == D(10)
    assert c.pending_quantity == 0
    assert build_supply_ledger([c], today=TODAY, horizon_days=30) == []


def test_default_statuses_exclude_draft_and_received():
    rows = [
        commitment(po="A", status="DRAFT", eta=day(1)),
        commitment(po="B", status="SENT", eta=day(1)),
        commitment(po="C", status="RECEIVED", eta=day(1)),
        commitment(po="D", status="PARTIALLY_RECEIVED", eta=day(1)),
    ]
    ledger = build_supply_ledger(rows, today=TODAY, horizon_days=30)
    assert [e.source_id for e in ledger] == ["B", "D"]


def test_vendor_and_item_filters():
    rows = [
        commitment(po="A", vendor="V1", item="X", eta=day(1)),
        commitment(po="B", vendor="V2", item="X", eta=day(1)),
        commitment(po="C", vendor="V1", item="Y", eta=day(1)),
    ]
    ledger = build_supply_ledger(rows, today=TODAY, horizon_days=30,
                                 filters=SupplyFilters(vendor_id="V1", item_ids=frozenset({"X"})))
    assert [e.source_id for e in ledger] == ["A"]


def test_horizon_drops_late_arrivals_but_keeps_undated():
    rows = [
        commitment(po="late", eta=day(31)),
        commitment(po="edge", eta=day(30)),
        commitment(po="undated", eta=None),
    ]
    ledger = build_supply_ledger(rows, today=TODAY, horizon_days=30)
    assert [e.source_id for e in ledger] == ["edge", "undated"]


def test_ordering_by_date_then_creation_order():
    rows = [
        commitment(po="u1", eta=None),
        commitment(po="b", eta=day(5)),
        commitment(po="a1", eta=day(2)),
        commitment(po="a2", eta=day(2)),
        commitment(po="u2", eta=None),
    ]
    ledger = build_supply_ledger(rows, today=TODAY, horizon_days=30)
    assert [e.source_id for e in ledger] == ["a1", "a2", "b", "u1", "u2"]


def test_negative_horizon_is_invalid():
    with pytest.raises(InvalidInput):
        build_supply_ledger([], today=TODAY, horizon_days=-1)


def test_empty_input_yields_empty_ledger():
    assert build_supply_ledger([], today=TODAY, horizon_days=0) == []


def test_due_within_ignores_undated():
    ledger = build_supply_ledger(
        [commitment(po="a", eta=day(3)), commitment(po="b", eta=day(9)), commitment(po="c")],
        today=TODAY, horizon_days=30,
    )
    assert [e.source_id for e in due_within(ledger, today=TODAY, days=7)] == ["a"]


def test_summary_counts_per_purchase_order():
    rows = [
        commitment(po="P1", line="1", eta=day(-2), delivery="PENDING"),
        commitment(po="P1", line="2", eta=day(-2), delivery="PENDING"),
        commitment(po="P2", eta=day(3), delivery="IN_TRANSIT"),
        commitment(po="P3", eta=day(20), delivery="DELAYED"),
        commitment(po="P4", eta=None, delivery="SHIPPED"),
    ]
    ledger = build_supply_ledger(rows, today=TODAY, horizon_days=30)
    s = summarize_supply(ledger, today=TODAY)
    assert s.total_orders == 4
    assert s.pending_deliveries == 1
    assert s.in_transit == 2
    assert s.delayed == 2  # P1 overdue, P3 flagged
    assert s.expected_this_week == 2
    assert s.total_pending_quantity == D(50)


def test_grouping_and_value():
    rows = [
        commitment(po="P1", line="1", item="X", ordered=4, price=2, eta=day(1)),
        commitment(po="P1", line="2", item="Y", ordered=3, price=5, eta=day(1)),
        commitment(po="P2", item="X", ordered=1, price=10, eta=day(2)),
    ]
    ledger = build_supply_ledger(rows, today=TODAY, horizon_days=30)
    groups = group_by_purchase_order(ledger)
    assert [(g.purchase_order_id, len(g.entries)) for g in groups] == [("P1", 2), ("P2", 1)]
    assert pending_value(ledger) == D(33)
