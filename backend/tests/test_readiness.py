from conftest import D, at, day
from services.logistics.readiness import (
    check_readiness,
    consumption_for,
    sort_production,
    summarize_readiness,
)
from services.logistics.types import BOMComponent, PriorityClass, ProductionOrderSnapshot


def mo(oid, qty=5, status="PLANNED", priority="NORMAL", end=None, minute=0, product="P", start=None):
    return ProductionOrderSnapshot(
        production_order_id=oid, order_number=f"MO-{oid}", product_id=product, quantity=D(qty),
        status=status, priority=priority, planned_start_date=start, planned_end_date=end, created_at=at(minute),
    )


BOM = (BOMComponent("M", D(2), "Steel", "STL"), BOMComponent("B", D(1), "Bolt", "BLT"))


def test_single_shortage_for_scarce_material():
    r = check_readiness(mo("1", qty=5), BOM, {"M": D(4), "B": D(50)})
    assert not r.materials_ready
    (s,) = r.shortages
    assert (s.material_id, s.required_quantity, s.available_quantity, s.shortage_quantity) == ("M", D(10), D(4), D(6))


def test_orders_do_not_share_a_depleting_pool():
    on_hand = {"M": D(10), "B": D(5)}
    results = [check_readiness(mo(str(i)), BOM, on_hand) for i in range(3)]
    assert all(r.materials_ready for r in results)


def test_missing_material_counts_as_zero_and_empty_bom_is_ready():
    r = check_readiness(mo("1", qty=1), BOM, {"M": D(2)})
    assert [s.material_id for s in r.shortages] == ["B"]
    assert check_readiness(mo("2"), (), {}).materials_ready


def test_numeric_priority_classification():
    assert check_readiness(mo("1", priority="9"), (), {}).priority == PriorityClass.HIGH
    assert check_readiness(mo("2", priority="2"), (), {}).priority == PriorityClass.LOW


def test_summary_ready_to_start_excludes_in_progress():
    on_hand = {"M": D(100), "B": D(100)}
    results = [
        check_readiness(mo("a", status="PLANNED"), BOM, on_hand),
        check_readiness(mo("b", status="IN_PROGRESS"), BOM, on_hand),
        check_readiness(mo("c", qty=1000), BOM, on_hand),
    ]
    s = summarize_readiness(results)
    assert (s.total_orders, s.ready_to_start, s.in_progress, s.waiting_materials) == (3, 1, 1, 1)


def test_sort_priority_then_planned_end():
    orders = [
        mo("late", end=day(9), minute=0),
        mo("undated", end=None, minute=0),
        mo("urgent", priority="URGENT", end=day(20), minute=5),
        mo("soon", end=day(2), minute=9),
    ]
    assert [o.production_order_id for o in sort_production(orders)] == ["urgent", "soon", "late", "undated"]


def test_consumption_expansion_uses_planned_start():
    orders = [mo("1", qty=3, start=day(1), end=day(4)), mo("2", qty=2, product="OTHER")]
    commitments = consumption_for(orders, {"P": BOM}, "M")
    assert [(c.production_order_id, c.required_quantity, c.planned_date) for c in commitments] == [("1", D(6), day(1))]
