from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import OperationalError

from conftest import TODAY, day
from app.db.models.inventory import InventoryItem
from app.db.models.inventory_exec import InventoryBalance, WMSLocation
from app.db.models.mrp import MRPBOM, MRPBOMLine, MRPProductionOrder
from app.db.models.sales import SalesOrder, SalesOrderLine
from services.logistics.errors import InvalidInput, UpstreamUnavailable
from services.logistics.repository import SnapshotLoader
from services.logistics.service import LogisticsPlanningService


@pytest.fixture
def seeded(db):
    x = InventoryItem(item_code="X", description="Widget", meta={})
    m = InventoryItem(item_code="M", description="Steel", item_type="MATERIAL", meta={})
    loc = WMSLocation(code="MAIN", meta={})
    db.add_all([x, m, loc]); db.flush()
    db.add_all([
        InventoryBalance(item_id=x.id, location_id=loc.id, qty=Decimal(3), meta={}),
        InventoryBalance(item_id=x.id, location_id=loc.id, state="QUARANTINE", qty=Decimal(50), meta={}),
        InventoryBalance(item_id=m.id, location_id=loc.id, qty=Decimal(4), meta={}),
    ])
    for n in range(3):
        so = SalesOrder(order_number=f"SO-{n}", order_date=TODAY, status="CONFIRMED", billing_name=f"B{n}", meta={})
        db.add(so); db.flush()
        db.add(SalesOrderLine(order_id=so.id, line_number=1, item_id=x.id, quantity=Decimal(2), meta={}))
    bom = MRPBOM(bom_number="BOM-1", parent_item_id=x.id, meta={})
    db.add(bom); db.flush()
    db.add(MRPBOMLine(bom_id=bom.id, line_number=1, component_item_id=m.id, quantity_per=Decimal(2), meta={}))
    db.add_all([
        MRPProductionOrder(production_order_number="MO-near", item_id=x.id, ordered_quantity=Decimal(1),
                           planned_end_date=day(5), status="PLANNED", meta={}),
        MRPProductionOrder(production_order_number="MO-far", item_id=x.id, ordered_quantity=Decimal(1),
                           planned_end_date=day(90), status="PLANNED", meta={}),
        MRPProductionOrder(production_order_number="MO-done", item_id=x.id, ordered_quantity=Decimal(1),
                           planned_end_date=day(1), status="COMPLETED", meta={}),
    ])
    db.commit()
    return {"x": x.id, "m": m.id}


def test_only_available_stock_counts(db, seeded):
    svc = LogisticsPlanningService(db, today=TODAY)
    results = svc.forecast_fulfillment()
    assert [r.fulfillment_status.value for r in results] == ["READY", "BLOCKED", "BLOCKED"]


def test_forecast_is_repeatable_on_same_snapshot(db, seeded):
    svc = LogisticsPlanningService(db, today=TODAY)
    assert svc.forecast_fulfillment() == svc.forecast_fulfillment()


def test_limit_caps_orders(db, seeded):
    svc = LogisticsPlanningService(db, today=TODAY)
    assert len(svc.forecast_fulfillment(limit=2)) == 2
    with pytest.raises(InvalidInput):
        svc.forecast_fulfillment(limit=0)


def test_production_horizon_and_status_filter(db, seeded):
    svc = LogisticsPlanningService(db, today=TODAY)
    assert [r.order.order_number for r in svc.check_production_readiness()] == ["MO-near"]
    wide = svc.check_production_readiness(horizon_days=120)
    assert [r.order.order_number for r in wide] == ["MO-near", "MO-far"]
    assert all(r.materials_ready for r in wide)


def test_timeline_consumes_all_open_production(db, seeded):
    t = LogisticsPlanningService(db, today=TODAY).project_material_timeline(seeded["m"], horizon_days=120)
    assert [e.balance_after for e in t.events] == [Decimal(4), Decimal(2), Decimal(0)]
    assert t.projected_stockout == day(90)


def test_other_tenant_sees_nothing(db, seeded):
    svc = LogisticsPlanningService(db, today=TODAY, tenant_id="other")
    assert svc.forecast_fulfillment() == []
    assert svc.list_incoming_supply() == []


def test_dashboard_counts_every_open_order(db, seeded):
    for n in range(100):
        so = SalesOrder(order_number=f"SO-x{n}", order_date=TODAY, status="CONFIRMED", billing_name="B", meta={})
        db.add(so); db.flush()
        db.add(SalesOrderLine(order_id=so.id, line_number=1, item_id=seeded["x"], quantity=Decimal(2), meta={}))
    db.commit()
    s = LogisticsPlanningService(db, today=TODAY).compute_dashboard()
    assert s.fulfillment["ready_to_ship"] == 1
    assert s.fulfillment["blocked"] == 102


class RecordingSession:
    """Session stand-in that records how the snapshot transaction is opened."""

    def __init__(self, dialect="postgresql"):
        self.dialect = dialect
        self.calls = []

    def in_transaction(self):
        return "connection" in self.calls

    def get_bind(self):
        return SimpleNamespace(dialect=SimpleNamespace(name=self.dialect))

    def connection(self, execution_options=None):
        self.calls.append("connection")
        self.execution_options = execution_options

    def query(self, *args, **kwargs):
        self.calls.append("query")
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))


def test_snapshot_opens_repeatable_read_once():
    session = RecordingSession()
    loader = SnapshotLoader(session, "default")
    loader.begin_snapshot()
    loader.begin_snapshot()
    assert session.calls == ["connection"]
    assert session.execution_options == {"isolation_level": "REPEATABLE READ"}


def test_snapshot_leaves_sqlite_alone():
    session = RecordingSession(dialect="sqlite")
    SnapshotLoader(session, "default").begin_snapshot()
    assert session.calls == []


@pytest.mark.parametrize("operation", [
    lambda svc: svc.forecast_fulfillment(),
    lambda svc: svc.list_incoming_supply(),
    lambda svc: svc.check_production_readiness(),
    lambda svc: svc.project_material_timeline("M"),
    lambda svc: svc.list_ready_to_ship(),
    lambda svc: svc.compute_dashboard(),
])
def test_operations_read_inside_the_snapshot(operation):
    session = RecordingSession()
    with pytest.raises(UpstreamUnavailable):
        operation(LogisticsPlanningService(session, today=TODAY))
    assert session.calls == ["connection", "query"]
