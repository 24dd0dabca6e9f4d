import pytest

from conftest import TODAY, D, at, day
from app.core.cache import InMemoryCache
from services.logistics.dashboard import (
    cached_dashboard,
    compute_dashboard,
    dashboard_cache_key,
    invalidate_dashboard_cache,
)
from services.logistics.types import (
    FulfillmentResult,
    FulfillmentStatus,
    PriorityClass,
    ProductionOrderSnapshot,
    ReadinessResult,
    SupplyEntry,
)


def result(oid, status, pct, amount=100):
    return FulfillmentResult(
        order_id=oid, order_number=oid, customer_name="-", order_date=at(0), status="CONFIRMED",
        total_amount=D(amount), priority=PriorityClass.MEDIUM, fulfillment_status=status, ready_percentage=pct,
    )


def readiness(oid, ready, status="PLANNED"):
    order = ProductionOrderSnapshot(production_order_id=oid, order_number=oid, product_id="P",
                                    quantity=D(1), status=status)
    return ReadinessResult(order=order, priority=PriorityClass.MEDIUM, materials_ready=ready)


def summary():
    supply = [
        SupplyEntry("X", D(4), day(-1), "PO1", unit_price=D(2)),
        SupplyEntry("Y", D(1), day(3), "PO2", unit_price=D(10), delivery_status="IN_TRANSIT"),
    ]
    fulfillment = [
        result("A", FulfillmentStatus.READY, 100, amount=250),
        result("B", FulfillmentStatus.BLOCKED, 0),
        result("C", FulfillmentStatus.PARTIAL, 50),
    ]
    production = [readiness("M1", True), readiness("M2", False), readiness("M3", True, status="IN_PROGRESS")]
    return compute_dashboard(supply, fulfillment, production, today=TODAY)


class FlakyCache(InMemoryCache):
    def __init__(self, fail_get=False, fail_set=False, fail_delete=False):
        super().__init__()
        self.fail_get, self.fail_set, self.fail_delete = fail_get, fail_set, fail_delete

    def get(self, key):
        if self.fail_get:
            raise ConnectionError("cache down")
        return super().get(key)

    def set(self, key, value, ttl_seconds):
        if self.fail_set:
            raise ConnectionError("cache down")
        super().set(key, value, ttl_seconds)

    def delete(self, key):
        if self.fail_delete:
            raise ConnectionError("cache down")
        super().delete(key)


def test_kpis():
    s = summary()
    assert s.incoming == {"total_orders": 2, "expected_this_week": 2, "delayed": 1, "total_value": 18.0}
    assert s.fulfillment == {"ready_to_ship": 1, "ready_value": 250.0, "blocked": 1, "avg_fulfillment_rate": 50}
    assert s.production == {"active_orders": 3, "ready_to_start": 1, "waiting_materials": 1}
    assert [a.type for a in s.alerts] == ["WARNING", "ERROR", "WARNING"]


def test_empty_dashboard_has_full_rate_and_no_alerts():
    s = compute_dashboard([], [], [], today=TODAY)
    assert s.fulfillment["avg_fulfillment_rate"] == 100
    assert s.alerts == ()


def test_ready_to_ship_alert_above_five():
    fulfillment = [result(str(i), FulfillmentStatus.READY, 100) for i in range(6)]
    s = compute_dashboard([], fulfillment, [], today=TODAY)
    assert [a.type for a in s.alerts] == ["INFO"]


def test_miss_then_hit():
    cache = InMemoryCache()
    calls = []

    def compute():
        calls.append(1)
        return summary()

    first, cached = cached_dashboard(compute, cache=cache, key="k", ttl_seconds=60)
    assert not cached
    second, cached = cached_dashboard(compute, cache=cache, key="k", ttl_seconds=60)
    assert cached
    assert second == first
    assert len(calls) == 1


def test_entry_expires_after_ttl():
    now = [0.0]
    cache = InMemoryCache(clock=lambda: now[0])
    cached_dashboard(summary, cache=cache, key="k", ttl_seconds=60)
    now[0] = 61.0
    _, cached = cached_dashboard(summary, cache=cache, key="k", ttl_seconds=60)
    assert not cached


def test_read_failure_recomputes():
    s, cached = cached_dashboard(summary, cache=FlakyCache(fail_get=True), key="k")
    assert not cached
    assert s == summary()


def test_garbage_payload_recomputes():
    cache = InMemoryCache()
    cache.set("k", b"not json", 60)
    s, cached = cached_dashboard(summary, cache=cache, key="k")
    assert not cached
    assert s == summary()


def test_write_failure_is_ignored(caplog):
    s, cached = cached_dashboard(summary, cache=FlakyCache(fail_set=True), key="k")
    assert not cached
    assert s == summary()
    assert "cache write failed" in caplog.text


def test_invalidation_forces_recompute():
    cache = InMemoryCache()
    key = dashboard_cache_key("acme")
    cached_dashboard(summary, cache=cache, key=key)
    invalidate_dashboard_cache(cache, "acme")
    _, cached = cached_dashboard(summary, cache=cache, key=key)
    assert not cached


def test_invalidation_is_per_tenant():
    cache = InMemoryCache()
    cached_dashboard(summary, cache=cache, key=dashboard_cache_key("a"))
    invalidate_dashboard_cache(cache, "b")
    assert cache.get(dashboard_cache_key("a")) is not None


def test_invalidation_failure_is_swallowed():
    invalidate_dashboard_cache(FlakyCache(fail_delete=True), "default")


def test_in_memory_cache_rejects_non_positive_ttl():
    with pytest.raises(ValueError):
        InMemoryCache().set("k", b"v", 0)
