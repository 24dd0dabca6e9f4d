"""Immutable value types for the logistics planning engine.

Built once per request from the relational snapshot; the engines only read
them. Quantities are Decimal, dates are datetime.date.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

ZERO = Decimal("0")


class PriorityClass(str, enum.Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class FulfillmentStatus(str, enum.Enum):
    READY = "READY"
    PARTIAL = "PARTIAL"
    WAITING_MATERIALS = "WAITING_MATERIALS"
    BLOCKED = "BLOCKED"


class EventKind(str, enum.Enum):
    CURRENT = "CURRENT"
    INCOMING = "INCOMING"
    CONSUMPTION = "CONSUMPTION"


class SameDayPolicy(str, enum.Enum):
    """Which event kind is applied first when INCOMING and CONSUMPTION share a date."""
    INCOMING_FIRST = "INCOMING_FIRST"
    CONSUMPTION_FIRST = "CONSUMPTION_FIRST"


# Sales order priority -> allocation rank (higher wins scarce stock)
PRIORITY_RANK = {"URGENT": 4, "HIGH": 3, "NORMAL": 2, "MEDIUM": 2, "LOW": 1}
DEFAULT_PRIORITY_RANK = 2


# ============= CATALOG =============

@dataclass(frozen=True)
class Item:
    id: str
    name: str
    code: str
    unit: str = "EA"
    min_stock: Decimal = ZERO
    reorder_point: Decimal | None = None

    @property
    def reorder_threshold(self) -> Decimal:
        # an unset or zero reorder point falls back to the minimum stock
        if self.reorder_point:
            return self.reorder_point
        return self.min_stock or ZERO


# ============= SUPPLY =============

@dataclass(frozen=True)
class InboundCommitment:
    purchase_order_id: str
    purchase_order_number: str
    line_id: str
    vendor_id: str
    vendor_name: str
    item_id: str
    item_name: str
    ordered_quantity: Decimal
    received_quantity: Decimal
    expected_arrival_date: date | None
    status: str
    delivery_status: str = "PENDING"
    unit_price: Decimal = ZERO
    created_at: datetime | None = None

    def __post_init__(self):
        if self.received_quantity > self.ordered_quantity:
            # over-receipts close the line; they never create negative pending
            object.__setattr__(self, "received_quantity", self.ordered_quantity)

    @property
    def pending_quantity(self) -> Decimal:
        return max(ZERO, self.ordered_quantity - self.received_quantity)


@dataclass(frozen=True)
class SupplyEntry:
    item_id: str
    pending_quantity: Decimal
    expected_arrival_date: date | None
    source_id: str
    source_number: str = ""
    line_id: str = ""
    item_name: str = ""
    vendor_id: str = ""
    vendor_name: str = ""
    delivery_status: str = "PENDING"
    ordered_quantity: Decimal = ZERO
    received_quantity: Decimal = ZERO
    unit_price: Decimal = ZERO


@dataclass(frozen=True)
class SupplyFilters:
    vendor_id: str | None = None
    item_ids: frozenset[str] | None = None
    statuses: frozenset[str] = frozenset({"CONFIRMED", "SENT", "PARTIALLY_RECEIVED"})


@dataclass(frozen=True)
class SupplySummary:
    total_orders: int
    pending_deliveries: int
    in_transit: int
    delayed: int
    total_pending_quantity: Decimal
    expected_this_week: int


@dataclass(frozen=True)
class InboundGroup:
    """All pending lines of one purchase order, in ledger order."""
    purchase_order_id: str
    purchase_order_number: str
    vendor_id: str
    vendor_name: str
    expected_arrival_date: date | None
    delivery_status: str
    entries: tuple[SupplyEntry, ...]


# ============= DEMAND =============

@dataclass(frozen=True)
class DemandLine:
    line_id: str
    item_id: str
    required_quantity: Decimal
    item_name: str = ""


@dataclass(frozen=True)
class DemandOrder:
    order_id: str
    order_number: str
    created_at: datetime
    lines: tuple[DemandLine, ...] = ()
    priority: str = "NORMAL"
    customer_name: str = "-"
    status: str = "CONFIRMED"
    total_amount: Decimal = ZERO

    @property
    def priority_rank(self) -> int:
        return PRIORITY_RANK.get(str(self.priority).upper(), DEFAULT_PRIORITY_RANK)


@dataclass(frozen=True)
class Shortage:
    item_id: str
    required_quantity: Decimal
    available_quantity: Decimal
    shortage_quantity: Decimal
    expected_arrival_date: date | None = None
    item_name: str = ""


@dataclass(frozen=True)
class Allocation:
    line_id: str
    item_id: str
    quantity: Decimal


@dataclass(frozen=True)
class FulfillmentResult:
    order_id: str
    order_number: str
    customer_name: str
    order_date: datetime
    status: str
    total_amount: Decimal
    priority: PriorityClass
    fulfillment_status: FulfillmentStatus
    ready_percentage: int
    shortages: tuple[Shortage, ...] = ()
    allocations: tuple[Allocation, ...] = ()
    estimated_fulfillment_date: date | None = None


@dataclass(frozen=True)
class ReadyToShipOrder:
    """Sales order already released to shipping (status READY)."""
    order_id: str
    order_number: str
    customer_name: str
    order_date: date
    priority: str
    total_amount: Decimal
    item_count: Decimal
    shipping_address: str = ""
    shipping_method: str | None = None


@dataclass(frozen=True)
class FulfillmentSummary:
    total_orders: int
    ready_to_ship: int
    partially_ready: int
    blocked: int
    waiting_materials: int


# ============= PRODUCTION =============

@dataclass(frozen=True)
class BOMComponent:
    material_id: str
    quantity_per: Decimal
    material_name: str = ""
    material_code: str = ""


@dataclass(frozen=True)
class ProductionOrderSnapshot:
    production_order_id: str
    order_number: str
    product_id: str
    quantity: Decimal
    status: str
    priority: str = "NORMAL"
    product_name: str = ""
    product_code: str = ""
    planned_start_date: date | None = None
    planned_end_date: date | None = None
    created_at: datetime | None = None
    linked_order_id: str | None = None
    linked_order_number: str | None = None

    @property
    def planned_date(self) -> date | None:
        return self.planned_start_date or self.planned_end_date


@dataclass(frozen=True)
class ConsumptionCommitment:
    production_order_id: str
    production_order_number: str
    material_id: str
    required_quantity: Decimal
    planned_date: date | None
    product_name: str = ""


@dataclass(frozen=True)
class MaterialShortage:
    material_id: str
    required_quantity: Decimal
    available_quantity: Decimal
    shortage_quantity: Decimal
    material_name: str = ""
    material_code: str = ""


@dataclass(frozen=True)
class ReadinessResult:
    order: ProductionOrderSnapshot
    priority: PriorityClass
    materials_ready: bool
    shortages: tuple[MaterialShortage, ...] = ()


@dataclass(frozen=True)
class ReadinessSummary:
    total_orders: int
    ready_to_start: int
    in_progress: int
    waiting_materials: int


# ============= TIMELINE =============

@dataclass(frozen=True)
class TimelineEvent:
    date: date
    kind: EventKind
    quantity: Decimal
    balance_after: Decimal
    description: str = ""
    source: str | None = None
    source_id: str | None = None


@dataclass(frozen=True)
class Timeline:
    item: Item
    current_stock: Decimal
    events: tuple[TimelineEvent, ...]
    projected_stockout: date | None = None
    suggested_reorder_date: date | None = None


# ============= DASHBOARD =============

@dataclass(frozen=True)
class Alert:
    type: str  # INFO|WARNING|ERROR
    message: str
    entity_type: str
    entity_id: str | None = None


@dataclass(frozen=True)
class DashboardSummary:
    incoming: dict
    fulfillment: dict
    production: dict
    alerts: tuple[Alert, ...] = field(default_factory=tuple)
    generated_on: date | None = None
