from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Mapping, Sequence

from services.logistics.allocation import classify_priority
from services.logistics.types import (
    ZERO,
    BOMComponent,
    ConsumptionCommitment,
    MaterialShortage,
    PriorityClass,
    ProductionOrderSnapshot,
    ReadinessResult,
    ReadinessSummary,
)

IN_PROGRESS = "IN_PROGRESS"
OPEN_PRODUCTION_STATUSES = ("DRAFT", "PLANNED", IN_PROGRESS)

_CLASS_RANK = {PriorityClass.HIGH: 3, PriorityClass.MEDIUM: 2, PriorityClass.LOW: 1}


def sort_production(orders: Iterable[ProductionOrderSnapshot]) -> list[ProductionOrderSnapshot]:
    """Priority descending, planned end ascending (unknown last), then oldest first."""
    def key(o: ProductionOrderSnapshot):
        return (
            -_CLASS_RANK[classify_priority(o.priority)],
            o.planned_end_date is None,
            o.planned_end_date,
            o.created_at is None,
            o.created_at,
            o.production_order_id,
        )
    return sorted(orders, key=key)


def check_readiness(
    order: ProductionOrderSnapshot,
    bom: Sequence[BOMComponent],
    on_hand: Mapping[str, Decimal],
) -> ReadinessResult:
    # Each production order is checked against the full balances; orders do
    # not deplete a shared pool here.
    shortages = []
    for comp in bom:
        required = comp.quantity_per * order.quantity
        available = on_hand.get(comp.material_id, ZERO)
        if available < required:
            shortages.append(MaterialShortage(
                material_id=comp.material_id,
                material_name=comp.material_name,
                material_code=comp.material_code,
                required_quantity=required,
                available_quantity=available,
                shortage_quantity=required - available,
            ))
    return ReadinessResult(
        order=order,
        priority=classify_priority(order.priority),
        materials_ready=not shortages,
        shortages=tuple(shortages),
    )


def consumption_for(
    orders: Iterable[ProductionOrderSnapshot],
    boms: Mapping[str, Sequence[BOMComponent]],
    material_id: str,
) -> list[ConsumptionCommitment]:
    """Expand production orders into dated demand on one material."""
    out = []
    for po in orders:
        for comp in boms.get(po.product_id, ()):
            if comp.material_id != material_id:
                continue
            out.append(ConsumptionCommitment(
                production_order_id=po.production_order_id,
                production_order_number=po.order_number,
                material_id=material_id,
                required_quantity=comp.quantity_per * po.quantity,
                planned_date=po.planned_date,
                product_name=po.product_name,
            ))
    return out


def summarize_readiness(results: Iterable[ReadinessResult]) -> ReadinessSummary:
    results = list(results)
    return ReadinessSummary(
        total_orders=len(results),
        ready_to_start=sum(1 for r in results if r.materials_ready and r.order.status != IN_PROGRESS),
        in_progress=sum(1 for r in results if r.order.status == IN_PROGRESS),
        waiting_materials=sum(1 for r in results if not r.materials_ready),
    )
