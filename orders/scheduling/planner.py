"""
Purpose: The scheduling "orchestrator" (single entry point).
What it does:

Coordinates one pass end-to-end for one product:

- validates the product pipeline/config (the only fatal condition)

- classifies every order's step record (step_state.py)

- sets completed and malformed orders aside (diagnostic counters)

- scores the rest and applies the material gate (scoring.py, material.py)

- allocates capacity per step (allocation.py)

- returns a SchedulingResult with the summary counters

Typical public function signature:

- plan_schedule(orders, product, now=...) -> SchedulingResult

Rule: Planner is the only file other modules should call directly for scheduling.
It never mutates the snapshot and never performs I/O.
"""

# orders/scheduling/planner.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Set

from ..capacity import ConstraintLevel
from ..exceptions import MalformedOrderError, ProductConfigError
from ..models import MaterialStatus, Order, Priority, Product
from ..step_state import classify, first_open_step
from .allocation import allocate
from .material import MaterialGate, default_gate
from .scoring import ScoreResult, score_order
from .targets import daily_capacity_from_monthly_goal

logger = logging.getLogger(__name__)


class SkipReason(str, Enum):
    CAPACITY = "capacity"
    MATERIAL = "material"


@dataclass(frozen=True)
class PlannedOrder:
    wo_id: str
    step: str
    score: float
    priority: Priority
    material_status: MaterialStatus

    def to_dict(self) -> Dict[str, Any]:
        return {
            "woId": self.wo_id,
            "stepName": self.step,
            "score": self.score,
            "priority": self.priority.value,
            "materialStatus": self.material_status.value,
        }


@dataclass(frozen=True)
class SkippedOrder:
    wo_id: str
    step: str
    score: float
    reason: SkipReason

    def to_dict(self) -> Dict[str, Any]:
        return {
            "woId": self.wo_id,
            "stepName": self.step,
            "score": self.score,
            "reason": self.reason.value,
        }


@dataclass(frozen=True)
class StepUtilization:
    step: str
    capacity: Optional[int]  # None = unlimited
    planned: int = 0

    # Set when the capacity was derived from durations / staff / machines
    constraint_level: Optional[ConstraintLevel] = None

    @property
    def is_unlimited(self) -> bool:
        return self.capacity is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "capacity": self.capacity,
            "count": self.planned,
            "isUnlimited": self.is_unlimited,
            "constraintLevel": self.constraint_level.value if self.constraint_level else None,
        }


@dataclass(frozen=True)
class ScheduleSummary:
    total_planned: int = 0
    high_priority_planned: int = 0
    skipped_due_to_capacity: int = 0
    skipped_due_to_material: int = 0

    # Diagnostics: orders that are not part of the plan accounting above
    completed: int = 0
    malformed: int = 0

    # Planned orders admitted without a positive material signal
    unknown_material_planned: int = 0

    # Reporting only: daily target derived from the monthly goal
    daily_target: Optional[int] = None
    planned_over_target: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalPlanned": self.total_planned,
            "highPriorityPlanned": self.high_priority_planned,
            "skippedDueToCapacity": self.skipped_due_to_capacity,
            "skippedDueToMaterial": self.skipped_due_to_material,
            "completed": self.completed,
            "malformed": self.malformed,
            "unknownMaterialPlanned": self.unknown_material_planned,
            "dailyTarget": self.daily_target,
            "plannedOverTarget": self.planned_over_target,
        }


@dataclass(frozen=True)
class SchedulingResult:
    """
    Output of one scheduling pass. Created fresh per call; never persisted here.
    """
    product_id: str
    summary: ScheduleSummary
    planned: List[PlannedOrder] = field(default_factory=list)
    skipped: List[SkippedOrder] = field(default_factory=list)
    completed: List[str] = field(default_factory=list)
    malformed: List[str] = field(default_factory=list)
    step_utilization: Dict[str, StepUtilization] = field(default_factory=dict)

    # Full scores of planned orders (ranked); consumed by the advisory bridge.
    scores: List[ScoreResult] = field(default_factory=list)

    def skipped_for(self, reason: SkipReason) -> List[SkippedOrder]:
        return [s for s in self.skipped if s.reason == reason]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "productId": self.product_id,
            "summary": self.summary.to_dict(),
            "recommendations": [p.to_dict() for p in self.planned],
            "skipped": [s.to_dict() for s in self.skipped],
            "completed": list(self.completed),
            "malformed": list(self.malformed),
            "stepUtilization": {step: u.to_dict() for step, u in self.step_utilization.items()},
        }


def plan_schedule(
    orders: Sequence[Order],
    product: Optional[Product],
    *,
    now: datetime,
    material_gate: Optional[MaterialGate] = None,
) -> SchedulingResult:
    """
    Main scheduling entry point (pure algorithm).

    Parameters
    ----------
    orders:
        Read-only snapshot of the product's work orders.
    product:
        Pipeline + scheduling config. None, or steps=None, is a configuration error.
    now:
        Wall-clock time of the pass, supplied by the caller.
    material_gate:
        Readiness rule. Defaults to StepTokenMaterialGate.

    Returns
    -------
    SchedulingResult:
        every order lands in exactly one of planned / skipped (capacity, material) /
        completed / malformed.

    Raises
    ------
    ProductConfigError:
        when no pipeline is definable for the product.
    """
    if product is None:
        raise ProductConfigError("No product configuration supplied")
    product.validate()

    steps = product.steps or ()
    config = product.scheduling_config
    gate = material_gate or default_gate()

    completed: List[str] = []
    malformed: List[str] = []
    scored: List[ScoreResult] = []
    seen: Set[str] = set()

    # 1) Classify + score, setting aside what cannot be scheduled
    for order in orders:
        if order.wo_id in seen:
            logger.warning("Duplicate WO %s in snapshot for product %s; ignoring repeat", order.wo_id, product.id)
            malformed.append(order.wo_id)
            continue
        seen.add(order.wo_id)

        try:
            states = classify(order, steps)
            if first_open_step(states, steps) is None:
                completed.append(order.wo_id)
                continue
            scored.append(score_order(order, product, now=now, states=states, material_gate=gate))
        except MalformedOrderError as exc:
            logger.warning("Excluding malformed order: %s", exc)
            malformed.append(order.wo_id)

    # 2) Greedy capacity allocation
    allocation = allocate(scored, config.capacity_by_step, max_planned=config.max_planned)

    # 3) Assemble result
    planned = [
        PlannedOrder(
            wo_id=s.wo_id,
            step=s.next_step,
            score=s.combined_score,
            priority=s.priority,
            material_status=s.material_status,
        )
        for s in allocation.planned
    ]

    skipped = [
        SkippedOrder(wo_id=s.wo_id, step=s.next_step, score=s.combined_score, reason=SkipReason.MATERIAL)
        for s in allocation.skipped_material
    ] + [
        SkippedOrder(wo_id=s.wo_id, step=s.next_step, score=s.combined_score, reason=SkipReason.CAPACITY)
        for s in allocation.skipped_capacity
    ]

    utilization = {
        step: StepUtilization(
            step=step,
            capacity=config.capacity_for(step),
            planned=allocation.admitted_by_step.get(step, 0),
            constraint_level=config.constraint_levels.get(step),
        )
        for step in steps
    }

    daily_target = daily_capacity_from_monthly_goal(
        config.monthly_target,
        now,
        include_saturday=config.include_saturday,
        include_sunday=config.include_sunday,
    )

    summary = ScheduleSummary(
        total_planned=len(planned),
        high_priority_planned=sum(1 for p in planned if p.priority == Priority.HIGH),
        skipped_due_to_capacity=len(allocation.skipped_capacity),
        skipped_due_to_material=len(allocation.skipped_material),
        completed=len(completed),
        malformed=len(malformed),
        unknown_material_planned=sum(1 for p in planned if p.material_status == MaterialStatus.UNKNOWN),
        daily_target=daily_target,
        planned_over_target=max(0, len(planned) - daily_target) if daily_target else 0,
    )

    logger.info(
        "Scheduled product %s: planned=%d high=%d cap_skip=%d mat_skip=%d completed=%d malformed=%d",
        product.id,
        summary.total_planned,
        summary.high_priority_planned,
        summary.skipped_due_to_capacity,
        summary.skipped_due_to_material,
        summary.completed,
        summary.malformed,
    )

    return SchedulingResult(
        product_id=product.id,
        summary=summary,
        planned=planned,
        skipped=skipped,
        completed=completed,
        malformed=malformed,
        step_utilization=utilization,
        scores=list(allocation.planned),
    )
