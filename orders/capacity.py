"""
Purpose: Derive per-step order capacities from line resources.
What it does:

For each step with a known duration (hours per order):

- machines set      -> MachineAnchored: machines * planning_hours of run time
- else staff set    -> StaffLimited: staff * shift hours inside the planning horizon
- neither           -> TimeBound: duration known but nothing to bound it (unlimited)
- no duration       -> Unconstrained (unlimited)

orders = floor(available_minutes / (duration_hours * 60))

Rule: Pure arithmetic over the product settings. The resulting integer map feeds
SchedulingConfig.capacity_by_step; explicit capacities always win over derived ones.
"""

# orders/capacity.py

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Mapping, Optional

from .exceptions import ProductConfigError


class ConstraintLevel(str, Enum):
    UNCONSTRAINED = "unconstrained"
    MACHINE_ANCHORED = "machine_anchored"
    STAFF_LIMITED = "staff_limited"
    TIME_BOUND = "time_bound"

    @property
    def is_bounded(self) -> bool:
        return self in (ConstraintLevel.MACHINE_ANCHORED, ConstraintLevel.STAFF_LIMITED)


@dataclass(frozen=True)
class ShiftConfig:
    standard_hours: float = 8.0
    overtime_hours: float = 0.0

    @property
    def daily_hours(self) -> float:
        return self.standard_hours + self.overtime_hours

    def validate(self) -> None:
        if self.standard_hours < 0 or self.overtime_hours < 0:
            raise ProductConfigError("shift hours must be >= 0")
        if self.daily_hours <= 0 or self.daily_hours > 24:
            raise ProductConfigError("standard + overtime hours must be in (0, 24]")


@dataclass(frozen=True)
class StepCapacity:
    step: str
    level: ConstraintLevel
    available_minutes: Optional[float] = None  # None = unlimited
    orders: Optional[int] = None


def available_hours(level: ConstraintLevel, *, shift: ShiftConfig, planning_hours: float) -> float:
    """
    Working hours one resource unit offers inside the planning horizon.
    Machines run for the whole horizon; people work their shift each day.
    """
    if level == ConstraintLevel.MACHINE_ANCHORED:
        return planning_hours
    if planning_hours <= 24:
        return min(planning_hours, shift.daily_hours)
    return math.ceil(planning_hours / 24) * shift.daily_hours


def step_capacity(
    step: str,
    *,
    duration_hours: Optional[float],
    staff: Optional[int] = None,
    machines: Optional[int] = None,
    shift: Optional[ShiftConfig] = None,
    planning_hours: float = 8.0,
) -> StepCapacity:
    shift = shift or ShiftConfig()

    if not duration_hours:
        return StepCapacity(step=step, level=ConstraintLevel.UNCONSTRAINED)
    if duration_hours < 0:
        raise ProductConfigError(f"duration for step {step!r} must be >= 0")

    if machines:
        level, units = ConstraintLevel.MACHINE_ANCHORED, machines
    elif staff:
        level, units = ConstraintLevel.STAFF_LIMITED, staff
    else:
        return StepCapacity(step=step, level=ConstraintLevel.TIME_BOUND)

    if units < 0:
        raise ProductConfigError(f"resource count for step {step!r} must be >= 0")

    minutes = units * available_hours(level, shift=shift, planning_hours=planning_hours) * 60
    # small epsilon so 8h / (1/3)h does not land on 23.999...
    orders = math.floor(minutes / (duration_hours * 60) + 1e-9)
    return StepCapacity(step=step, level=level, available_minutes=minutes, orders=orders)


def derive_step_capacities(
    step_durations: Mapping[str, Optional[float]],
    *,
    staff_counts: Optional[Mapping[str, int]] = None,
    machine_counts: Optional[Mapping[str, int]] = None,
    shift: Optional[ShiftConfig] = None,
    planning_hours: float = 8.0,
) -> Dict[str, StepCapacity]:
    shift = shift or ShiftConfig()
    shift.validate()
    if planning_hours <= 0:
        raise ProductConfigError("planning_hours must be > 0")

    staff_counts = staff_counts or {}
    machine_counts = machine_counts or {}
    return {
        step: step_capacity(
            step,
            duration_hours=duration,
            staff=staff_counts.get(step),
            machines=machine_counts.get(step),
            shift=shift,
            planning_hours=planning_hours,
        )
        for step, duration in step_durations.items()
    }


def capacity_by_step_from_resources(
    step_durations: Mapping[str, Optional[float]],
    **kwargs,
) -> Dict[str, int]:
    """
    Integer capacity per resource-bounded step. Unbounded steps are left out (unlimited).
    """
    derived = derive_step_capacities(step_durations, **kwargs)
    return {step: cap.orders for step, cap in derived.items() if cap.orders is not None}
