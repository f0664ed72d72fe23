"""
Scheduling subpackage for the Orders domain.

Public API:
- plan_schedule
- SchedulingResult, ScheduleSummary, PlannedOrder, SkippedOrder, SkipReason
- score_order, ScoreResult
- allocate, AllocationResult
- MaterialGate, StepTokenMaterialGate, SignalMaterialGate
"""

from .allocation import AllocationResult, allocate, sort_scored
from .material import MaterialGate, SignalMaterialGate, StepTokenMaterialGate, material_status
from .planner import (
    PlannedOrder,
    ScheduleSummary,
    SchedulingResult,
    SkippedOrder,
    SkipReason,
    StepUtilization,
    plan_schedule,
)
from .scoring import ScoreResult, score_order

__all__ = [
    "plan_schedule",
    "SchedulingResult",
    "ScheduleSummary",
    "PlannedOrder",
    "SkippedOrder",
    "SkipReason",
    "StepUtilization",
    "score_order",
    "ScoreResult",
    "allocate",
    "sort_scored",
    "AllocationResult",
    "MaterialGate",
    "StepTokenMaterialGate",
    "SignalMaterialGate",
    "material_status",
]
