"""
Purpose: Package entry + stable exports.
What it does:

Marks orders as a Python package.

Re-exports the public API so other modules can do:

from orders import Order, Product, plan_schedule

Should not contain business logic.

Work-order domain package.

Public API:
- Domain models: Order, Product, Priority, StepState, MaterialStatus
- Configuration: SchedulingConfig, ScoringWeights, MaterialRuleParams
- Resource capacity: ShiftConfig, ConstraintLevel, capacity_by_step_from_resources
- Scheduling entry: plan_schedule, SchedulingResult
"""
from .capacity import ConstraintLevel, ShiftConfig, capacity_by_step_from_resources
from .exceptions import MalformedOrderError, ProductConfigError, SchedulingError
from .models import MaterialStatus, Order, Priority, Product, StepState
from .policy import MaterialRuleParams, SchedulingConfig, ScoringWeights, default_config
from .scheduling import SchedulingResult, plan_schedule

__all__ = [
    "Order",
    "Product",
    "Priority",
    "StepState",
    "MaterialStatus",
    "SchedulingConfig",
    "ShiftConfig",
    "ConstraintLevel",
    "capacity_by_step_from_resources",
    "ScoringWeights",
    "MaterialRuleParams",
    "default_config",
    "SchedulingError",
    "ProductConfigError",
    "MalformedOrderError",
    "plan_schedule",
    "SchedulingResult",
]
