"""
Purpose: Central configuration for scheduling behavior (single source of truth).
What it does:

Stores all tunable weights/caps used by a scheduling pass:

HIGH_PRIORITY_WEIGHT = 2.0
NORMAL_PRIORITY_WEIGHT = 1.0
AGING_CAP_HOURS = 168 (one week)
URGENCY_WEIGHT = 1.0 (only when an order carries a due date)
MAX_PLANNED = 500

Capacity per step lives here too (missing step = unlimited), either set directly
or derived from step durations, staff/machine counts and the shift (capacity.py).

Rule: No scheduling logic here, just parameters so you can tune without rewriting code.
The config is immutable and loaded once per pass.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from .capacity import ConstraintLevel, ShiftConfig, derive_step_capacities
from .exceptions import ProductConfigError


@dataclass(frozen=True)
class ScoringWeights:
    """
    Weights for the combined score:

        combined = priority_weight + aging_term + position_term + urgency_term

    aging_term grows with hours since the order was last touched and is capped
    at aging_weight. position_term slightly favors orders further down the
    pipeline so late-stage work is not starved by new starts. urgency_term is
    zero for orders without a due date.
    """

    # --- Priority ---
    high_priority_weight: float = 2.0
    normal_priority_weight: float = 1.0

    # --- Aging ---
    # aging_term = aging_weight * min(hours_since_update, aging_cap_hours) / aging_cap_hours
    aging_weight: float = 1.0
    aging_cap_hours: float = 168.0

    # --- Pipeline position ---
    # position_term = position_weight * index(next_step) / len(steps)
    position_weight: float = 0.5

    # --- Due date ---
    # urgency_term = urgency_weight * urgency / 100, where urgency is
    # 100 + days overdue, or max(0, 100 - 10 * days left)
    urgency_weight: float = 1.0

    def validate(self) -> None:
        if self.high_priority_weight < self.normal_priority_weight:
            raise ProductConfigError("high_priority_weight must be >= normal_priority_weight")

        if self.normal_priority_weight < 0:
            raise ProductConfigError("priority weights must be >= 0")

        if self.aging_weight < 0 or self.position_weight < 0 or self.urgency_weight < 0:
            raise ProductConfigError("aging_weight, position_weight and urgency_weight must be >= 0")

        if self.aging_cap_hours <= 0:
            raise ProductConfigError("aging_cap_hours must be > 0")


@dataclass(frozen=True)
class MaterialRuleParams:
    """
    Parameters for the default step-token material gate.
    """

    # If True: a Hold/QN token on ANY step blocks the order, not only on its next step.
    block_on_any_step: bool = False

    # Order columns that may carry a material readiness flag; the first one present wins.
    status_fields: Tuple[str, ...] = ("material_status", "Material_Status", "Material Status", "物料状态")

    # Values (case-insensitive) of the status column that mean "material is here".
    # Any other non-blank value blocks the order; blank means Unknown.
    ready_values: Tuple[str, ...] = ("ready", "ok", "available", "齐套")

    def validate(self) -> None:
        if not self.status_fields or not all(self.status_fields):
            raise ProductConfigError("material status_fields must name at least one column")


@dataclass(frozen=True)
class SchedulingConfig:
    """
    Per-product scheduling configuration.

    Notes:
    - capacity_by_step: max orders admitted to a step in one pass.
      Steps absent from the mapping are unlimited.
    - constraint_levels: how each resource-derived capacity was obtained
      (reported in step utilization only).
    - due_date_fields: order columns holding a due date for the urgency term.
    - max_planned: hard cap on the size of one plan (protects large snapshots).
    - monthly_target & weekend flags: only used to report a daily target
      next to the plan; they never change allocation.
    """

    capacity_by_step: Mapping[str, int] = field(default_factory=dict)
    scoring_weights: ScoringWeights = field(default_factory=ScoringWeights)
    material_rule: MaterialRuleParams = field(default_factory=MaterialRuleParams)

    constraint_levels: Mapping[str, ConstraintLevel] = field(default_factory=dict)
    due_date_fields: Tuple[str, ...] = ("due_date", "WO DUE", "WO_DUE", "到期日期")

    max_planned: Optional[int] = 500

    monthly_target: Optional[int] = None
    include_saturday: bool = False
    include_sunday: bool = False

    def __post_init__(self) -> None:
        # Freeze the mappings so nothing can change them mid-pass
        object.__setattr__(self, "capacity_by_step", MappingProxyType(dict(self.capacity_by_step)))
        object.__setattr__(self, "constraint_levels", MappingProxyType(dict(self.constraint_levels)))

    def capacity_for(self, step: str) -> Optional[int]:
        """Configured capacity for a step, or None when unlimited."""
        return self.capacity_by_step.get(step)

    def validate(self) -> None:
        """
        Basic sanity checks. Call once before a pass.
        """
        for step, capacity in self.capacity_by_step.items():
            if not _is_int(capacity):
                raise ProductConfigError(f"capacity for step {step!r} must be an int, got {capacity!r}")
            if capacity < 0:
                raise ProductConfigError(f"capacity for step {step!r} must be >= 0")

        if self.max_planned is not None:
            if not _is_int(self.max_planned) or self.max_planned < 0:
                raise ProductConfigError(f"max_planned must be an int >= 0, got {self.max_planned!r}")

        if self.monthly_target is not None:
            if not _is_int(self.monthly_target) or self.monthly_target < 0:
                raise ProductConfigError(f"monthly_target must be an int >= 0, got {self.monthly_target!r}")

        self.scoring_weights.validate()
        self.material_rule.validate()

    @classmethod
    def from_dict(cls, raw: Optional[Mapping[str, Any]]) -> SchedulingConfig:
        """
        Build a validated config from the JSON blob stored with a product.

        Accepts camelCase keys as stored by the web layer:
            {
              "capacityByStep": {"Assy": 4},
              "stepDurations": {"Wind": 0.5},          # hours per order
              "stepStaffCounts": {"Wind": 2},
              "stepMachineCounts": {"Test": 1},
              "shiftConfig": {"standardHours": 8, "overtimeHours": 2},
              "planningHours": 8,
              "scoringWeights": {"highPriorityWeight": 2.0, ...},
              "materialRuleParams": {"blockOnAnyStep": true, ...},
              "dueDateFields": ["WO DUE"],
              "maxPlanned": 500,
              "monthlyTarget": 1200,
              "includeSaturday": false,
              "includeSunday": false
            }
        Explicit capacityByStep entries win over resource-derived ones.
        Unknown keys are ignored. Any bad value raises ProductConfigError.
        """
        raw = raw or {}

        capacity: Dict[str, int] = {}
        levels: Dict[str, ConstraintLevel] = {}

        durations = _number_map(raw, "stepDurations")
        if durations:
            shift_raw = _mapping(raw, "shiftConfig")
            shift = ShiftConfig(**_pick(shift_raw, _SHIFT_KEYS, float))
            derived = derive_step_capacities(
                durations,
                staff_counts=_count_map(raw, "stepStaffCounts"),
                machine_counts=_count_map(raw, "stepMachineCounts"),
                shift=shift,
                planning_hours=_as_float("planningHours", raw.get("planningHours", 8.0)),
            )
            for step, cap in derived.items():
                levels[step] = cap.level
                if cap.orders is not None:
                    capacity[step] = cap.orders

        capacity.update(_count_map(raw, "capacityByStep"))

        weights = ScoringWeights(**_pick(_mapping(raw, "scoringWeights"), _WEIGHT_KEYS, float))

        material_kwargs = _pick(_mapping(raw, "materialRuleParams"), _MATERIAL_KEYS, None)
        if "block_on_any_step" in material_kwargs:
            material_kwargs["block_on_any_step"] = _as_bool("blockOnAnyStep", material_kwargs["block_on_any_step"])
        if "status_fields" in material_kwargs:
            material_kwargs["status_fields"] = _as_names("statusFields", material_kwargs["status_fields"])
        if "ready_values" in material_kwargs:
            material_kwargs["ready_values"] = _as_names("readyValues", material_kwargs["ready_values"])
        material = MaterialRuleParams(**material_kwargs)

        extra: Dict[str, Any] = {}
        if raw.get("dueDateFields") is not None:
            extra["due_date_fields"] = _as_names("dueDateFields", raw["dueDateFields"])

        config = cls(
            capacity_by_step=capacity,
            scoring_weights=weights,
            material_rule=material,
            constraint_levels=levels,
            max_planned=_as_count("maxPlanned", raw.get("maxPlanned", 500)),
            monthly_target=_as_count("monthlyTarget", raw.get("monthlyTarget")),
            include_saturday=_as_bool("includeSaturday", raw.get("includeSaturday", False)),
            include_sunday=_as_bool("includeSunday", raw.get("includeSunday", False)),
            **extra,
        )
        config.validate()
        return config


_WEIGHT_KEYS: Dict[str, str] = {
    "highPriorityWeight": "high_priority_weight",
    "normalPriorityWeight": "normal_priority_weight",
    "agingWeight": "aging_weight",
    "agingCapHours": "aging_cap_hours",
    "positionWeight": "position_weight",
    "urgencyWeight": "urgency_weight",
}

_MATERIAL_KEYS: Dict[str, str] = {
    "blockOnAnyStep": "block_on_any_step",
    "statusField": "status_fields",
    "statusFields": "status_fields",
    "readyValues": "ready_values",
}

_SHIFT_KEYS: Dict[str, str] = {
    "standardHours": "standard_hours",
    "overtimeHours": "overtime_hours",
}

_TRUE_STRINGS = ("true", "yes", "1", "on")
_FALSE_STRINGS = ("false", "no", "0", "off", "")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _mapping(raw: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = raw.get(key) or {}
    if not isinstance(value, Mapping):
        raise ProductConfigError(f"{key} must be an object, got {value!r}")
    return value


def _pick(raw: Mapping[str, Any], keys: Mapping[str, str], cast) -> Dict[str, Any]:
    picked: Dict[str, Any] = {}
    for camel, snake in keys.items():
        if camel in raw and raw[camel] is not None:
            value = raw[camel]
            if cast is not None:
                value = _as_float(camel, value) if cast is float else cast(value)
            picked[snake] = value
    return picked


def _as_float(name: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ProductConfigError(f"{name} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ProductConfigError(f"{name} must be a number, got {value!r}")


def _as_count(name: str, value: Any) -> Optional[int]:
    """
    Whole, non-fractional number (int, integral float, or numeric string). None passes through.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ProductConfigError(f"{name} must be an integer, got {value!r}")
    if _is_int(value):
        return value
    number = _as_float(name, value.strip() if isinstance(value, str) else value)
    if not number.is_integer():
        raise ProductConfigError(f"{name} must be a whole number, got {value!r}")
    return int(number)


def _as_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if _is_int(value) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        token = value.strip().lower()
        if token in _TRUE_STRINGS:
            return True
        if token in _FALSE_STRINGS:
            return False
    raise ProductConfigError(f"{name} must be a boolean, got {value!r}")


def _as_names(name: str, value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if isinstance(value, (list, tuple)):
        return tuple(str(v) for v in value)
    raise ProductConfigError(f"{name} must be a string or a list of strings, got {value!r}")


def _count_map(raw: Mapping[str, Any], key: str) -> Dict[str, int]:
    return {str(step): _as_count(f"{key}[{step!r}]", value) for step, value in _mapping(raw, key).items()
            if value is not None}


def _number_map(raw: Mapping[str, Any], key: str) -> Dict[str, float]:
    return {str(step): _as_float(f"{key}[{step!r}]", value) for step, value in _mapping(raw, key).items()
            if value is not None}


def default_config() -> SchedulingConfig:
    """
    Convenience factory for the default config (every step unlimited).
    """
    c = SchedulingConfig()
    c.validate()
    return c


def constrained_config(capacity_by_step: Mapping[str, int], **overrides: Any) -> SchedulingConfig:
    """
    Example: a line with explicit per-step capacities, everything else default.
    """
    c = SchedulingConfig(capacity_by_step=capacity_by_step, **overrides)
    c.validate()
    return c
