"""
Purpose: Domain models for the work-order scheduling capability.
What it does:
- Defines core data structures:
- Order (wo_id, product_id, priority, timestamps, raw step record, details)
- Product (id, ordered pipeline steps, scheduling config, advisory settings)

Defines enums/constants:
- Priority = High | Normal
- StepState = NotStarted | Pending | InProgress | OnHold | QualityBlocked | Done
- MaterialStatus = Available | Blocked | Unknown

Rule: No scoring, no allocation. Models only.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Sequence, Tuple

from .exceptions import ProductConfigError
from .policy import SchedulingConfig

_HIGH_PRIORITY_TOKENS = ("high", "urgent", "紧急", "高")


class Priority(str, Enum):
    HIGH = "High"
    NORMAL = "Normal"

    @classmethod
    def parse(cls, value: Any) -> Priority:
        """
        Map the loose priority values found in shop-floor exports onto the
        closed enumeration. Anything that is not a high-priority marker is Normal.
        """
        if isinstance(value, Priority):
            return value
        if value is None:
            return cls.NORMAL
        token = str(value).strip().lower()
        if token == "3" or any(marker in token for marker in _HIGH_PRIORITY_TOKENS):
            return cls.HIGH
        return cls.NORMAL


class StepState(str, Enum):
    """
    Typed state of one pipeline step for one order.
    Done is terminal: the engine only reads it, never reverts it.
    """
    NOT_STARTED = "NotStarted"
    PENDING = "Pending"
    IN_PROGRESS = "InProgress"
    ON_HOLD = "OnHold"
    QUALITY_BLOCKED = "QualityBlocked"
    DONE = "Done"

    @property
    def is_blocking(self) -> bool:
        return self in (StepState.ON_HOLD, StepState.QUALITY_BLOCKED)


class MaterialStatus(str, Enum):
    AVAILABLE = "Available"
    BLOCKED = "Blocked"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class Order:
    """
    Read-only snapshot of one work order.

    step_record maps step name -> raw token exactly as stored ("", "P", "WIP",
    "Hold", "QN", "02-Jan, 19:30", ...). Anything that is not a mapping is
    kept as-is so the planner can report the order as malformed.
    """

    wo_id: str
    product_id: str
    priority: Priority
    created_at: datetime
    updated_at: datetime
    step_record: Any = field(default_factory=dict)

    # Extra free-form columns (e.g. a material status column). Read only by material gates.
    details: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def new(
        cls,
        wo_id: str,
        product_id: str,
        *,
        priority: Any = Priority.NORMAL,
        created_at: datetime,
        updated_at: Optional[datetime] = None,
        step_record: Any = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> Order:
        """
        Factory for loosely-typed inputs (imports, API payloads, tests).
        updated_at defaults to created_at when the order was never touched.
        """
        if step_record is None:
            step_record = {}
        elif isinstance(step_record, Mapping):
            step_record = MappingProxyType(dict(step_record))

        return cls(
            wo_id=str(wo_id),
            product_id=str(product_id),
            priority=Priority.parse(priority),
            created_at=created_at,
            updated_at=updated_at if updated_at is not None else created_at,
            step_record=step_record,
            details=MappingProxyType(dict(details or {})),
        )


@dataclass(frozen=True)
class Product:
    """
    A production line: a fixed, ordered pipeline of steps plus its scheduling config.

    steps=None means the product has no pipeline definable at all (configuration error);
    an empty tuple is a valid (if useless) pipeline that schedules nothing.
    """

    id: str
    steps: Optional[Tuple[str, ...]]
    scheduling_config: SchedulingConfig = field(default_factory=SchedulingConfig)
    name: str = ""

    # Advisory-only settings. Never read by the allocator.
    custom_instructions: Optional[str] = None
    ai_model: Optional[str] = None
    ai_provider: Optional[str] = None

    @classmethod
    def new(
        cls,
        product_id: str,
        steps: Optional[Sequence[str]],
        *,
        scheduling_config: Optional[SchedulingConfig | Mapping[str, Any]] = None,
        **kwargs: Any,
    ) -> Product:
        if scheduling_config is None:
            scheduling_config = SchedulingConfig()
        elif not isinstance(scheduling_config, SchedulingConfig):
            scheduling_config = SchedulingConfig.from_dict(scheduling_config)

        return cls(
            id=str(product_id),
            steps=tuple(steps) if steps is not None else None,
            scheduling_config=scheduling_config,
            **kwargs,
        )

    def validate(self) -> None:
        """
        Raise ProductConfigError if the pipeline cannot be scheduled at all.
        """
        if self.steps is None:
            raise ProductConfigError(f"Product {self.id} has no steps configured", product_id=self.id)

        seen = set()
        for step in self.steps:
            if not isinstance(step, str) or not step.strip():
                raise ProductConfigError(f"Product {self.id} has a blank step name", product_id=self.id)
            if step in seen:
                raise ProductConfigError(f"Product {self.id} has duplicate step {step!r}", product_id=self.id)
            seen.add(step)

        self.scheduling_config.validate()
