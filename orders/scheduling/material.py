"""
Purpose: Material readiness gate (precondition for admission).
What it does:
- Defines the MaterialGate capability: (order, product, step states) -> MaterialStatus
- StepTokenMaterialGate: default rule driven by the snapshot itself
    * Hold/QN on the next step (or any step, if configured) -> Blocked
    * material column (first of status_fields present) holds a ready value -> Available
    * material column holds anything else -> Blocked
    * material column blank/absent -> Unknown
- SignalMaterialGate: precomputed external availability signal keyed by WO id
    (unrecognised signal values degrade to Unknown, logged)

Rule: Gates are pure over the snapshot they are given. No I/O during a pass.
Unknown is admitted like Available; the planner surfaces it separately.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Protocol

from ..models import MaterialStatus, Order, Product, StepState
from ..step_state import classify, first_open_step

logger = logging.getLogger(__name__)


class MaterialGate(Protocol):
    def status(
        self,
        order: Order,
        product: Product,
        states: Mapping[str, StepState],
    ) -> MaterialStatus:
        ...


class StepTokenMaterialGate:
    """
    Readiness from step tokens plus an optional material column on the order.
    Parameters come from product.scheduling_config.material_rule.
    """

    def status(
        self,
        order: Order,
        product: Product,
        states: Mapping[str, StepState],
    ) -> MaterialStatus:
        rule = product.scheduling_config.material_rule
        steps = product.steps or ()

        if rule.block_on_any_step:
            if any(states[step].is_blocking for step in steps):
                return MaterialStatus.BLOCKED
        else:
            current = first_open_step(states, steps)
            if current is not None and states[current].is_blocking:
                return MaterialStatus.BLOCKED

        value = _first_filled(order.details, rule.status_fields)
        if value is None:
            return MaterialStatus.UNKNOWN

        ready = {v.strip().lower() for v in rule.ready_values}
        if value.lower() in ready:
            return MaterialStatus.AVAILABLE
        return MaterialStatus.BLOCKED


@dataclass(frozen=True)
class SignalMaterialGate:
    """
    Material availability supplied by an external system, captured before the pass.

    Orders the signal does not mention fall through to `fallback`
    (or Unknown when no fallback is given).
    """
    signal: Mapping[str, MaterialStatus] = field(default_factory=dict)
    fallback: Optional[MaterialGate] = None

    def status(
        self,
        order: Order,
        product: Product,
        states: Mapping[str, StepState],
    ) -> MaterialStatus:
        known = self.signal.get(order.wo_id)
        if known is not None:
            return _signal_status(order.wo_id, known)
        if self.fallback is not None:
            return self.fallback.status(order, product, states)
        return MaterialStatus.UNKNOWN


def _first_filled(details: Mapping[str, Any], fields) -> Optional[str]:
    for name in fields:
        raw = details.get(name)
        if raw is None:
            continue
        value = str(raw).strip()
        if value and value.lower() != "nan":
            return value
    return None


def _signal_status(wo_id: str, value: Any) -> MaterialStatus:
    """
    Accept enum members or their names/values in any case ("blocked", "AVAILABLE").
    Anything else is logged and treated as Unknown.
    """
    if isinstance(value, MaterialStatus):
        return value
    token = str(value).strip().lower()
    for status in MaterialStatus:
        if token in (status.value.lower(), status.name.lower()):
            return status
    logger.warning("Unrecognised material signal %r for WO %s; treating as Unknown", value, wo_id)
    return MaterialStatus.UNKNOWN


def default_gate() -> MaterialGate:
    return StepTokenMaterialGate()


def material_status(
    order: Order,
    product: Product,
    states: Optional[Mapping[str, StepState]] = None,
    *,
    gate: Optional[MaterialGate] = None,
) -> MaterialStatus:
    """
    Convenience entry point: classify if needed and apply the gate (default rule if omitted).
    """
    if states is None:
        states = classify(order, product.steps or ())
    return (gate or default_gate()).status(order, product, states)
