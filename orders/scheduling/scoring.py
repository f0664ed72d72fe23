"""
Purpose: Rank work orders for the next scheduling pass.
What it does:

Computes for each order with an actionable next step:

priority_term = high/normal priority weight

aging_term = aging_weight * min(hours_since_update, cap) / cap

position_term = position_weight * index(next_step) / len(steps)

urgency_term = urgency_weight * urgency / 100, from the order's due date:
    overdue (days_left <= 0)  -> urgency = 100 + days overdue
    otherwise                 -> urgency = max(0, 100 - 10 * days_left)
    no/unparsable due date    -> 0

combined_score = priority_term + aging_term + position_term + urgency_term

Outputs:

ScoreResult per order (not yet admitted to any step)

Rule: Scoring ranks orders; it does not look at capacity. "now" is always
passed in so a pass is reproducible.
"""

# orders/scheduling/scoring.py

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Mapping, Optional, Sequence

from ..exceptions import MalformedOrderError
from ..models import MaterialStatus, Order, Priority, Product, StepState
from ..policy import ScoringWeights
from ..step_state import classify, first_open_step
from .material import MaterialGate, material_status

logger = logging.getLogger(__name__)

_DUE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M",
    "%d/%m/%Y",
)


@dataclass(frozen=True)
class ScoreResult:
    """
    Scored order for one pass. next_step is None only for completed orders,
    which are never scored.
    """
    wo_id: str
    next_step: Optional[str]
    combined_score: float
    material_status: MaterialStatus

    # Tie-break + reporting inputs
    priority: Priority
    created_at: datetime
    step_index: int = 0
    due_at: Optional[datetime] = None

    # Diagnostics (useful for the advisory prompt and for tuning weights)
    priority_term: float = 0.0
    aging_term: float = 0.0
    position_term: float = 0.0
    urgency_term: float = 0.0

    @property
    def is_blocked(self) -> bool:
        return self.material_status == MaterialStatus.BLOCKED


def as_utc(moment: datetime) -> datetime:
    """
    Naive timestamps are taken to be UTC so mixed snapshots compare cleanly.
    """
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def hours_since(moment: datetime, now: datetime) -> float:
    """Hours elapsed from moment to now, never negative."""
    delta = as_utc(now) - as_utc(moment)
    return max(0.0, delta.total_seconds() / 3600.0)


def parse_due_date(raw: Any) -> Optional[datetime]:
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, date):
        return datetime(raw.year, raw.month, raw.day)

    text = str(raw).strip()
    if not text or text.lower() == "nan":
        return None
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    for fmt in _DUE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def due_date_of(order: Order, fields: Sequence[str]) -> Optional[datetime]:
    """
    Due date from the first of `fields` that holds a value. Unparsable values
    are logged and ignored (no urgency), they never make the order malformed.
    """
    for name in fields:
        raw = order.details.get(name)
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            continue
        due = parse_due_date(raw)
        if due is None:
            logger.warning("WO %s: unparsable due date %r in %r; ignoring", order.wo_id, raw, name)
        return due
    return None


def days_until(due: datetime, now: datetime) -> int:
    """Whole days from now to due, rounded up (negative when overdue)."""
    seconds = (as_utc(due) - as_utc(now)).total_seconds()
    return math.ceil(seconds / 86400.0)


def priority_term(priority: Priority, weights: ScoringWeights) -> float:
    if priority == Priority.HIGH:
        return weights.high_priority_weight
    return weights.normal_priority_weight


def aging_term(updated_at: datetime, now: datetime, weights: ScoringWeights) -> float:
    hours = min(hours_since(updated_at, now), weights.aging_cap_hours)
    return weights.aging_weight * hours / weights.aging_cap_hours


def position_term(step_index: int, step_count: int, weights: ScoringWeights) -> float:
    if step_count <= 0:
        return 0.0
    return weights.position_weight * step_index / step_count


def urgency_term(due_at: Optional[datetime], now: datetime, weights: ScoringWeights) -> float:
    if due_at is None:
        return 0.0
    days_left = days_until(due_at, now)
    if days_left <= 0:
        urgency = 100.0 + abs(days_left)
    else:
        urgency = max(0.0, 100.0 - days_left * 10.0)
    return weights.urgency_weight * urgency / 100.0


def score_order(
    order: Order,
    product: Product,
    *,
    now: datetime,
    states: Optional[Mapping[str, StepState]] = None,
    material_gate: Optional[MaterialGate] = None,
) -> ScoreResult:
    """
    Score one order against its product pipeline.

    Inputs:
      - order: snapshot of the work order.
      - product: supplies the pipeline, the scoring weights and the due-date columns.
      - now: wall-clock time of the pass (never read internally).
      - states: pre-classified step states (classified here if omitted).
      - material_gate: readiness rule; defaults to the step-token gate.

    Raises:
      - MalformedOrderError if the order snapshot cannot be interpreted.
      - ValueError if the order is already completed (nothing to score).
    """
    steps = product.steps or ()
    if states is None:
        states = classify(order, steps)

    nxt = first_open_step(states, steps)
    if nxt is None:
        raise ValueError(f"WO {order.wo_id} has no open step; completed orders are not scored")

    if not isinstance(order.created_at, datetime) or not isinstance(order.updated_at, datetime):
        raise MalformedOrderError(f"WO {order.wo_id}: created_at/updated_at must be datetimes", wo_id=order.wo_id)

    config = product.scheduling_config
    weights = config.scoring_weights
    index = steps.index(nxt)
    due = due_date_of(order, config.due_date_fields)

    p = priority_term(order.priority, weights)
    a = aging_term(order.updated_at, now, weights)
    pos = position_term(index, len(steps), weights)
    u = urgency_term(due, now, weights)

    return ScoreResult(
        wo_id=order.wo_id,
        next_step=nxt,
        combined_score=p + a + pos + u,
        material_status=material_status(order, product, states, gate=material_gate),
        priority=order.priority,
        created_at=order.created_at,
        step_index=index,
        due_at=due,
        priority_term=p,
        aging_term=a,
        position_term=pos,
        urgency_term=u,
    )
