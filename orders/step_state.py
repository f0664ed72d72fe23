"""
Purpose: Turn an order's free-form step record into typed per-step states.
What it does:
- parse_token: raw token -> StepState
    ""/RESET -> NotStarted, P -> Pending, WIP -> InProgress,
    HOLD -> OnHold, QN -> QualityBlocked, completion date / DONE / N/A -> Done
- classify: order -> {step: StepState} walking the product pipeline in order
- next_step: first step that is not Done (None means the order is completed)

Unknown tokens degrade to NotStarted (logged). A step record that is not a
mapping at all raises MalformedOrderError; the planner decides what to do with it.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional, Sequence

from .exceptions import MalformedOrderError
from .models import Order, StepState

logger = logging.getLogger(__name__)

_TOKENS: Dict[str, StepState] = {
    "": StepState.NOT_STARTED,
    "RESET": StepState.NOT_STARTED,
    "P": StepState.PENDING,
    "WIP": StepState.IN_PROGRESS,
    "HOLD": StepState.ON_HOLD,
    "QN": StepState.QUALITY_BLOCKED,
    "DONE": StepState.DONE,
    "N/A": StepState.DONE,
}

# Short UI timestamps carry no year; parsed against a leap year so 29-Feb is valid.
_SHORT_FORMATS = (
    "%d-%b, %H:%M",        # 02-Jan, 19:30
    "%d-%b,%H:%M",
)
_SHORT_YEAR = 2000

# Completion timestamps as written by Excel exports.
_DATE_FORMATS = (
    "%Y-%m-%d %H:%M",      # 2026-01-02 19:30
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d",
    "%Y/%m/%d %H:%M",
    "%Y/%m/%d",
)


def parse_completion_date(token: str) -> Optional[datetime]:
    """
    Return the completion timestamp encoded in a token, or None if it is not a date.
    """
    text = token.strip()
    for fmt in _SHORT_FORMATS:
        try:
            return datetime.strptime(f"{_SHORT_YEAR} {text}", f"%Y {fmt}")
        except ValueError:
            continue
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def parse_token(raw: Any, *, wo_id: str = "?", step: str = "?") -> StepState:
    """
    Parse one raw step token. Never raises: unknown tokens become NotStarted.
    """
    if raw is None:
        return StepState.NOT_STARTED

    if isinstance(raw, StepState):
        return raw

    # Date/datetime values come straight from spreadsheet imports
    if isinstance(raw, (datetime, date)):
        return StepState.DONE

    if isinstance(raw, float) and raw != raw:  # NaN from pandas
        return StepState.NOT_STARTED

    token = str(raw).strip()
    state = _TOKENS.get(token.upper())
    if state is not None:
        return state

    if parse_completion_date(token) is not None:
        return StepState.DONE

    logger.warning("Unrecognized token %r for WO %s step %s; treating as NotStarted", token, wo_id, step)
    return StepState.NOT_STARTED


def classify(order: Order, steps: Sequence[str]) -> Dict[str, StepState]:
    """
    Exactly one state per pipeline step, in pipeline order.
    Steps missing from the record are NotStarted.
    """
    record = order.step_record
    if not isinstance(record, Mapping):
        raise MalformedOrderError(
            f"WO {order.wo_id}: step record is {type(record).__name__}, expected a mapping",
            wo_id=order.wo_id,
        )

    return {
        step: parse_token(record.get(step), wo_id=order.wo_id, step=step)
        for step in steps
    }


def first_open_step(states: Mapping[str, StepState], steps: Sequence[str]) -> Optional[str]:
    for step in steps:
        if states[step] != StepState.DONE:
            return step
    return None


def next_step(order: Order, steps: Sequence[str]) -> Optional[str]:
    """
    The next actionable step, or None when every step is Done (order completed).
    """
    return first_open_step(classify(order, steps), steps)


def is_completed(order: Order, steps: Sequence[str]) -> bool:
    return next_step(order, steps) is None
