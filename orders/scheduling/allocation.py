"""
Purpose: Admit scored orders into their next step under per-step capacity.
What it does:

Greedy, priority-ordered bin packing per step:

1) sort by combined_score desc, created_at asc, wo_id asc (total order)

2) flag material-Blocked orders (they never consume capacity)

3) walk the sorted list once; admit while the next step has capacity left,
   otherwise skip for capacity

Capacity is tracked per distinct step name across the whole pass; a step
missing from the capacity map is unlimited.

Rule: Allocation decides admission only; it does not score or classify.
"""

# orders/scheduling/allocation.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .scoring import ScoreResult, as_utc


@dataclass(frozen=True)
class AllocationResult:
    """
    Output of one allocation walk. All lists keep the sorted (ranked) order.
    """
    planned: List[ScoreResult]
    skipped_capacity: List[ScoreResult]
    skipped_material: List[ScoreResult] = field(default_factory=list)

    # step -> number of orders admitted to it
    admitted_by_step: Dict[str, int] = field(default_factory=dict)


def rank_key(scored: ScoreResult) -> Tuple[float, object, str]:
    return (-scored.combined_score, as_utc(scored.created_at), scored.wo_id)


def sort_scored(scored: Sequence[ScoreResult]) -> List[ScoreResult]:
    """
    Deterministic ranking: score desc, then oldest created first, then WO id.
    """
    return sorted(scored, key=rank_key)


def allocate(
    scored_orders: Sequence[ScoreResult],
    capacity_by_step: Mapping[str, int],
    *,
    max_planned: Optional[int] = None,
) -> AllocationResult:
    """
    Walk the ranked orders once and admit each into its next step while capacity lasts.

    Parameters
    ----------
    scored_orders:
        ScoreResults for orders with an actionable next step (any order).
    capacity_by_step:
        step -> max orders admitted this pass. Absent steps are unlimited.
    max_planned:
        Optional cap on the total plan size. Orders past the cap are capacity skips.

    Returns
    -------
    AllocationResult with planned / skipped_capacity / skipped_material lists.
    """
    ranked = sort_scored(scored_orders)

    planned: List[ScoreResult] = []
    skipped_capacity: List[ScoreResult] = []
    skipped_material: List[ScoreResult] = []
    admitted: Dict[str, int] = {}

    for scored in ranked:
        if scored.next_step is None:
            raise ValueError(f"WO {scored.wo_id} has no next step; completed orders cannot be allocated")

        # Material gate takes precedence over score
        if scored.is_blocked:
            skipped_material.append(scored)
            continue

        if max_planned is not None and len(planned) >= max_planned:
            skipped_capacity.append(scored)
            continue

        step = scored.next_step
        used = admitted.get(step, 0)
        capacity = capacity_by_step.get(step)

        if capacity is None or used < capacity:
            planned.append(scored)
            admitted[step] = used + 1
        else:
            skipped_capacity.append(scored)

    return AllocationResult(
        planned=planned,
        skipped_capacity=skipped_capacity,
        skipped_material=skipped_material,
        admitted_by_step=admitted,
    )
