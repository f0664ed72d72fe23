# orders/scheduling/targets.py

from __future__ import annotations

import calendar
import math
from datetime import datetime
from typing import Optional


def working_days_in_month(
    now: datetime,
    *,
    include_saturday: bool = False,
    include_sunday: bool = False,
) -> int:
    """
    Number of working days in the month containing `now`.
    """
    days_in_month = calendar.monthrange(now.year, now.month)[1]
    working = 0
    for day in range(1, days_in_month + 1):
        weekday = calendar.weekday(now.year, now.month, day)
        if weekday == calendar.SATURDAY and not include_saturday:
            continue
        if weekday == calendar.SUNDAY and not include_sunday:
            continue
        working += 1
    return working


def daily_capacity_from_monthly_goal(
    monthly_target: Optional[int],
    now: datetime,
    *,
    include_saturday: bool = False,
    include_sunday: bool = False,
) -> Optional[int]:
    """
    Orders per working day needed to hit a monthly goal (rounded up).
    None when there is no usable goal.
    """
    if not monthly_target or monthly_target <= 0:
        return None

    days = working_days_in_month(now, include_saturday=include_saturday, include_sunday=include_sunday)
    if days == 0:
        return None
    return math.ceil(monthly_target / days)
