import pytest
from datetime import datetime, timedelta, timezone

from orders.models import Order, Product
from orders.policy import SchedulingConfig

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)
STEPS = ("Cut", "Wind", "Assy", "Test", "Pack")
DONE = "02-Oct, 14:00"


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def steps():
    return STEPS


@pytest.fixture
def make_product():
    def _make(capacity_by_step=None, steps=STEPS, **kwargs):
        config = SchedulingConfig(capacity_by_step=capacity_by_step or {}, **kwargs.pop("config", {}))
        return Product.new("stator", steps, scheduling_config=config, **kwargs)
    return _make


@pytest.fixture
def make_order():
    """
    Build an order whose first `done` steps are finished and whose next step
    carries `token`. Ages are given in hours before NOW.
    """
    def _make(
        wo_id,
        *,
        priority="Normal",
        done=0,
        token="",
        created_hours_ago=48,
        updated_hours_ago=24,
        steps=STEPS,
        details=None,
        step_record=None,
    ):
        if step_record is None:
            step_record = {}
            for index, step in enumerate(steps):
                if index < done:
                    step_record[step] = DONE
                elif index == done:
                    step_record[step] = token
        return Order.new(
            wo_id,
            "stator",
            priority=priority,
            created_at=NOW - timedelta(hours=created_hours_ago),
            updated_at=NOW - timedelta(hours=updated_hours_ago),
            step_record=step_record,
            details=details,
        )
    return _make
