from datetime import datetime, timedelta

import pytest

from orders.exceptions import MalformedOrderError
from orders.models import MaterialStatus, Order, Priority
from orders.policy import ScoringWeights
from orders.scheduling.scoring import aging_term, hours_since, score_order


def test_high_priority_outscores_normal_with_equal_aging(make_order, make_product, now):
    product = make_product()
    high = score_order(make_order("A", priority="High", done=2), product, now=now)
    normal = score_order(make_order("B", priority="Normal", done=2), product, now=now)

    assert high.priority_term == 2.0
    assert normal.priority_term == 1.0
    assert high.aging_term == normal.aging_term
    assert high.combined_score > normal.combined_score


def test_score_is_sum_of_terms(make_order, make_product, now):
    product = make_product()
    # next step Assy = index 2 of 5; updated 84h ago = half of the 168h cap
    result = score_order(make_order("A", done=2, updated_hours_ago=84), product, now=now)

    assert result.next_step == "Assy"
    assert result.step_index == 2
    assert result.aging_term == pytest.approx(0.5)
    assert result.position_term == pytest.approx(0.5 * 2 / 5)
    assert result.combined_score == pytest.approx(1.0 + 0.5 + 0.2)


def test_aging_is_capped(now):
    weights = ScoringWeights(aging_weight=1.0, aging_cap_hours=168.0)
    very_old = now - timedelta(days=365)
    assert aging_term(very_old, now, weights) == pytest.approx(1.0)


def test_aging_never_negative_for_future_updates(now):
    assert hours_since(now + timedelta(hours=5), now) == 0.0


def test_naive_timestamps_are_treated_as_utc(now):
    naive = datetime(2026, 10, 18, 6, 0)
    assert hours_since(naive, now) == pytest.approx(6.0)


def test_later_pipeline_position_scores_higher(make_order, make_product, now):
    product = make_product()
    early = score_order(make_order("A", done=0), product, now=now)
    late = score_order(make_order("B", done=4), product, now=now)
    assert late.combined_score > early.combined_score


def test_weights_come_from_product_config(make_order, make_product, now):
    product = make_product(config={"scoring_weights": ScoringWeights(high_priority_weight=10.0)})
    result = score_order(make_order("A", priority="High"), product, now=now)
    assert result.priority_term == 10.0


def test_score_depends_only_on_inputs(make_order, make_product, now):
    product = make_product()
    order = make_order("A", done=1, token="WIP")

    first = score_order(order, product, now=now)
    second = score_order(order, product, now=now)
    later = score_order(order, product, now=now + timedelta(hours=10))

    assert first == second
    assert later.combined_score > first.combined_score


def test_completed_order_is_not_scored(make_order, make_product, now, steps):
    with pytest.raises(ValueError):
        score_order(make_order("A", done=len(steps)), make_product(), now=now)


def test_missing_timestamps_are_malformed(make_product, now):
    order = Order(
        wo_id="A",
        product_id="stator",
        priority=Priority.NORMAL,
        created_at="yesterday",
        updated_at="yesterday",
        step_record={},
    )
    with pytest.raises(MalformedOrderError):
        score_order(order, make_product(), now=now)


def test_material_status_is_attached(make_order, make_product, now):
    product = make_product()
    held = score_order(make_order("A", done=1, token="Hold"), product, now=now)
    ready = score_order(make_order("B", details={"material_status": "Ready"}), product, now=now)

    assert held.material_status == MaterialStatus.BLOCKED
    assert ready.material_status == MaterialStatus.AVAILABLE


@pytest.mark.parametrize(
    "due, expected",
    [
        ("2026-10-21", 0.70),            # 2.5 days left -> 3 days -> 100 - 30
        ("2026-10-15", 1.03),            # 3.5 days overdue -> 3 -> 100 + 3
        ("2026-11-30", 0.0),             # far out: floored at zero
        (datetime(2026, 10, 18, 18, 0), 0.9),
        ("soon", 0.0),
    ],
)
def test_urgency_from_due_date(make_order, make_product, now, due, expected):
    result = score_order(make_order("A", details={"WO DUE": due}), make_product(), now=now)

    assert result.urgency_term == pytest.approx(expected)
    assert result.combined_score == pytest.approx(
        result.priority_term + result.aging_term + result.position_term + result.urgency_term
    )


def test_orders_without_due_date_get_no_urgency(make_order, make_product, now):
    result = score_order(make_order("A"), make_product(), now=now)
    assert result.urgency_term == 0.0
    assert result.due_at is None


def test_overdue_order_outranks_otherwise_equal_order(make_order, make_product, now):
    product = make_product()
    due = score_order(make_order("A", details={"到期日期": "2026-10-10"}), product, now=now)
    plain = score_order(make_order("B"), product, now=now)

    assert due.due_at == datetime(2026, 10, 10)
    assert due.combined_score > plain.combined_score


def test_urgency_weight_and_due_fields_are_configurable(make_order, make_product, now):
    product = make_product(config={"scoring_weights": ScoringWeights(urgency_weight=0.0)})
    assert score_order(make_order("A", details={"WO_DUE": "2026-10-10"}), product, now=now).urgency_term == 0.0

    product = make_product(config={"due_date_fields": ("Ship By",)})
    assert score_order(make_order("A", details={"WO DUE": "2026-10-10"}), product, now=now).urgency_term == 0.0
    assert score_order(make_order("B", details={"Ship By": "2026-10-10"}), product, now=now).urgency_term > 1.0
