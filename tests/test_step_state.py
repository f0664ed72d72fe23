import logging
from datetime import date, datetime

import pytest

from orders.exceptions import MalformedOrderError
from orders.models import StepState
from orders.step_state import classify, is_completed, next_step, parse_completion_date, parse_token


@pytest.mark.parametrize(
    "token, expected",
    [
        (None, StepState.NOT_STARTED),
        ("", StepState.NOT_STARTED),
        ("   ", StepState.NOT_STARTED),
        ("RESET", StepState.NOT_STARTED),
        ("P", StepState.PENDING),
        ("p", StepState.PENDING),
        ("WIP", StepState.IN_PROGRESS),
        ("Hold", StepState.ON_HOLD),
        ("QN", StepState.QUALITY_BLOCKED),
        ("DONE", StepState.DONE),
        ("N/A", StepState.DONE),
        ("02-Jan, 19:30", StepState.DONE),
        ("29-Feb, 08:00", StepState.DONE),
        ("2026-01-02 19:30", StepState.DONE),
        ("2026-01-02", StepState.DONE),
        ("2026-01-02T19:30:00+08:00", StepState.DONE),
        (datetime(2026, 1, 2, 19, 30), StepState.DONE),
        (date(2026, 1, 2), StepState.DONE),
        (float("nan"), StepState.NOT_STARTED),
    ],
)
def test_parse_token(token, expected):
    assert parse_token(token) == expected


def test_unknown_token_degrades_to_not_started_and_warns(caplog):
    with caplog.at_level(logging.WARNING, logger="orders.step_state"):
        state = parse_token("see memo", wo_id="WO1", step="Assy")

    assert state == StepState.NOT_STARTED
    assert "see memo" in caplog.text
    assert "WO1" in caplog.text


def test_parse_completion_date_short_format():
    stamp = parse_completion_date("02-Jan, 19:30")
    assert (stamp.month, stamp.day, stamp.hour, stamp.minute) == (1, 2, 19, 30)
    assert parse_completion_date("WIP") is None


def test_classify_gives_one_state_per_step(make_order, steps):
    order = make_order("WO1", done=2, token="WIP")
    states = classify(order, steps)

    assert list(states) == list(steps)
    assert states["Cut"] == StepState.DONE
    assert states["Wind"] == StepState.DONE
    assert states["Assy"] == StepState.IN_PROGRESS
    assert states["Test"] == StepState.NOT_STARTED
    assert states["Pack"] == StepState.NOT_STARTED


def test_next_step_is_first_step_not_done(make_order, steps):
    assert next_step(make_order("WO1"), steps) == "Cut"
    assert next_step(make_order("WO2", done=3, token="P"), steps) == "Test"


def test_next_step_skips_nothing_out_of_order(make_order, steps):
    # A later step finished out of order does not move the next step past an open one
    order = make_order("WO1", step_record={"Cut": "01-Oct, 10:00", "Wind": "", "Assy": "03-Oct, 10:00"})
    assert next_step(order, steps) == "Wind"


def test_all_done_is_completed(make_order, steps):
    order = make_order("WO1", done=len(steps))
    assert next_step(order, steps) is None
    assert is_completed(order, steps)


@pytest.mark.parametrize("record", ["not a mapping", ["Cut", "Wind"], 42])
def test_non_mapping_record_is_malformed(make_order, steps, record):
    order = make_order("WO1", step_record=record)
    with pytest.raises(MalformedOrderError) as excinfo:
        classify(order, steps)
    assert excinfo.value.wo_id == "WO1"
