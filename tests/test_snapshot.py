import json

import pandas as pd

from orders.models import Priority
from orders.scheduling import plan_schedule
from orders.snapshot import load_orders_csv, orders_from_frame, orders_to_frame

STEPS = ["Cut", "Wind", "Assy"]


def test_load_csv_with_step_columns(tmp_path, now):
    path = tmp_path / "orders.csv"
    pd.DataFrame([
        {"wo_id": "WO1", "priority": "Urgent", "created_at": "2026-10-01T08:00:00+00:00",
         "updated_at": "2026-10-10T08:00:00+00:00", "Cut": "02-Oct, 14:00", "Wind": "WIP", "Assy": "",
         "material_status": "Ready"},
        {"wo_id": "WO2", "priority": "Normal", "created_at": "2026-10-02T08:00:00+00:00",
         "updated_at": "", "Cut": "", "Wind": "", "Assy": "", "material_status": ""},
    ]).to_csv(path, index=False)

    orders = load_orders_csv(str(path), STEPS, product_id="stator")

    assert [o.wo_id for o in orders] == ["WO1", "WO2"]
    first, second = orders
    assert first.priority == Priority.HIGH
    assert first.product_id == "stator"
    assert dict(first.step_record) == {"Cut": "02-Oct, 14:00", "Wind": "WIP", "Assy": ""}
    assert first.details["material_status"] == "Ready"
    assert second.updated_at == second.created_at


def test_json_step_record_column(now):
    frame = pd.DataFrame([
        {"wo_id": "WO1", "created_at": "2026-10-01", "step_record": json.dumps({"Cut": "DONE", "Wind": "P"})},
        {"wo_id": "WO2", "created_at": "2026-10-01", "step_record": "{broken"},
    ])

    orders = orders_from_frame(frame, STEPS, product_id="stator")

    assert dict(orders[0].step_record) == {"Cut": "DONE", "Wind": "P"}
    assert orders[1].step_record == "{broken"


def test_unparsable_rows_reach_planner_as_malformed(now, make_product):
    frame = pd.DataFrame([
        {"wo_id": "WO1", "created_at": "2026-10-01", "Cut": "", "Wind": "", "Assy": ""},
        {"wo_id": "WO2", "created_at": "whenever", "Cut": "", "Wind": "", "Assy": ""},
    ])
    orders = orders_from_frame(frame, STEPS, product_id="stator")

    result = plan_schedule(orders, make_product(steps=tuple(STEPS)), now=now)

    assert [p.wo_id for p in result.planned] == ["WO1"]
    assert result.malformed == ["WO2"]


def test_frame_round_trip_keeps_scheduling_inputs(make_order):
    orders = [make_order("WO1", done=1, token="WIP", steps=STEPS, details={"material_status": "OK"})]
    frame = orders_to_frame(orders, STEPS)

    again = orders_from_frame(frame.astype(str), STEPS, product_id="stator")[0]

    assert again.wo_id == "WO1"
    assert dict(again.step_record) == dict(orders[0].step_record) | {"Assy": ""}
    assert again.created_at == orders[0].created_at
    assert again.details["material_status"] == "OK"


def test_due_date_column_reaches_scoring(tmp_path, now, make_product):
    path = tmp_path / "orders.csv"
    pd.DataFrame([
        {"wo_id": "LATE", "created_at": "2026-10-10T08:00:00+00:00", "Cut": "", "Wind": "", "Assy": "", "WO DUE": "2026-10-12"},
        {"wo_id": "EASY", "created_at": "2026-10-10T08:00:00+00:00", "Cut": "", "Wind": "", "Assy": "", "WO DUE": ""},
    ]).to_csv(path, index=False)

    orders = load_orders_csv(str(path), STEPS, product_id="stator")
    result = plan_schedule(orders, make_product({"Cut": 1}, steps=tuple(STEPS)), now=now)

    assert [p.wo_id for p in result.planned] == ["LATE"]
    assert result.scores[0].urgency_term > 1.0
