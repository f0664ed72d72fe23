"""
Purpose: Build an order snapshot from a tabular export (CSV / DataFrame).
What it does:
- Reads one row per work order, in the layout the shop-floor spreadsheets use:
    wo_id, priority, created_at, updated_at, <one column per pipeline step>, <extra columns...>
- Alternatively accepts a single `step_record` column holding a JSON object.
- Extra columns are carried in Order.details (e.g. material_status).

Rule: This is an adapter outside the scheduling core. It never drops a row:
rows it cannot interpret keep their raw values so the planner counts them as malformed.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from .models import Order

logger = logging.getLogger(__name__)

ID_COLUMN = "wo_id"
PRIORITY_COLUMN = "priority"
CREATED_COLUMN = "created_at"
UPDATED_COLUMN = "updated_at"
PRODUCT_COLUMN = "product_id"
STEP_RECORD_COLUMN = "step_record"

_RESERVED = {ID_COLUMN, PRIORITY_COLUMN, CREATED_COLUMN, UPDATED_COLUMN, PRODUCT_COLUMN, STEP_RECORD_COLUMN}


def load_orders_csv(path: str, steps: Sequence[str], *, product_id: str) -> List[Order]:
    """
    Read a CSV export into Orders. Every cell is read as text so step tokens
    such as "02-Jan, 19:30" reach the classifier untouched.
    """
    frame = pd.read_csv(path, dtype=str, keep_default_na=False)
    logger.info("Loaded %d rows from %s", len(frame), path)
    return orders_from_frame(frame, steps, product_id=product_id)


def orders_from_frame(frame: pd.DataFrame, steps: Sequence[str], *, product_id: str) -> List[Order]:
    if ID_COLUMN not in frame.columns:
        raise ValueError(f"Snapshot is missing the {ID_COLUMN!r} column")

    has_record_column = STEP_RECORD_COLUMN in frame.columns
    missing_steps = [s for s in steps if s not in frame.columns]
    if missing_steps and not has_record_column:
        logger.warning("Snapshot has no column for steps %s; treating them as NotStarted", missing_steps)

    step_columns = [s for s in steps if s in frame.columns]
    detail_columns = [c for c in frame.columns if c not in _RESERVED and c not in step_columns]

    orders: List[Order] = []
    for _, row in frame.iterrows():
        if has_record_column:
            step_record = _parse_step_record(row[STEP_RECORD_COLUMN])
        else:
            step_record = {step: _cell(row[step]) for step in step_columns}

        created_at = _parse_timestamp(row.get(CREATED_COLUMN))
        updated_at = _parse_timestamp(row.get(UPDATED_COLUMN))

        orders.append(
            Order.new(
                wo_id=_cell(row[ID_COLUMN]),
                product_id=_cell(row.get(PRODUCT_COLUMN)) or product_id,
                priority=row.get(PRIORITY_COLUMN),
                created_at=created_at,
                updated_at=updated_at if updated_at is not None else created_at,
                step_record=step_record,
                details={c: _cell(row[c]) for c in detail_columns},
            )
        )
    return orders


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and pd.isna(value):
        return ""
    return str(value).strip()


def _parse_step_record(raw: Any) -> Any:
    """
    JSON object -> dict. Anything else is returned unchanged (malformed downstream).
    """
    text = _cell(raw)
    if not text:
        return {}
    try:
        record = json.loads(text)
    except json.JSONDecodeError:
        logger.warning("Unparsable step_record %r", text[:80])
        return text
    return record


def _parse_timestamp(raw: Any) -> Optional[Any]:
    """
    Parse a timestamp cell. Unparsable values are returned as the raw text so
    the order is reported as malformed rather than silently re-dated.
    """
    text = _cell(raw)
    if not text:
        return None
    stamp = pd.to_datetime(text, errors="coerce")
    if pd.isna(stamp):
        return text
    return stamp.to_pydatetime()


def orders_to_frame(orders: Sequence[Order], steps: Sequence[str]) -> pd.DataFrame:
    """
    Inverse of orders_from_frame for well-formed orders (used by mock data tooling).
    """
    rows: List[Dict[str, Any]] = []
    for order in orders:
        row: Dict[str, Any] = {
            ID_COLUMN: order.wo_id,
            PRODUCT_COLUMN: order.product_id,
            PRIORITY_COLUMN: order.priority.value,
            CREATED_COLUMN: _format_timestamp(order.created_at),
            UPDATED_COLUMN: _format_timestamp(order.updated_at),
        }
        for step in steps:
            row[step] = order.step_record.get(step, "")
        row.update(order.details)
        rows.append(row)
    return pd.DataFrame(rows)


def _format_timestamp(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value
