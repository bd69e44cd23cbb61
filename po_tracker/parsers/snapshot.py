"""JSON snapshot loader.

A snapshot holds one sector's raw rows under the keys ``work_orders``,
``rate_lines``, ``planned_hours``, ``timesheets`` and ``invoices``. An
optional ``projects`` list (``id`` / ``work_order_id``) links hours rows
that do not carry their work order.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from po_tracker.models import SectorData, StrictValidationError
from po_tracker.parsers.rows import (
    parse_invoices,
    parse_planned_hours,
    parse_rate_lines,
    parse_timesheets,
    parse_work_orders,
)

COLLECTIONS = ("work_orders", "rate_lines", "planned_hours", "timesheets", "invoices")


def _project_lookup(rows: Optional[list[dict[str, Any]]]) -> Optional[dict[str, Optional[str]]]:
    if rows is None:
        return None
    return {
        str(p["id"]): (str(p["work_order_id"]) if p.get("work_order_id") is not None else None)
        for p in rows
        if p.get("id") is not None
    }


def parse_sector_payload(payload: dict[str, Any]) -> SectorData:
    """Build SectorData from a dict of raw row lists."""
    errors: list[str] = []
    for key in COLLECTIONS:
        value = payload.get(key, [])
        if not isinstance(value, list):
            errors.append(f"'{key}' must be a list, got {type(value).__name__}")
    if errors:
        raise StrictValidationError(errors)

    projects = _project_lookup(payload.get("projects"))

    # Parse every collection before failing so all problems are reported together
    parsers = {
        "work_orders": parse_work_orders,
        "rate_lines": parse_rate_lines,
        "planned_hours": lambda rows: parse_planned_hours(rows, projects),
        "timesheets": lambda rows: parse_timesheets(rows, projects),
        "invoices": parse_invoices,
    }
    parsed: dict[str, list] = {}
    for key, parse in parsers.items():
        try:
            parsed[key] = parse(payload.get(key, []))
        except StrictValidationError as e:
            errors.extend(e.errors)

    if errors:
        raise StrictValidationError(errors)

    return SectorData(**parsed)


def load_snapshot(path: str | Path) -> SectorData:
    """Read a JSON snapshot file."""
    path = Path(path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise StrictValidationError([f"{path.name}: invalid JSON ({e})"]) from e

    if not isinstance(payload, dict):
        raise StrictValidationError([f"{path.name}: expected a JSON object at the top level"])

    return parse_sector_payload(payload)
