"""Record parsing layer."""
from po_tracker.parsers.rows import (
    parse_invoices,
    parse_planned_hours,
    parse_rate_lines,
    parse_timesheets,
    parse_work_orders,
)
from po_tracker.parsers.snapshot import load_snapshot, parse_sector_payload

__all__ = [
    "parse_work_orders",
    "parse_rate_lines",
    "parse_planned_hours",
    "parse_timesheets",
    "parse_invoices",
    "load_snapshot",
    "parse_sector_payload",
]
