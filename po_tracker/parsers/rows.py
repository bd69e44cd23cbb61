"""Backend row parser.

Converts rows as returned by the hosted database's REST interface into the
canonical models. Hours rows carry their project's work order either as a
nested join (``projects: {work_order_id: ...}``), as a flat
``work_order_id`` column, or through a caller-supplied project lookup.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Iterable, Optional, TypeVar

from po_tracker.models import (
    Invoice,
    InvoiceStatus,
    PlannedHoursEntry,
    RateLine,
    StrictValidationError,
    TimesheetEntry,
    WorkOrder,
    WorkOrderStatus,
)

Row = dict[str, Any]
T = TypeVar("T")


def _parse_date(value: Any) -> date:
    """Parse ISO dates and timestamps."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Cannot parse date: {value!r}")

    text = value.strip()
    formats = [
        "%Y-%m-%d",      # 2026-02-24
        "%Y-%m",         # 2026-02
    ]
    for fmt in formats:
        try:
            return datetime.strptime(text[:10], fmt).date()
        except ValueError:
            continue

    raise ValueError(f"Cannot parse date: {value!r}")


def _optional_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    return _parse_date(value)


def _to_decimal(value: Any, field_name: str) -> Decimal:
    """Convert a numeric column to Decimal; None counts as zero."""
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, bool):
        raise ValueError(f"{field_name} must be numeric, got {value!r}")
    try:
        # str() keeps float columns from picking up binary noise
        return Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"{field_name} must be numeric, got {value!r}") from None


def _optional_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _required(row: Row, key: str) -> Any:
    if row.get(key) in (None, ""):
        raise KeyError(key)
    return row[key]


def _nested(row: Row, relation: str, key: str) -> Any:
    related = row.get(relation)
    if isinstance(related, dict):
        return related.get(key)
    return None


def _resolve_work_order(row: Row, projects: Optional[dict[str, Optional[str]]]) -> Optional[str]:
    wo_id = _nested(row, "projects", "work_order_id")
    if wo_id is None:
        wo_id = row.get("work_order_id")
    if wo_id is None and projects is not None:
        wo_id = projects.get(str(row.get("project_id")))
    return _optional_str(wo_id)


def _parse_all(rows: Iterable[Row], table: str, parse_one: Callable[[Row], T]) -> list[T]:
    """Parse every row, collecting all failures into one StrictValidationError."""
    errors: list[str] = []
    parsed: list[T] = []
    for idx, row in enumerate(rows):
        try:
            parsed.append(parse_one(row))
        except KeyError as e:
            errors.append(f"{table}[{idx}]: missing required column {e.args[0]!r}")
        except ValueError as e:
            errors.append(f"{table}[{idx}]: {e}")
    if errors:
        raise StrictValidationError(errors)
    return parsed


def parse_work_order(row: Row) -> WorkOrder:
    budget = row.get("budget")
    return WorkOrder(
        id=str(_required(row, "id")),
        client_id=str(_required(row, "client_id")),
        budget=None if budget in (None, "") else _to_decimal(budget, "budget"),
        status=WorkOrderStatus(row.get("status") or "active"),
        start_date=_optional_date(row.get("start_date")),
        end_date=_optional_date(row.get("end_date")),
        po_reference=row.get("po_reference") or "",
        name=row.get("name") or "",
        client_name=_nested(row, "clients", "name") or "",
    )


def parse_rate_line(row: Row) -> RateLine:
    return RateLine(
        id=str(_required(row, "id")),
        work_order_id=str(_required(row, "work_order_id")),
        label=row.get("label") or "",
        bill_rate=_to_decimal(row.get("bill_rate"), "bill_rate"),
        is_default=bool(row.get("is_default")),
        sort_order=int(row.get("sort_order") or 0),
    )


def parse_invoice(row: Row) -> Invoice:
    return Invoice(
        id=str(_required(row, "id")),
        client_id=str(_required(row, "client_id")),
        amount=_to_decimal(row.get("amount"), "amount"),
        status=InvoiceStatus(_required(row, "status")),
        billing_month=_optional_date(row.get("billing_month")),
    )


def parse_work_orders(rows: Iterable[Row]) -> list[WorkOrder]:
    return _parse_all(rows, "work_orders", parse_work_order)


def parse_rate_lines(rows: Iterable[Row]) -> list[RateLine]:
    return _parse_all(rows, "work_order_rate_lines", parse_rate_line)


def parse_invoices(rows: Iterable[Row]) -> list[Invoice]:
    return _parse_all(rows, "invoices", parse_invoice)


def parse_planned_hours(
    rows: Iterable[Row],
    projects: Optional[dict[str, Optional[str]]] = None,
) -> list[PlannedHoursEntry]:
    def parse_one(row: Row) -> PlannedHoursEntry:
        return PlannedHoursEntry(
            employee_id=str(_required(row, "employee_id")),
            project_id=str(_required(row, "project_id")),
            week_ending=_parse_date(_required(row, "week_ending")),
            planned_hours=_to_decimal(row.get("planned_hours"), "planned_hours"),
            rate_line_id=_optional_str(row.get("rate_line_id")),
            work_order_id=_resolve_work_order(row, projects),
        )

    return _parse_all(rows, "planned_weekly_hours", parse_one)


def parse_timesheets(
    rows: Iterable[Row],
    projects: Optional[dict[str, Optional[str]]] = None,
) -> list[TimesheetEntry]:
    def parse_one(row: Row) -> TimesheetEntry:
        return TimesheetEntry(
            employee_id=str(_required(row, "employee_id")),
            project_id=str(_required(row, "project_id")),
            week_ending=_parse_date(_required(row, "week_ending")),
            hours=_to_decimal(row.get("hours"), "hours"),
            work_order_id=_resolve_work_order(row, projects),
        )

    return _parse_all(rows, "timesheet_entries", parse_one)
