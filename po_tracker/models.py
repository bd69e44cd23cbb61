"""Canonical data model for the PO tracker.

Input records mirror the backend tables and are treated as read-only.
Output records are recomputed from scratch on every engine call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

ZERO = Decimal("0")

# Bucket for issued invoices that carry no billing month
UNKNOWN_MONTH = "unknown"


class WorkOrderStatus(Enum):
    ACTIVE = "active"
    PIPELINE = "pipeline"
    CLOSED = "closed"


class InvoiceStatus(Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"

    @property
    def is_issued(self) -> bool:
        return self is not InvoiceStatus.DRAFT


@dataclass(frozen=True)
class WorkOrder:
    """Client purchase order setting the budget ceiling for billed work."""
    id: str
    client_id: str
    budget: Optional[Decimal] = None
    status: WorkOrderStatus = WorkOrderStatus.ACTIVE
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    po_reference: str = ""
    name: str = ""
    client_name: str = ""

    @property
    def po_value(self) -> Decimal:
        return self.budget or ZERO


@dataclass(frozen=True)
class RateLine:
    id: str
    work_order_id: str
    label: str
    bill_rate: Decimal
    is_default: bool = False
    sort_order: int = 0


@dataclass(frozen=True)
class PlannedHoursEntry:
    """Planned hours for one employee on one project for one week.

    ``work_order_id`` is the owning work order of ``project_id``, or None
    when the project is not linked to a work order.
    """
    employee_id: str
    project_id: str
    week_ending: date
    planned_hours: Decimal
    rate_line_id: Optional[str] = None
    work_order_id: Optional[str] = None

    @property
    def key(self) -> tuple[str, str, date]:
        return (self.employee_id, self.project_id, self.week_ending)


@dataclass(frozen=True)
class TimesheetEntry:
    """Actual hours worked by one employee on one project for one week."""
    employee_id: str
    project_id: str
    week_ending: date
    hours: Decimal
    work_order_id: Optional[str] = None

    @property
    def key(self) -> tuple[str, str, date]:
        return (self.employee_id, self.project_id, self.week_ending)


@dataclass(frozen=True)
class Invoice:
    id: str
    client_id: str
    amount: Decimal
    status: InvoiceStatus
    billing_month: Optional[date] = None


@dataclass(frozen=True)
class MonthlyBreakdownRow:
    month: str
    accrued: Decimal
    invoiced: Decimal

    @property
    def variance(self) -> Decimal:
        return self.invoiced - self.accrued


@dataclass
class WorkOrderMetrics:
    """Burn and accrual figures for one work order."""
    work_order: WorkOrder
    po_value: Decimal
    invoiced_total: Decimal
    accrued_total: Decimal
    monthly_burn: Decimal
    months_remaining: Optional[Decimal]
    burn_pct: Decimal
    monthly_breakdown: list[MonthlyBreakdownRow] = field(default_factory=list)

    @property
    def remaining(self) -> Decimal:
        return self.po_value - self.invoiced_total

    @property
    def variance(self) -> Decimal:
        return self.invoiced_total - self.accrued_total

    @property
    def variance_label(self) -> str:
        if self.variance > 0:
            return "Over-billed"
        if self.variance < 0:
            return "Under-billed"
        return "Balanced"

    @property
    def burn_status(self) -> str:
        if self.burn_pct > Decimal("0.9"):
            return "red"
        if self.burn_pct > Decimal("0.7"):
            return "amber"
        return "green"

    @property
    def runway_alert(self) -> bool:
        return self.months_remaining is not None and self.months_remaining < 3


@dataclass
class PortfolioTotals:
    """Sector-wide sums across work orders that have a PO value."""
    po_value: Decimal = ZERO
    invoiced: Decimal = ZERO
    accrued: Decimal = ZERO
    remaining: Decimal = ZERO
    variance: Decimal = ZERO
    work_order_count: int = 0

    @property
    def variance_label(self) -> str:
        if self.variance > 0:
            return "Over-billed"
        if self.variance < 0:
            return "Under-billed"
        return "In balance"


@dataclass
class SectorData:
    """The five collections the engine consumes, already scoped to one sector."""
    work_orders: list[WorkOrder] = field(default_factory=list)
    rate_lines: list[RateLine] = field(default_factory=list)
    planned_hours: list[PlannedHoursEntry] = field(default_factory=list)
    timesheets: list[TimesheetEntry] = field(default_factory=list)
    invoices: list[Invoice] = field(default_factory=list)


class StrictValidationError(Exception):
    """Raised when strict validation fails."""
    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Strict validation failed with {len(errors)} error(s):\n" +
                         "\n".join(f"  - {e}" for e in errors))


class DataSourceError(RuntimeError):
    """Raised when the backend cannot be read."""
