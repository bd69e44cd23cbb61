"""Accrual and burn-rate engine.

Pure calculation over already-loaded, sector-scoped collections. Nothing
here performs I/O, mutates its inputs or raises for missing configuration:
absent rate lines, zero PO values and zero burn degrade to 0 / None.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional, Union

from po_tracker.models import (
    UNKNOWN_MONTH,
    ZERO,
    Invoice,
    MonthlyBreakdownRow,
    PlannedHoursEntry,
    PortfolioTotals,
    RateLine,
    TimesheetEntry,
    WorkOrder,
    WorkOrderMetrics,
)

AsOf = Union[date, datetime, None]


def month_key(value: date) -> str:
    """Return the ``YYYY-MM`` bucket for a date."""
    return value.isoformat()[:7]


def accrual_cutoff(as_of: AsOf = None) -> date:
    """First day of the ``as_of`` month; weeks on or after it do not accrue."""
    if as_of is None:
        as_of = date.today()
    return date(as_of.year, as_of.month, 1)


class RateResolver:
    """Bill rate lookup for hours records."""

    def __init__(self, rate_lines: Iterable[RateLine]):
        self._by_id: dict[str, RateLine] = {}
        self._default_by_wo: dict[str, RateLine] = {}
        for rl in rate_lines:
            self._by_id[rl.id] = rl
            if rl.is_default:
                self._default_by_wo[rl.work_order_id] = rl

    def default_rate(self, work_order_id: str) -> Decimal:
        rl = self._default_by_wo.get(work_order_id)
        return rl.bill_rate if rl else ZERO

    def rate_for(self, work_order_id: str, rate_line_id: Optional[str] = None) -> Decimal:
        """Explicit rate line if known, else the work order default, else 0."""
        if rate_line_id:
            rl = self._by_id.get(rate_line_id)
            if rl is not None:
                return rl.bill_rate
        return self.default_rate(work_order_id)


def accrue_work_order(
    work_order: WorkOrder,
    rates: RateResolver,
    planned_hours: Iterable[PlannedHoursEntry],
    timesheets: Iterable[TimesheetEntry],
    cutoff: date,
) -> tuple[Decimal, dict[str, Decimal]]:
    """Accrued revenue for one work order, in total and per month.

    Actual hours replace planned hours for the same (employee, project, week).
    Timesheet rows with no plan are added at the default rate.
    """
    wo_planned = [h for h in planned_hours if h.work_order_id == work_order.id]
    wo_actuals = [t for t in timesheets if t.work_order_id == work_order.id]

    actual_lookup: dict[tuple[str, str, date], Decimal] = {}
    for a in wo_actuals:
        actual_lookup[a.key] = a.hours
    planned_keys = {h.key for h in wo_planned}

    accrued_total = ZERO
    by_month: dict[str, Decimal] = defaultdict(Decimal)

    for h in wo_planned:
        if h.week_ending >= cutoff:
            continue
        hours = actual_lookup.get(h.key, h.planned_hours)
        amount = hours * rates.rate_for(work_order.id, h.rate_line_id)
        accrued_total += amount
        by_month[month_key(h.week_ending)] += amount

    default_rate = rates.default_rate(work_order.id)
    for a in wo_actuals:
        if a.week_ending >= cutoff or a.key in planned_keys:
            continue
        amount = a.hours * default_rate
        accrued_total += amount
        by_month[month_key(a.week_ending)] += amount

    return accrued_total, dict(by_month)


def select_work_order_invoices(work_order: WorkOrder, invoices: Iterable[Invoice]) -> list[Invoice]:
    """Issued invoices attributed to a work order.

    Attribution is by client: every work order of a client sees all of that
    client's invoices.
    """
    return [
        i for i in invoices
        if i.client_id == work_order.client_id and i.status.is_issued
    ]


def invoice_work_order(
    work_order: WorkOrder,
    invoices: Iterable[Invoice],
) -> tuple[Decimal, dict[str, Decimal]]:
    invoiced_total = ZERO
    by_month: dict[str, Decimal] = defaultdict(Decimal)
    for inv in select_work_order_invoices(work_order, invoices):
        invoiced_total += inv.amount
        key = month_key(inv.billing_month) if inv.billing_month else UNKNOWN_MONTH
        by_month[key] += inv.amount
    return invoiced_total, dict(by_month)


def monthly_burn(
    invoiced_total: Decimal,
    invoice_by_month: dict[str, Decimal],
    accrued_total: Decimal,
    accrued_by_month: dict[str, Decimal],
) -> Decimal:
    """Average monthly invoicing, falling back to average monthly accrual."""
    invoice_months = sum(1 for v in invoice_by_month.values() if v != 0)
    if invoice_months > 0:
        return invoiced_total / invoice_months
    accrued_months = sum(1 for v in accrued_by_month.values() if v != 0)
    if accrued_months > 0:
        return accrued_total / accrued_months
    return ZERO


def build_breakdown(
    accrued_by_month: dict[str, Decimal],
    invoice_by_month: dict[str, Decimal],
) -> list[MonthlyBreakdownRow]:
    months = sorted(set(accrued_by_month) | set(invoice_by_month))
    return [
        MonthlyBreakdownRow(
            month=m,
            accrued=accrued_by_month.get(m, ZERO),
            invoiced=invoice_by_month.get(m, ZERO),
        )
        for m in months
    ]


def compute_work_order_metrics(
    work_orders: Iterable[WorkOrder],
    rate_lines: Iterable[RateLine],
    planned_hours: Iterable[PlannedHoursEntry],
    timesheets: Iterable[TimesheetEntry],
    invoices: Iterable[Invoice],
    as_of: AsOf = None,
) -> list[WorkOrderMetrics]:
    """Compute burn and accrual metrics for every work order."""
    cutoff = accrual_cutoff(as_of)
    rates = RateResolver(rate_lines)
    planned_hours = list(planned_hours)
    timesheets = list(timesheets)
    invoices = list(invoices)

    results: list[WorkOrderMetrics] = []
    for wo in work_orders:
        po_value = wo.po_value
        accrued_total, accrued_by_month = accrue_work_order(
            wo, rates, planned_hours, timesheets, cutoff,
        )
        invoiced_total, invoice_by_month = invoice_work_order(wo, invoices)

        burn = monthly_burn(invoiced_total, invoice_by_month, accrued_total, accrued_by_month)
        remaining = po_value - invoiced_total

        results.append(WorkOrderMetrics(
            work_order=wo,
            po_value=po_value,
            invoiced_total=invoiced_total,
            accrued_total=accrued_total,
            monthly_burn=burn,
            months_remaining=remaining / burn if burn > 0 else None,
            burn_pct=invoiced_total / po_value if po_value > 0 else ZERO,
            monthly_breakdown=build_breakdown(accrued_by_month, invoice_by_month),
        ))

    return results


def summarize_portfolio(metrics: Iterable[WorkOrderMetrics]) -> PortfolioTotals:
    """Roll up work orders that have a PO value configured."""
    totals = PortfolioTotals()
    for m in metrics:
        if m.po_value <= 0:
            continue
        totals.po_value += m.po_value
        totals.invoiced += m.invoiced_total
        totals.accrued += m.accrued_total
        totals.remaining += m.remaining
        totals.variance += m.variance
        totals.work_order_count += 1
    return totals
