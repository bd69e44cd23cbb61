"""Strict validation of loaded sector data.

Runs before the engine so malformed records are reported to the user
instead of silently skewing accruals.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import replace
from decimal import Decimal

from po_tracker.models import SectorData, StrictValidationError

logger = logging.getLogger(__name__)


def _check_amount(errors: list[str], label: str, attr: str, value: Decimal) -> None:
    if not value.is_finite():
        errors.append(f"{label}: {attr} is not finite")
    elif value < 0:
        errors.append(f"{label}: negative {attr}={value}")


def validate_records(data: SectorData, strict: bool = True) -> list[str]:
    """Validate all collections of one sector.

    In strict mode any error raises StrictValidationError. Otherwise the
    errors are returned for the caller to display.
    """
    errors: list[str] = []

    # --- Work orders ---
    wo_ids = set()
    for wo in data.work_orders:
        if wo.id in wo_ids:
            errors.append(f"Work order {wo.id}: duplicate id")
        wo_ids.add(wo.id)
        if wo.budget is not None:
            _check_amount(errors, f"Work order {wo.id}", "budget", wo.budget)

    # --- Rate lines ---
    rate_line_ids = set()
    defaults: dict[str, list[str]] = defaultdict(list)
    for rl in data.rate_lines:
        rate_line_ids.add(rl.id)
        _check_amount(errors, f"Rate line {rl.id} ({rl.label})", "bill_rate", rl.bill_rate)
        if rl.is_default:
            defaults[rl.work_order_id].append(rl.id)

    for wo_id, ids in sorted(defaults.items()):
        if len(ids) > 1:
            errors.append(
                f"Work order {wo_id}: {len(ids)} default rate lines ({', '.join(sorted(ids))})"
            )

    # --- Planned hours ---
    unlinked = 0
    for h in data.planned_hours:
        label = f"Planned hours {h.employee_id}/{h.project_id} w/e {h.week_ending}"
        _check_amount(errors, label, "planned_hours", h.planned_hours)
        if h.rate_line_id and h.rate_line_id not in rate_line_ids:
            errors.append(f"{label}: unknown rate line {h.rate_line_id}")
        if h.work_order_id is None:
            unlinked += 1

    # --- Timesheets ---
    for t in data.timesheets:
        label = f"Timesheet {t.employee_id}/{t.project_id} w/e {t.week_ending}"
        _check_amount(errors, label, "hours", t.hours)
        if t.work_order_id is None:
            unlinked += 1

    # Unlinked hours are a data gap, not an error: they accrue to no work order
    if unlinked:
        logger.warning("%d hours record(s) have no work order link and will not accrue", unlinked)

    # --- Invoices ---
    for inv in data.invoices:
        _check_amount(errors, f"Invoice {inv.id}", "amount", inv.amount)
        if inv.status.is_issued and inv.billing_month is None:
            errors.append(f"Invoice {inv.id}: {inv.status.value} invoice has no billing_month")

    if errors and strict:
        raise StrictValidationError(errors)

    return errors


def drop_non_finite(data: SectorData) -> SectorData:
    """Return a copy of data the engine can total without failing.

    Records whose amount is NaN or infinite are dropped, and a non-finite
    work order budget is cleared as if no PO value were set. Negative
    amounts are kept; they still sum.
    """
    work_orders = [
        replace(wo, budget=None) if wo.budget is not None and not wo.budget.is_finite() else wo
        for wo in data.work_orders
    ]
    cleaned = SectorData(
        work_orders=work_orders,
        rate_lines=[rl for rl in data.rate_lines if rl.bill_rate.is_finite()],
        planned_hours=[h for h in data.planned_hours if h.planned_hours.is_finite()],
        timesheets=[t for t in data.timesheets if t.hours.is_finite()],
        invoices=[inv for inv in data.invoices if inv.amount.is_finite()],
    )
    dropped = sum(
        len(getattr(data, name)) - len(getattr(cleaned, name))
        for name in ("rate_lines", "planned_hours", "timesheets", "invoices")
    )
    if dropped:
        logger.warning("Dropped %d record(s) with non-finite amounts", dropped)
    return cleaned
