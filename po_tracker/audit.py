"""Metrics audit output.

Serialises computed work order metrics and portfolio totals to JSON. The
audit dict holds only JSON-native values (floats, ISO date strings), so the
API can return it as-is and the file writer needs no custom encoder.
"""

from __future__ import annotations

import json
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Optional

from po_tracker.models import PortfolioTotals, WorkOrderMetrics


def _money(value: Optional[Decimal]) -> Optional[float]:
    return None if value is None else float(value)


def metrics_to_dict(m: WorkOrderMetrics) -> dict:
    wo = m.work_order
    return {
        "work_order_id": wo.id,
        "po_reference": wo.po_reference,
        "name": wo.name,
        "client_id": wo.client_id,
        "client_name": wo.client_name,
        "status": wo.status.value,
        "start_date": wo.start_date.isoformat() if wo.start_date else None,
        "end_date": wo.end_date.isoformat() if wo.end_date else None,
        "po_value": float(m.po_value),
        "invoiced_total": float(m.invoiced_total),
        "accrued_total": float(m.accrued_total),
        "remaining": float(m.remaining),
        "variance": float(m.variance),
        "variance_label": m.variance_label,
        "monthly_burn": float(m.monthly_burn),
        "months_remaining": _money(m.months_remaining),
        "burn_pct": float(m.burn_pct),
        "burn_status": m.burn_status,
        "runway_alert": m.runway_alert,
        "monthly_breakdown": [
            {
                "month": row.month,
                "accrued": float(row.accrued),
                "invoiced": float(row.invoiced),
                "variance": float(row.variance),
            }
            for row in m.monthly_breakdown
        ],
    }


def totals_to_dict(totals: PortfolioTotals) -> dict:
    return {
        "po_value": float(totals.po_value),
        "invoiced": float(totals.invoiced),
        "accrued": float(totals.accrued),
        "remaining": float(totals.remaining),
        "variance": float(totals.variance),
        "variance_label": totals.variance_label,
        "work_order_count": totals.work_order_count,
    }


def generate_audit_dict(
    metrics: list[WorkOrderMetrics],
    totals: PortfolioTotals,
    as_of: date,
) -> dict:
    """Build audit dictionary from computed metrics (no file I/O)."""
    return {
        "as_of": as_of.isoformat(),
        "work_orders": [metrics_to_dict(m) for m in metrics],
        "portfolio": totals_to_dict(totals),
    }


def generate_audit(
    metrics: list[WorkOrderMetrics],
    totals: PortfolioTotals,
    as_of: date,
    output_path: str | Path,
) -> Path:
    """Write the audit JSON file."""
    output_path = Path(output_path)
    audit = generate_audit_dict(metrics, totals, as_of)
    output_path.write_text(json.dumps(audit, indent=2), encoding='utf-8')
    return output_path
