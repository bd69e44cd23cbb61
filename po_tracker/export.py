"""CSV export of the monthly breakdown, one row per work order and month."""

from __future__ import annotations

import csv
from pathlib import Path

from po_tracker.models import WorkOrderMetrics

COLUMNS = ["po_reference", "work_order_id", "client_name", "month", "accrued", "invoiced", "variance"]


def export_breakdown_csv(metrics: list[WorkOrderMetrics], output_path: str | Path) -> Path:
    output_path = Path(output_path)
    with output_path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=COLUMNS)
        writer.writeheader()
        for m in metrics:
            wo = m.work_order
            for row in m.monthly_breakdown:
                writer.writerow({
                    "po_reference": wo.po_reference,
                    "work_order_id": wo.id,
                    "client_name": wo.client_name,
                    "month": row.month,
                    "accrued": f"{row.accrued:.2f}",
                    "invoiced": f"{row.invoiced:.2f}",
                    "variance": f"{row.variance:.2f}",
                })
    return output_path
