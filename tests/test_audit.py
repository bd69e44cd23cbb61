"""Tests for audit JSON and CSV export."""

import csv
import json

import pytest
from decimal import Decimal
from datetime import date

from po_tracker.audit import generate_audit, generate_audit_dict
from po_tracker.engine.calculator import compute_work_order_metrics, summarize_portfolio
from po_tracker.export import COLUMNS, export_breakdown_csv
from po_tracker.models import (
    Invoice,
    InvoiceStatus,
    PlannedHoursEntry,
    RateLine,
    WorkOrder,
)

AS_OF = date(2026, 3, 15)


def _metrics():
    work_orders = [
        WorkOrder(id="wo-1", client_id="c-1", budget=Decimal("40000"),
                  po_reference="PO-1", client_name="Northwind", start_date=date(2026, 1, 1)),
        WorkOrder(id="wo-2", client_id="c-2"),
    ]
    rate_lines = [RateLine(id="rl-1", work_order_id="wo-1", label="Std", bill_rate=Decimal("100"), is_default=True)]
    planned = [
        PlannedHoursEntry(employee_id="e-1", project_id="p-1", week_ending=date(2026, 1, 9),
                          planned_hours=Decimal("40"), work_order_id="wo-1"),
        PlannedHoursEntry(employee_id="e-1", project_id="p-1", week_ending=date(2026, 2, 6),
                          planned_hours=Decimal("20"), work_order_id="wo-1"),
    ]
    invoices = [
        Invoice(id="i-1", client_id="c-1", amount=Decimal("5000"),
                status=InvoiceStatus.PAID, billing_month=date(2026, 1, 1)),
    ]
    metrics = compute_work_order_metrics(work_orders, rate_lines, planned, [], invoices, as_of=AS_OF)
    return metrics, summarize_portfolio(metrics)


class TestAuditDict:
    def test_structure(self):
        metrics, totals = _metrics()
        audit = generate_audit_dict(metrics, totals, AS_OF)
        assert audit["as_of"] == "2026-03-15"
        assert len(audit["work_orders"]) == 2

        wo = audit["work_orders"][0]
        assert wo["po_reference"] == "PO-1"
        assert wo["start_date"] == "2026-01-01"
        assert wo["end_date"] is None
        assert wo["accrued_total"] == 6000.0
        assert wo["invoiced_total"] == 5000.0
        assert wo["remaining"] == 35000.0
        assert wo["variance"] == -1000.0
        assert wo["variance_label"] == "Under-billed"
        assert wo["monthly_burn"] == 5000.0
        assert wo["months_remaining"] == 7.0
        assert wo["burn_pct"] == 0.125
        assert wo["monthly_breakdown"] == [
            {"month": "2026-01", "accrued": 4000.0, "invoiced": 5000.0, "variance": 1000.0},
            {"month": "2026-02", "accrued": 2000.0, "invoiced": 0.0, "variance": -2000.0},
        ]

    def test_zero_po_work_order(self):
        metrics, totals = _metrics()
        wo = generate_audit_dict(metrics, totals, AS_OF)["work_orders"][1]
        assert wo["po_value"] == 0.0
        assert wo["months_remaining"] is None
        assert wo["monthly_breakdown"] == []

    def test_portfolio(self):
        metrics, totals = _metrics()
        portfolio = generate_audit_dict(metrics, totals, AS_OF)["portfolio"]
        assert portfolio["work_order_count"] == 1
        assert portfolio["po_value"] == 40000.0

    def test_write_file(self, tmp_path):
        metrics, totals = _metrics()
        path = generate_audit(metrics, totals, AS_OF, tmp_path / "audit.json")
        loaded = json.loads(path.read_text(encoding="utf-8"))
        assert loaded["portfolio"]["accrued"] == 6000.0

    def test_dict_is_plain_json(self):
        metrics, totals = _metrics()
        audit = generate_audit_dict(metrics, totals, AS_OF)
        assert json.loads(json.dumps(audit)) == audit
        wo = audit["work_orders"][0]
        assert type(wo["po_value"]) is float
        assert type(wo["months_remaining"]) is float
        assert type(wo["monthly_breakdown"][0]["accrued"]) is float


class TestCsvExport:
    def test_rows(self, tmp_path):
        metrics, _ = _metrics()
        path = export_breakdown_csv(metrics, tmp_path / "breakdown.csv")
        with path.open(newline="", encoding="utf-8") as fh:
            rows = list(csv.DictReader(fh))
        assert list(rows[0].keys()) == COLUMNS
        assert len(rows) == 2
        assert rows[0]["month"] == "2026-01"
        assert rows[0]["accrued"] == "4000.00"
        assert rows[1]["variance"] == "-2000.00"

    def test_client_names_with_commas_are_quoted(self, tmp_path):
        metrics, _ = _metrics()
        wo = metrics[0].work_order
        metrics[0].work_order = WorkOrder(id=wo.id, client_id=wo.client_id, client_name="Acme, Inc.")
        path = export_breakdown_csv(metrics, tmp_path / "breakdown.csv")
        assert '"Acme, Inc."' in path.read_text(encoding="utf-8")
        with path.open(newline="", encoding="utf-8") as fh:
            rows = list(csv.DictReader(fh))
        assert rows[0]["client_name"] == "Acme, Inc."
