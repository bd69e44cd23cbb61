"""Tests for the PO Tracker HTTP API."""

import pytest
from fastapi.testclient import TestClient

from api.main import allowed_origins, app
from po_tracker.models import DataSourceError

client = TestClient(app)


def _payload(**overrides) -> dict:
    payload = {
        "work_orders": [
            {"id": "wo-1", "client_id": "c-1", "budget": 100000, "po_reference": "PO-1"},
            {"id": "wo-2", "client_id": "c-2", "budget": 0},
        ],
        "rate_lines": [
            {"id": "rl-1", "work_order_id": "wo-1", "label": "Std", "bill_rate": 100, "is_default": True},
        ],
        "planned_hours": [
            {"employee_id": "e-1", "project_id": "p-1", "week_ending": "2026-02-13", "planned_hours": 40,
             "projects": {"work_order_id": "wo-1"}},
            {"employee_id": "e-1", "project_id": "p-1", "week_ending": "2026-03-06", "planned_hours": 40,
             "projects": {"work_order_id": "wo-1"}},
        ],
        "timesheets": [
            {"employee_id": "e-1", "project_id": "p-1", "week_ending": "2026-02-13", "hours": 35,
             "projects": {"work_order_id": "wo-1"}},
        ],
        "invoices": [
            {"id": "i-1", "client_id": "c-1", "amount": 3000, "status": "sent", "billing_month": "2026-02-01"},
            {"id": "i-2", "client_id": "c-1", "amount": 9999, "status": "draft", "billing_month": "2026-02-01"},
        ],
        "as_of": "2026-03-15",
    }
    payload.update(overrides)
    return payload


class TestHealth:
    def test_health(self):
        resp = client.get("/api/v1/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    def test_root(self):
        body = client.get("/").json()
        assert body["name"] == "PO Tracker API"


class TestMetricsEndpoint:
    def test_compute(self):
        resp = client.post("/api/v1/po-tracker/metrics", json=_payload())
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["as_of"] == "2026-03-15"

        wo = body["work_orders"][0]
        assert wo["accrued_total"] == 3500.0
        assert wo["invoiced_total"] == 3000.0
        assert wo["remaining"] == 97000.0
        assert wo["monthly_burn"] == 3000.0
        assert wo["variance_label"] == "Under-billed"
        assert [row["month"] for row in wo["monthly_breakdown"]] == ["2026-02"]

        assert body["work_orders"][1]["months_remaining"] is None
        assert body["portfolio"]["work_order_count"] == 1
        assert body["portfolio"]["po_value"] == 100000.0

    def test_parse_error(self):
        payload = _payload(invoices=[{"id": "i-1", "client_id": "c-1", "amount": "lots", "status": "sent"}])
        body = client.post("/api/v1/po-tracker/metrics", json=payload).json()
        assert body["success"] is False
        assert body["error_type"] == "validation_error"
        assert "amount must be numeric" in body["errors"][0]

    def test_strict_validation_error(self):
        payload = _payload(rate_lines=[
            {"id": "rl-1", "work_order_id": "wo-1", "label": "Std", "bill_rate": -100, "is_default": True},
        ])
        body = client.post("/api/v1/po-tracker/metrics", json=payload).json()
        assert body["success"] is False
        assert body["error_type"] == "validation_error"

    def test_non_strict_returns_warnings(self):
        payload = _payload(strict=False, rate_lines=[
            {"id": "rl-1", "work_order_id": "wo-1", "label": "Std", "bill_rate": -100, "is_default": True},
        ])
        body = client.post("/api/v1/po-tracker/metrics", json=payload).json()
        assert body["success"] is True
        assert len(body["warnings"]) == 1

    def test_non_strict_drops_non_finite_amounts(self):
        payload = _payload(strict=False, invoices=[
            {"id": "i-1", "client_id": "c-1", "amount": "NaN", "status": "sent", "billing_month": "2026-02-01"},
            {"id": "i-3", "client_id": "c-1", "amount": 1200, "status": "paid", "billing_month": "2026-01-01"},
        ])
        body = client.post("/api/v1/po-tracker/metrics", json=payload).json()
        assert body["success"] is True
        assert body["warnings"] == ["Invoice i-1: amount is not finite"]
        wo = body["work_orders"][0]
        assert wo["invoiced_total"] == 1200.0
        assert wo["accrued_total"] == 3500.0

    def test_strict_rejects_non_finite_amounts(self):
        payload = _payload(invoices=[
            {"id": "i-1", "client_id": "c-1", "amount": "Infinity", "status": "sent", "billing_month": "2026-02-01"},
        ])
        body = client.post("/api/v1/po-tracker/metrics", json=payload).json()
        assert body["success"] is False
        assert body["error_type"] == "validation_error"
        assert body["errors"] == ["Invoice i-1: amount is not finite"]

    def test_projects_lookup(self):
        planned = [{"employee_id": "e-1", "project_id": "p-1", "week_ending": "2026-02-13", "planned_hours": 10}]
        payload = _payload(planned_hours=planned, timesheets=[], projects=[{"id": "p-1", "work_order_id": "wo-1"}])
        body = client.post("/api/v1/po-tracker/metrics", json=payload).json()
        assert body["work_orders"][0]["accrued_total"] == 1000.0


class TestSectorEndpoint:
    def test_backend_not_configured(self, monkeypatch):
        monkeypatch.delenv("PO_TRACKER_SUPABASE_URL", raising=False)
        monkeypatch.delenv("PO_TRACKER_SUPABASE_KEY", raising=False)
        body = client.get("/api/v1/po-tracker/sectors/s-1").json()
        assert body["success"] is False
        assert body["error_type"] == "backend_error"

    def test_loads_sector(self, monkeypatch):
        from po_tracker.sources.supabase import SupabaseSectorClient

        captured = {}

        async def fake_load(self, sector_id):
            from po_tracker.parsers import parse_sector_payload
            captured["sector_id"] = sector_id
            return parse_sector_payload(_payload())

        monkeypatch.setenv("PO_TRACKER_SUPABASE_URL", "https://example.supabase.co")
        monkeypatch.setenv("PO_TRACKER_SUPABASE_KEY", "key")
        monkeypatch.setattr(SupabaseSectorClient, "load", fake_load)

        body = client.get("/api/v1/po-tracker/sectors/s-1", params={"as_of": "2026-03-15"}).json()
        assert captured["sector_id"] == "s-1"
        assert body["success"] is True
        assert body["work_orders"][0]["accrued_total"] == 3500.0

    def test_backend_failure(self, monkeypatch):
        from po_tracker.sources.supabase import SupabaseSectorClient

        async def failing_load(self, sector_id):
            raise DataSourceError("work_orders: backend returned 503")

        monkeypatch.setenv("PO_TRACKER_SUPABASE_URL", "https://example.supabase.co")
        monkeypatch.setenv("PO_TRACKER_SUPABASE_KEY", "key")
        monkeypatch.setattr(SupabaseSectorClient, "load", failing_load)

        body = client.get("/api/v1/po-tracker/sectors/s-1").json()
        assert body["error_type"] == "backend_error"
        assert body["errors"] == ["work_orders: backend returned 503"]


class TestAllowedOrigins:
    def test_defaults(self):
        assert "http://localhost:5173" in allowed_origins("")

    def test_wildcard(self):
        assert allowed_origins("https://a.example, *") == ["*"]

    def test_explicit(self):
        assert allowed_origins("https://a.example, https://b.example") == [
            "https://a.example", "https://b.example",
        ]
