"""Pydantic request and response models for the PO Tracker API."""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, Field


class MetricsRequest(BaseModel):
    """Raw backend rows for one sector, plus the reference date."""
    work_orders: list[dict[str, Any]] = Field(default_factory=list)
    rate_lines: list[dict[str, Any]] = Field(default_factory=list)
    planned_hours: list[dict[str, Any]] = Field(default_factory=list)
    timesheets: list[dict[str, Any]] = Field(default_factory=list)
    invoices: list[dict[str, Any]] = Field(default_factory=list)
    projects: list[dict[str, Any]] | None = None
    as_of: date | None = None
    strict: bool = True


class MonthlyRow(BaseModel):
    month: str
    accrued: float
    invoiced: float
    variance: float


class WorkOrderSummary(BaseModel):
    work_order_id: str
    po_reference: str
    name: str
    client_id: str
    client_name: str
    status: str
    start_date: str | None = None
    end_date: str | None = None
    po_value: float
    invoiced_total: float
    accrued_total: float
    remaining: float
    variance: float
    variance_label: str
    monthly_burn: float
    months_remaining: float | None = None
    burn_pct: float
    burn_status: str
    runway_alert: bool
    monthly_breakdown: list[MonthlyRow]


class PortfolioSummary(BaseModel):
    po_value: float
    invoiced: float
    accrued: float
    remaining: float
    variance: float
    variance_label: str
    work_order_count: int


class MetricsResponse(BaseModel):
    success: bool
    as_of: str | None = None
    work_orders: list[WorkOrderSummary] | None = None
    portfolio: PortfolioSummary | None = None
    warnings: list[str] | None = None
    error_type: str | None = None
    errors: list[str] | None = None
