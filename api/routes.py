"""API routes for the PO Tracker."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter

from po_tracker.audit import generate_audit_dict
from po_tracker.config import Settings
from po_tracker.engine import (
    compute_work_order_metrics,
    drop_non_finite,
    summarize_portfolio,
    validate_records,
)
from po_tracker.models import DataSourceError, SectorData, StrictValidationError
from po_tracker.parsers import parse_sector_payload
from po_tracker.sources import SupabaseSectorClient

from api.schemas import MetricsRequest, MetricsResponse

router = APIRouter(prefix="/api/v1")


def _compute(data: SectorData, as_of: date, strict: bool) -> MetricsResponse:
    warnings = validate_records(data, strict=strict)
    if warnings:
        data = drop_non_finite(data)
    metrics = compute_work_order_metrics(
        data.work_orders,
        data.rate_lines,
        data.planned_hours,
        data.timesheets,
        data.invoices,
        as_of=as_of,
    )
    audit = generate_audit_dict(metrics, summarize_portfolio(metrics), as_of)
    return MetricsResponse(
        success=True,
        as_of=audit["as_of"],
        work_orders=audit["work_orders"],
        portfolio=audit["portfolio"],
        warnings=warnings or None,
    )


@router.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}


@router.post("/po-tracker/metrics", response_model=MetricsResponse)
async def compute_metrics(request: MetricsRequest):
    """Compute PO metrics from rows supplied in the request body."""
    as_of = request.as_of or date.today()
    try:
        data = parse_sector_payload(request.model_dump(exclude={"as_of", "strict"}))
        return _compute(data, as_of, request.strict)
    except StrictValidationError as e:
        return MetricsResponse(
            success=False,
            error_type="validation_error",
            errors=e.errors,
        )
    except Exception as e:
        return MetricsResponse(
            success=False,
            error_type="processing_error",
            errors=[str(e)],
        )


@router.get("/po-tracker/sectors/{sector_id}", response_model=MetricsResponse)
async def sector_metrics(sector_id: str, as_of: date | None = None, strict: bool = True):
    """Load a sector from the backend and compute its PO metrics."""
    try:
        source = SupabaseSectorClient.from_settings(Settings.from_env())
        data = await source.load(sector_id)
        return _compute(data, as_of or date.today(), strict)
    except StrictValidationError as e:
        return MetricsResponse(
            success=False,
            error_type="validation_error",
            errors=e.errors,
        )
    except DataSourceError as e:
        return MetricsResponse(
            success=False,
            error_type="backend_error",
            errors=[str(e)],
        )
    except Exception as e:
        return MetricsResponse(
            success=False,
            error_type="processing_error",
            errors=[str(e)],
        )
