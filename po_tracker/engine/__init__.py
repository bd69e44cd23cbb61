"""Validation and calculation engines."""
from po_tracker.engine.validator import drop_non_finite, validate_records
from po_tracker.engine.calculator import compute_work_order_metrics, summarize_portfolio

__all__ = ["drop_non_finite", "validate_records", "compute_work_order_metrics", "summarize_portfolio"]
