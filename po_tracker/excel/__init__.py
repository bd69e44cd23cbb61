"""Excel report generation."""
from po_tracker.excel.generator import generate_excel_report

__all__ = ["generate_excel_report"]
