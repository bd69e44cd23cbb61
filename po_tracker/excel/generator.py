"""Excel report generator.

Writes a fresh workbook with a Summary sheet (one row per work order with a
PO value, plus portfolio totals) and a Monthly Breakdown sheet. All values
are pre-computed in Python; no Excel formulas are written.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Optional

import openpyxl
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from po_tracker.models import PortfolioTotals, WorkOrderMetrics

SUMMARY_SHEET = "Summary"
BREAKDOWN_SHEET = "Monthly Breakdown"

TITLE_ROW = 1
AS_OF_ROW = 2
HEADER_ROW = 4
DATA_START_ROW = 5

SUMMARY_HEADERS = [
    "PO Reference", "Name", "Client", "Status", "PO Value", "Invoiced",
    "Accrued", "Remaining", "Burn Rate / Month", "Months Remaining",
    "PO Burn %", "Variance", "Variance Status",
]
BREAKDOWN_HEADERS = ["PO Reference", "Month", "Accrued", "Invoiced", "Variance"]

# Formatting constants
THIN_BORDER = Border(
    left=Side(style='thin'),
    right=Side(style='thin'),
    top=Side(style='thin'),
    bottom=Side(style='thin'),
)

HEADER_FONT = Font(name='Calibri', size=11, bold=True, color='FFFFFF')
TOTAL_FONT = Font(name='Calibri', size=11, bold=True)
DATA_FONT = Font(name='Calibri', size=11)
TITLE_FONT = Font(name='Calibri', size=12, bold=True)
CENTER_ALIGN = Alignment(horizontal='center', vertical='center')
HEADER_FILL = PatternFill(start_color='4B2E83', end_color='4B2E83', fill_type='solid')
STATUS_FILLS = {
    "red": PatternFill(start_color='F8D7DA', end_color='F8D7DA', fill_type='solid'),
    "amber": PatternFill(start_color='FFF4E5', end_color='FFF4E5', fill_type='solid'),
    "green": PatternFill(start_color='E8F5E8', end_color='E8F5E8', fill_type='solid'),
}
DOLLAR_FORMAT = '_("$"* #,##0.00_);_("$"* \\(#,##0.00\\);_("$"* "-"??_);_(@_)'
NUMBER_FORMAT = '#,##0.0'
PCT_FORMAT = '0.0%'


def _write_headers(ws, headers: list[str]) -> None:
    for col, label in enumerate(headers, start=1):
        c = ws.cell(row=HEADER_ROW, column=col)
        c.value = label
        c.font = HEADER_FONT
        c.fill = HEADER_FILL
        c.alignment = CENTER_ALIGN
        c.border = THIN_BORDER


def _write_value(ws, row: int, col: int, value, number_format: Optional[str] = None, font: Font = DATA_FONT):
    c = ws.cell(row=row, column=col)
    c.value = float(value) if isinstance(value, Decimal) else value
    c.font = font
    c.border = THIN_BORDER
    if number_format and value is not None:
        c.number_format = number_format
    return c


def _month_label(month: str) -> str:
    try:
        year, mon = month.split("-")
        return date(int(year), int(mon), 1).strftime("%B %Y")
    except ValueError:
        return month


def _write_summary(ws, metrics: list[WorkOrderMetrics], totals: PortfolioTotals, as_of: date) -> None:
    last_col = len(SUMMARY_HEADERS)
    ws.merge_cells(start_row=TITLE_ROW, start_column=1, end_row=TITLE_ROW, end_column=last_col)
    title = ws.cell(row=TITLE_ROW, column=1)
    title.value = 'PO Tracker: burn rates, accrued vs invoiced, remaining balances'
    title.font = TITLE_FONT
    title.alignment = CENTER_ALIGN

    ws.cell(row=AS_OF_ROW, column=1).value = 'As of'
    ws.cell(row=AS_OF_ROW, column=1).font = TOTAL_FONT
    ws.cell(row=AS_OF_ROW, column=2).value = as_of.isoformat()

    _write_headers(ws, SUMMARY_HEADERS)

    row = DATA_START_ROW
    for m in metrics:
        wo = m.work_order
        _write_value(ws, row, 1, wo.po_reference or wo.id)
        _write_value(ws, row, 2, wo.name)
        _write_value(ws, row, 3, wo.client_name)
        _write_value(ws, row, 4, wo.status.value.title())
        _write_value(ws, row, 5, m.po_value, DOLLAR_FORMAT)
        _write_value(ws, row, 6, m.invoiced_total, DOLLAR_FORMAT)
        _write_value(ws, row, 7, m.accrued_total, DOLLAR_FORMAT)
        _write_value(ws, row, 8, m.remaining, DOLLAR_FORMAT)
        _write_value(ws, row, 9, m.monthly_burn if m.monthly_burn > 0 else None, DOLLAR_FORMAT)
        _write_value(ws, row, 10, m.months_remaining, NUMBER_FORMAT)
        burn = _write_value(ws, row, 11, m.burn_pct, PCT_FORMAT)
        burn.fill = STATUS_FILLS[m.burn_status]
        _write_value(ws, row, 12, m.variance, DOLLAR_FORMAT)
        _write_value(ws, row, 13, m.variance_label)
        row += 1

    # --- Totals row ---
    _write_value(ws, row, 1, 'Total', font=TOTAL_FONT)
    for col, value in [
        (5, totals.po_value),
        (6, totals.invoiced),
        (7, totals.accrued),
        (8, totals.remaining),
        (12, totals.variance),
    ]:
        _write_value(ws, row, col, value, DOLLAR_FORMAT, font=TOTAL_FONT)
    _write_value(ws, row, 13, totals.variance_label, font=TOTAL_FONT)

    ws.column_dimensions['A'].width = 20
    ws.column_dimensions['B'].width = 28
    ws.column_dimensions['C'].width = 24
    for col in range(4, last_col + 1):
        ws.column_dimensions[get_column_letter(col)].width = 16


def _write_breakdown(ws, metrics: list[WorkOrderMetrics]) -> None:
    ws.cell(row=TITLE_ROW, column=1).value = 'Monthly Breakdown'
    ws.cell(row=TITLE_ROW, column=1).font = TITLE_FONT
    _write_headers(ws, BREAKDOWN_HEADERS)

    row = DATA_START_ROW
    for m in metrics:
        if not m.monthly_breakdown:
            continue
        ref = m.work_order.po_reference or m.work_order.id
        for entry in m.monthly_breakdown:
            _write_value(ws, row, 1, ref)
            _write_value(ws, row, 2, _month_label(entry.month))
            _write_value(ws, row, 3, entry.accrued, DOLLAR_FORMAT)
            _write_value(ws, row, 4, entry.invoiced, DOLLAR_FORMAT)
            _write_value(ws, row, 5, entry.variance, DOLLAR_FORMAT)
            row += 1

        _write_value(ws, row, 1, ref, font=TOTAL_FONT)
        _write_value(ws, row, 2, 'Total', font=TOTAL_FONT)
        _write_value(ws, row, 3, m.accrued_total, DOLLAR_FORMAT, font=TOTAL_FONT)
        _write_value(ws, row, 4, m.invoiced_total, DOLLAR_FORMAT, font=TOTAL_FONT)
        _write_value(ws, row, 5, m.variance, DOLLAR_FORMAT, font=TOTAL_FONT)
        row += 2

    ws.column_dimensions['A'].width = 20
    ws.column_dimensions['B'].width = 18
    for col in range(3, len(BREAKDOWN_HEADERS) + 1):
        ws.column_dimensions[get_column_letter(col)].width = 16


def generate_excel_report(
    metrics: list[WorkOrderMetrics],
    totals: PortfolioTotals,
    as_of: date,
    output_path: str | Path,
) -> Path:
    """Generate the PO tracker workbook.

    Only work orders with a PO value are listed; the rest have no burn to show.
    """
    output_path = Path(output_path)
    with_po = [m for m in metrics if m.po_value > 0]

    wb = openpyxl.Workbook()
    summary = wb.active
    summary.title = SUMMARY_SHEET
    _write_summary(summary, with_po, totals, as_of)
    _write_breakdown(wb.create_sheet(BREAKDOWN_SHEET), with_po)

    wb.save(str(output_path))
    return output_path
