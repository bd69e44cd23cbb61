"""CLI entry point.

Usage:
    python -m po_tracker \
        --snapshot "sector.json" \
        --as-of 2026-03-15 \
        --out "PO_Tracker.xlsx" \
        --audit-out "PO_Tracker.json" \
        --csv-out "PO_Breakdown.csv"

    # or read straight from the backend (PO_TRACKER_SUPABASE_URL / _KEY)
    python -m po_tracker --sector-id 00000000-0000-0000-0000-000000000001
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Optional

import typer

from po_tracker.config import Settings
from po_tracker.models import DataSourceError, StrictValidationError

app = typer.Typer(add_completion=False, help="Purchase-order burn-rate and accrual tracker.")


def _parse_as_of(value: Optional[str]) -> date:
    if not value:
        return date.today()
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise typer.BadParameter(f"expected YYYY-MM-DD, got {value!r}", param_hint="--as-of") from None


def _money(value) -> str:
    return f"${value:,.2f}"


@app.command()
def generate(
    snapshot: Optional[str] = typer.Option(None, "--snapshot", help="JSON snapshot of one sector's rows"),
    sector_id: Optional[str] = typer.Option(None, "--sector-id", help="Sector to load from the backend (default: PO_TRACKER_SECTOR_ID)"),
    as_of: Optional[str] = typer.Option(None, "--as-of", help="Reference date YYYY-MM-DD (default: today)"),
    out: Optional[str] = typer.Option(None, "--out", help="Output Excel file path"),
    audit_out: Optional[str] = typer.Option(None, "--audit-out", help="Output audit JSON file path"),
    csv_out: Optional[str] = typer.Option(None, "--csv-out", help="Output monthly breakdown CSV path"),
    strict: bool = typer.Option(True, "--strict/--no-strict", help="Enable strict validation (default: True)"),
) -> None:
    """Compute PO burn, accrual and run-out metrics for one sector."""
    from po_tracker.parsers import load_snapshot
    from po_tracker.sources import load_sector_data
    from po_tracker.engine import (
        compute_work_order_metrics,
        drop_non_finite,
        summarize_portfolio,
        validate_records,
    )
    from po_tracker.excel import generate_excel_report
    from po_tracker.audit import generate_audit
    from po_tracker.export import export_breakdown_csv

    reference_date = _parse_as_of(as_of)
    settings = Settings.from_env()

    if snapshot is None and not settings.has_backend:
        typer.echo(
            "ERROR: pass --snapshot or configure PO_TRACKER_SUPABASE_URL and PO_TRACKER_SUPABASE_KEY",
            err=True,
        )
        raise typer.Exit(1)

    typer.echo(f"As of: {reference_date.isoformat()}")
    typer.echo(f"Strict mode: {strict}")
    typer.echo("")

    try:
        # Step 1: Load
        if snapshot is not None:
            typer.echo(f"Loading snapshot: {Path(snapshot)}...")
            data = load_snapshot(snapshot)
        else:
            sector = sector_id or settings.sector_id
            typer.echo(f"Loading sector {sector} from backend...")
            data = load_sector_data(sector, settings)

        typer.echo(f"  Work orders: {len(data.work_orders)}")
        typer.echo(f"  Rate lines: {len(data.rate_lines)}")
        typer.echo(f"  Planned hours: {len(data.planned_hours)}")
        typer.echo(f"  Timesheets: {len(data.timesheets)}")
        typer.echo(f"  Invoices: {len(data.invoices)}")

        # Step 2: Validate
        typer.echo("\nRunning validation...")
        warnings = validate_records(data, strict=strict)
        if warnings:
            for warning in warnings:
                typer.echo(f"  WARNING: {warning}", err=True)
            data = drop_non_finite(data)
        else:
            typer.echo("  Validation PASSED")

        # Step 3: Calculate
        typer.echo("\nCalculating PO metrics...")
        metrics = compute_work_order_metrics(
            data.work_orders,
            data.rate_lines,
            data.planned_hours,
            data.timesheets,
            data.invoices,
            as_of=reference_date,
        )
        totals = summarize_portfolio(metrics)

        for m in metrics:
            if m.po_value <= 0:
                continue
            wo = m.work_order
            typer.echo(f"  {wo.po_reference or wo.id} ({wo.client_name or wo.client_id}):")
            typer.echo(f"    PO value: {_money(m.po_value)}  Invoiced: {_money(m.invoiced_total)}  Accrued: {_money(m.accrued_total)}")
            typer.echo(f"    Remaining: {_money(m.remaining)}  Variance: {_money(m.variance)} ({m.variance_label})")
            runway = f"{m.months_remaining:.1f}" if m.months_remaining is not None else "-"
            typer.echo(f"    Burn/month: {_money(m.monthly_burn)}  Months remaining: {runway}  Burn: {m.burn_pct:.1%}")

        typer.echo(f"\n  TOTAL PO VALUE: {_money(totals.po_value)}")
        typer.echo(f"  TOTAL INVOICED: {_money(totals.invoiced)}")
        typer.echo(f"  TOTAL ACCRUED: {_money(totals.accrued)}")
        typer.echo(f"  TOTAL REMAINING: {_money(totals.remaining)}")
        typer.echo(f"  VARIANCE: {_money(totals.variance)} ({totals.variance_label})")

        # Step 4: Outputs
        if out:
            typer.echo(f"\nGenerating Excel report: {out}...")
            generate_excel_report(metrics, totals, reference_date, out)
        if audit_out:
            typer.echo(f"Generating audit file: {audit_out}...")
            generate_audit(metrics, totals, reference_date, audit_out)
        if csv_out:
            typer.echo(f"Exporting monthly breakdown: {csv_out}...")
            export_breakdown_csv(metrics, csv_out)

        typer.echo("\nSUCCESS: PO tracker computed.")

    except StrictValidationError as e:
        typer.echo("\nSTRICT VALIDATION FAILED:", err=True)
        for error in e.errors:
            typer.echo(f"  ERROR: {error}", err=True)
        typer.echo("\nReport NOT generated.", err=True)
        raise typer.Exit(1)

    except DataSourceError as e:
        typer.echo(f"\nBACKEND ERROR: {e}", err=True)
        raise typer.Exit(1)

    except Exception as e:
        typer.echo(f"\nFATAL ERROR: {e}", err=True)
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
