"""Sector data loader for the hosted database's REST interface."""
from __future__ import annotations

import asyncio
import logging
from typing import Any
from urllib.parse import urlparse

import httpx

from po_tracker.config import Settings
from po_tracker.models import DataSourceError, SectorData
from po_tracker.parsers.rows import (
    parse_invoices,
    parse_planned_hours,
    parse_rate_lines,
    parse_timesheets,
    parse_work_orders,
)

logger = logging.getLogger(__name__)

# table name, select clause
WORK_ORDERS = ("work_orders", "*,clients(name)")
RATE_LINES = ("work_order_rate_lines", "*")
PLANNED_HOURS = (
    "planned_weekly_hours",
    "employee_id,project_id,week_ending,planned_hours,rate_line_id,projects(work_order_id)",
)
TIMESHEETS = (
    "timesheet_entries",
    "employee_id,project_id,week_ending,hours,projects(work_order_id)",
)
INVOICES = ("invoices", "*")


class SupabaseSectorClient:
    """Reads one sector's PO tracker collections over REST."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        parsed = urlparse(base_url)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError("base_url must include scheme and host")

        self._rest_url = f"{parsed.scheme}://{parsed.netloc}/rest/v1"
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Accept": "application/json",
        }
        self._timeout = timeout
        self._client = http_client

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "SupabaseSectorClient":
        if not settings.has_backend:
            raise DataSourceError(
                "Backend not configured: set PO_TRACKER_SUPABASE_URL and PO_TRACKER_SUPABASE_KEY"
            )
        return cls(settings.supabase_url, settings.supabase_key, timeout=settings.timeout, **kwargs)

    async def fetch_table(
        self,
        client: httpx.AsyncClient,
        table: str,
        select: str,
        sector_id: str,
    ) -> list[dict[str, Any]]:
        """Fetch all rows of one table for a sector."""
        params = {"select": select, "sector_id": f"eq.{sector_id}"}
        try:
            response = await client.get(
                f"{self._rest_url}/{table}", params=params, headers=self._headers,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise DataSourceError(
                f"{table}: backend returned {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise DataSourceError(f"{table}: {e}") from e

        rows = response.json()
        if not isinstance(rows, list):
            raise DataSourceError(f"{table}: expected a list of rows, got {type(rows).__name__}")
        logger.debug("Fetched %d row(s) from %s for sector %s", len(rows), table, sector_id)
        return rows

    async def load(self, sector_id: str) -> SectorData:
        """Load the five collections concurrently and parse them."""
        if self._client is not None:
            return await self._load_with(self._client, sector_id)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await self._load_with(client, sector_id)

    async def _load_with(self, client: httpx.AsyncClient, sector_id: str) -> SectorData:
        tasks = [
            asyncio.ensure_future(self.fetch_table(client, table, select, sector_id))
            for table, select in (WORK_ORDERS, RATE_LINES, PLANNED_HOURS, TIMESHEETS, INVOICES)
        ]
        try:
            wo_rows, rl_rows, pwh_rows, ts_rows, inv_rows = await asyncio.gather(*tasks)
        except BaseException:
            # One failed read fails the load; stop the others before returning
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            raise
        return SectorData(
            work_orders=parse_work_orders(wo_rows),
            rate_lines=parse_rate_lines(rl_rows),
            planned_hours=parse_planned_hours(pwh_rows),
            timesheets=parse_timesheets(ts_rows),
            invoices=parse_invoices(inv_rows),
        )


def load_sector_data(
    sector_id: str,
    settings: Settings | None = None,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> SectorData:
    """Synchronous entry point for callers outside an event loop."""
    settings = settings or Settings.from_env()
    source = SupabaseSectorClient.from_settings(settings, http_client=http_client)
    return asyncio.run(source.load(sector_id))
