"""Backend data access."""
from po_tracker.sources.supabase import SupabaseSectorClient, load_sector_data

__all__ = ["SupabaseSectorClient", "load_sector_data"]
