"""Runtime configuration read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_SECTOR_ID = "00000000-0000-0000-0000-000000000001"


@dataclass(frozen=True)
class Settings:
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    sector_id: str = DEFAULT_SECTOR_ID
    timeout: float = 30.0

    @property
    def has_backend(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        timeout = env.get("PO_TRACKER_TIMEOUT", "")
        try:
            timeout_s = float(timeout) if timeout.strip() else 30.0
        except ValueError:
            raise ValueError(f"PO_TRACKER_TIMEOUT must be a number of seconds, got {timeout!r}") from None
        return cls(
            supabase_url=env.get("PO_TRACKER_SUPABASE_URL") or None,
            supabase_key=env.get("PO_TRACKER_SUPABASE_KEY") or None,
            sector_id=env.get("PO_TRACKER_SECTOR_ID") or DEFAULT_SECTOR_ID,
            timeout=timeout_s,
        )
