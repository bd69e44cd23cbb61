"""FastAPI application for the PO Tracker."""

from __future__ import annotations

import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from po_tracker import __version__
from api.routes import router

# Local dashboard dev servers
DEFAULT_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:3000",
    "http://127.0.0.1:5173",
]


def allowed_origins(raw: str | None = None) -> list[str]:
    """Origins from the comma-separated ALLOWED_ORIGINS variable; "*" allows any."""
    if raw is None:
        raw = os.environ.get("ALLOWED_ORIGINS", "")
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    if "*" in origins:
        return ["*"]
    return origins or list(DEFAULT_ORIGINS)


app = FastAPI(
    title="PO Tracker API",
    description="Purchase-order burn rates, accrued vs invoiced revenue and run-out projections.",
    version=__version__,
)

ALLOWED_ORIGINS = allowed_origins()

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=ALLOWED_ORIGINS != ["*"],  # credentials not allowed with wildcard
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    max_age=3600,
)

app.include_router(router)


@app.get("/")
async def root():
    return {
        "name": "PO Tracker API",
        "version": __version__,
        "docs": "/docs",
        "health": "/api/v1/health",
    }
