# src/agdermap/api/app.py
"""
FastAPI application wiring.

This file creates the `FastAPI` instance and its CORS policy. The map frontend is served
separately and talks to the JSON endpoints in `agdermap.api.routes`.

Run with: `uvicorn agdermap.api.app:app --reload`
"""

from __future__ import annotations

import os

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from agdermap.core.logging import configure_logging

from .routes import router

_LOCALHOST_ORIGINS = r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$"


def _cors_options() -> dict | None:
    """CORS middleware kwargs from the environment, or None to skip CORS entirely.

    - `AGDERMAP_CORS_ORIGINS`: comma-separated explicit origins (e.g. the deployed map page)
    - `AGDERMAP_CORS_ALLOW_LOCAL=0`: drop the default localhost allowance used in development
    """
    origins = [o.strip() for o in os.getenv("AGDERMAP_CORS_ORIGINS", "").split(",") if o.strip()]
    allow_local = os.getenv("AGDERMAP_CORS_ALLOW_LOCAL", "1").strip().lower() not in {"0", "false", "no", "n"}
    if origins:
        return {"allow_origins": origins}
    if allow_local:
        return {"allow_origins": [], "allow_origin_regex": _LOCALHOST_ORIGINS}
    return None


configure_logging()

app = FastAPI(title="AgderMap API", version="0.1.0")

cors = _cors_options()
if cors is not None:
    # The map only reads layers and posts filter queries.
    app.add_middleware(CORSMiddleware, allow_methods=["GET", "POST"], allow_headers=["*"], **cors)

app.include_router(router)


@app.get("/healthz", include_in_schema=False)
def healthz() -> dict:
    return {"status": "ok"}
