# labor_radar/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.routing import APIRoute

from labor_radar.config import load_reference_tables
from labor_radar.routes import labor

logger = logging.getLogger("labor-radar")
logging.basicConfig(level=logging.INFO)


# --- keep operation_id stable (avoid FastAPI auto-dedupe renaming) ----------
def _fixed_unique_id(route: APIRoute) -> str:
    return route.operation_id or f"{route.name}_{route.path}".strip("/").replace("/", "_")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Reference tables are validated once; a coverage gap aborts startup.
    tables = load_reference_tables()
    logger.info(
        "[init] reference tables v%s loaded | overrides=%s median_ratio=%s",
        tables.version, sorted(tables.overrides), tables.median_ratio,
    )
    yield


app = FastAPI(
    title="EU Labor Radar API",
    description="Labor-market statistics for the 27 EU member states",
    version="2025.01.15",
    generate_unique_id_function=_fixed_unique_id,
    lifespan=lifespan,
)

app.include_router(labor.router)
logger.info("[init] labor router mounted")


@app.get("/")
def root():
    return {
        "ok": True,
        "routers_now": ["labor"],
        "endpoints": ["/v1/eu-labor-stats", "/v1/eu-labor-stats/countries/{code}", "/healthz"],
    }


@app.get("/healthz")
def healthz():
    # keep this super fast
    return {"status": "ok"}
