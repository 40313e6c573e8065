# labor_radar/routes/labor.py: aggregated EU labor statistics
from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from fastapi import APIRouter, Depends, Path
from fastapi.responses import JSONResponse

from labor_radar.config import ReferenceTables, Settings, get_settings, load_reference_tables
from labor_radar.services.labor_service import Adapter, build_dashboard_payload, country_row
from labor_radar.utils.country_codes import eurostat_geo

logger = logging.getLogger("labor-radar")

router = APIRouter(tags=["labor"])


def get_adapters() -> Optional[Mapping[str, Adapter]]:
    """None means the default provider set; overridden in tests."""
    return None


def _error(status: int, error: str, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": error, "detail": detail})


def _aggregate(
    settings: Settings,
    tables: ReferenceTables,
    adapters: Optional[Mapping[str, Adapter]],
) -> Dict[str, Any]:
    return build_dashboard_payload(settings=settings, tables=tables, adapters=adapters)


@router.get(
    "/v1/eu-labor-stats",
    summary="EU labor statistics",
    operation_id="eu_labor_stats_get",
    description=(
        "Unemployment, employment, average/median salary, minimum wage and income-tax\n"
        "brackets for the 27 EU members. Live OECD/Eurostat data is merged with\n"
        "national-statistics overrides and static fallbacks; metadata.dataQuality\n"
        "reports which upstream sources were live."
    ),
)
def eu_labor_stats(
    settings: Settings = Depends(get_settings),
    tables: ReferenceTables = Depends(load_reference_tables),
    adapters: Optional[Mapping[str, Adapter]] = Depends(get_adapters),
) -> JSONResponse:
    try:
        payload = _aggregate(settings, tables, adapters)
    except Exception as e:
        logger.exception("eu_labor_stats aggregation failed")
        return _error(500, "aggregation_failed", f"{type(e).__name__}: {e}")
    return JSONResponse(content=payload)


@router.get(
    "/v1/eu-labor-stats/countries/{code}",
    summary="EU labor statistics for one country",
    operation_id="eu_labor_stats_country_get",
)
def eu_labor_stats_country(
    code: str = Path(..., description="Eurostat country code, e.g. DE or EL"),
    settings: Settings = Depends(get_settings),
    tables: ReferenceTables = Depends(load_reference_tables),
    adapters: Optional[Mapping[str, Adapter]] = Depends(get_adapters),
) -> JSONResponse:
    if eurostat_geo(code) is None:
        return _error(404, "unknown_country", f"{code!r} is not an EU member code")
    try:
        payload = _aggregate(settings, tables, adapters)
        row = country_row(payload, code)
    except Exception as e:
        logger.exception("eu_labor_stats_country aggregation failed | code=%s", code)
        return _error(500, "aggregation_failed", f"{type(e).__name__}: {e}")
    row["fetchedAt"] = payload["metadata"]["fetchedAt"]
    row["dataQuality"] = payload["metadata"]["dataQuality"]
    return JSONResponse(content=row)
