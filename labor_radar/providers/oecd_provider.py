# labor_radar/providers/oecd_provider.py
from __future__ import annotations

"""
OECD provider (SDMX REST, SDMX-JSON) for average annual wages.

- Dataflow: OECD.ELS.SAE,DSD_EARNINGS@AV_AN_WAGE,1.0
- Key:      <AUT+BEL+...>..EUR..   (EUR, all other dimensions open)
- Params:   startPeriod=2020, dimensionAtObservation=AllDimensions, format=jsondata

OECD areas are ISO alpha-3; they are translated to the Eurostat alpha-2 codes
used everywhere else. Areas outside the EU-27 are dropped during decoding.
Values are rounded to whole euros.
"""

import logging
from typing import Dict, Optional

from labor_radar.config import Settings, get_settings
from labor_radar.models import MetricDataset, SourceResult
from labor_radar.providers import http_client
from labor_radar.services.source_matrix import SOURCE_MATRIX, AdapterSpec
from labor_radar.utils.country_codes import OECD_EU_MEMBERS
from labor_radar.utils.cube_decoder import decode_sdmx_observations
from labor_radar.utils.series_math import round_half_up
from labor_radar.utils.ttl_cache import TTLCache

logger = logging.getLogger("labor-radar")

_cache = TTLCache(get_settings().cache_ttl_sec)


def build_url(base_url: str, spec: AdapterSpec) -> str:
    key = (spec.get("key_template") or "{areas}").format(areas="+".join(OECD_EU_MEMBERS))
    return f"{base_url.rstrip('/')}/{spec['dataset']}/{key}"


def build_params(spec: AdapterSpec) -> Dict[str, str]:
    params = {"format": "jsondata", "dimensionAtObservation": "AllDimensions"}
    if spec.get("since"):
        params["startPeriod"] = spec["since"]
    return params


def _round_wages(data: MetricDataset) -> MetricDataset:
    return {c: {p: round_half_up(v) for p, v in series.items()} for c, series in data.items()}


def oecd_average_wages(settings: Optional[Settings] = None) -> SourceResult:
    """Average annual wages in EUR for the OECD-reporting EU members. {"YYYY": int}"""
    settings = settings or get_settings()
    spec = SOURCE_MATRIX["oecdData"]
    cache_key = f"oecd:{settings.oecd_base_url}:wages"
    use_cache = settings.cache_ttl_sec > 0
    cached = _cache.get(cache_key) if use_cache else None
    if cached is not None:
        return cached

    payload, error = http_client.get_json(
        build_url(settings.oecd_base_url, spec), build_params(spec), settings, label="OECD wages"
    )
    if error is not None:
        return SourceResult.failed(spec["key"], error)

    decoded = decode_sdmx_observations(payload)
    if decoded.problem:
        logger.warning("[OECD] wages malformed: %s", decoded.problem)
        return SourceResult.malformed(spec["key"], decoded.problem)
    if decoded.skipped:
        logger.info("[OECD] wages skipped %d observations", decoded.skipped)

    result = SourceResult.ok(spec["key"], _round_wages(decoded.data))
    logger.info("[OECD] wages parsed %d countries", len(result.data))
    if use_cache and result.is_live:
        _cache.set(cache_key, result)
    return result
