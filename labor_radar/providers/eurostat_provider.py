# labor_radar/providers/eurostat_provider.py
from __future__ import annotations

"""
Eurostat provider (dissemination API, JSON-stat 2.0) for the EU labor dashboard
- Unemployment (monthly):  une_rt_m, s_adj=SA, sex=T, age=Y15-74, unit=PC_ACT
- Employment (annual):     lfsi_emp_a, indic_em=EMP_LFS, sex=T, age=Y15-64, unit=THS_PER
- SES earnings (4-yearly): earn_ses_pub2s, indic_se=MEAN_E_EUR | MED_E_EUR

Every request covers all 27 EU members at once (geo repeated per country), so
one call returns {country: {period: value}} for the whole table.

Returns a SourceResult; failures are tagged, never raised:
- failed:    transport error or non-2xx status
- malformed: body without values / dimensions / geo dimension
- empty:     valid body with no usable observations
"""

import logging
from typing import List, Optional, Tuple

from labor_radar.config import Settings, get_settings
from labor_radar.models import SourceResult
from labor_radar.providers import http_client
from labor_radar.services.source_matrix import SOURCE_MATRIX, AdapterSpec
from labor_radar.utils.country_codes import EU_COUNTRY_CODES
from labor_radar.utils.cube_decoder import decode_jsonstat
from labor_radar.utils.ttl_cache import TTLCache

logger = logging.getLogger("labor-radar")

_cache = TTLCache(get_settings().cache_ttl_sec)


def _build_url(base_url: str, dataset: str) -> str:
    return f"{base_url.rstrip('/')}/{dataset}"


def build_params(spec: AdapterSpec) -> List[Tuple[str, str]]:
    params: List[Tuple[str, str]] = [("format", "JSON"), ("lang", "EN")]
    params.extend(("geo", code) for code in EU_COUNTRY_CODES)
    params.extend(spec.get("filters", {}).items())
    if spec.get("since"):
        params.append(("sinceTimePeriod", spec["since"]))
    return params


def fetch_eurostat_dataset(spec: AdapterSpec, settings: Optional[Settings] = None) -> SourceResult:
    settings = settings or get_settings()
    key = spec["key"]
    cache_key = f"eurostat:{settings.eurostat_base_url}:{key}"
    use_cache = settings.cache_ttl_sec > 0
    cached = _cache.get(cache_key) if use_cache else None
    if cached is not None:
        return cached

    url = _build_url(settings.eurostat_base_url, spec["dataset"])
    payload, error = http_client.get_json(url, build_params(spec), settings, label=f"Eurostat {spec['dataset']}")
    if error is not None:
        return SourceResult.failed(key, error)

    decoded = decode_jsonstat(payload)
    if decoded.problem:
        logger.warning("[Eurostat] %s malformed: %s", spec["dataset"], decoded.problem)
        return SourceResult.malformed(key, decoded.problem)
    if decoded.skipped:
        logger.info("[Eurostat] %s skipped %d observations", spec["dataset"], decoded.skipped)

    result = SourceResult.ok(key, decoded.data)
    logger.info("[Eurostat] %s parsed %d countries", spec["dataset"], len(result.data))
    if use_cache and result.is_live:
        _cache.set(cache_key, result)
    return result


# ------------------------------------------------------------------------------
# Public API: one wrapper per dataset
# ------------------------------------------------------------------------------
def eurostat_unemployment_monthly(settings: Optional[Settings] = None) -> SourceResult:
    """Unemployment rate (% of active population), monthly, seasonally adjusted. {"YYYY-MM": float}"""
    return fetch_eurostat_dataset(SOURCE_MATRIX["unemploymentData"], settings)


def eurostat_employment_annual(settings: Optional[Settings] = None) -> SourceResult:
    """Employed persons aged 15-64, thousands, annual. {"YYYY": float}"""
    return fetch_eurostat_dataset(SOURCE_MATRIX["employmentData"], settings)


def eurostat_mean_earnings(settings: Optional[Settings] = None) -> SourceResult:
    return fetch_eurostat_dataset(SOURCE_MATRIX["meanEarningsData"], settings)


def eurostat_median_earnings(settings: Optional[Settings] = None) -> SourceResult:
    return fetch_eurostat_dataset(SOURCE_MATRIX["medianEarningsData"], settings)
