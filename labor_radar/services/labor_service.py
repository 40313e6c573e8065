# labor_radar/services/labor_service.py: adapter fan-out + reconcile + assemble
from __future__ import annotations

import concurrent.futures as _fut
import logging
import time as _time
from typing import Any, Callable, Dict, Mapping, Optional

from labor_radar.config import ReferenceTables, Settings, get_settings, load_reference_tables
from labor_radar.models import SERIES_METRICS, SourceResult
from labor_radar.providers import eurostat_provider, oecd_provider
from labor_radar.services.reconciler import reconcile
from labor_radar.services.response_builder import build_payload, utc_timestamp
from labor_radar.services.source_matrix import active_adapters
from labor_radar.utils.country_codes import country_name, eurostat_geo
from labor_radar.utils.series_math import latest

logger = logging.getLogger("labor-radar")

Adapter = Callable[[Settings], SourceResult]

def default_adapters() -> Dict[str, Adapter]:
    # resolved per call so the provider functions can be swapped in tests
    return {
        "oecdData": oecd_provider.oecd_average_wages,
        "unemploymentData": eurostat_provider.eurostat_unemployment_monthly,
        "employmentData": eurostat_provider.eurostat_employment_annual,
        "meanEarningsData": eurostat_provider.eurostat_mean_earnings,
        "medianEarningsData": eurostat_provider.eurostat_median_earnings,
    }


def _run_adapter(key: str, fn: Adapter, settings: Settings, timing: Dict[str, int]) -> SourceResult:
    t0 = _time.time()
    try:
        return fn(settings)
    except Exception as e:
        logger.exception("[fanout] adapter %s raised", key)
        return SourceResult.failed(key, f"{type(e).__name__}: {e}")
    finally:
        timing[key] = int((_time.time() - t0) * 1000)


def fetch_all_sources(
    settings: Optional[Settings] = None,
    adapters: Optional[Mapping[str, Adapter]] = None,
) -> Dict[str, SourceResult]:
    """
    Run every active adapter concurrently and wait until each one has settled
    or the join deadline passes. Always returns one SourceResult per adapter.

    Each call gets its own pool with one worker per adapter, so branches left
    running by an earlier request never queue ahead of this one. The pool is
    shut down without waiting; late branches finish on their own and their
    results are discarded.
    """
    settings = settings or get_settings()
    adapters = adapters if adapters is not None else default_adapters()
    keys = [spec["key"] for spec in active_adapters(settings.use_ses_earnings)]

    timing: Dict[str, int] = {}
    runnable = {key: adapters[key] for key in keys if adapters.get(key) is not None}
    results: Dict[str, SourceResult] = {}
    if runnable:
        ex = _fut.ThreadPoolExecutor(max_workers=len(runnable), thread_name_prefix="labor-adapter")
        try:
            futs = {key: ex.submit(_run_adapter, key, fn, settings, timing) for key, fn in runnable.items()}
            deadline = _time.monotonic() + settings.join_timeout_sec
            for key, fut in futs.items():
                try:
                    results[key] = fut.result(timeout=max(0.0, deadline - _time.monotonic()))
                except _fut.TimeoutError:
                    fut.cancel()
                    logger.warning("[fanout] %s did not settle within %.1fs", key, settings.join_timeout_sec)
                    results[key] = SourceResult.failed(key, "timed out")
        finally:
            ex.shutdown(wait=False, cancel_futures=True)

    for key in keys:
        if key not in runnable:
            results[key] = SourceResult.failed(key, "no adapter registered")
    results = {key: results[key] for key in keys}

    logger.info("[fanout] timing_ms=%s", dict(timing))
    return results


def build_dashboard_payload(
    settings: Optional[Settings] = None,
    tables: Optional[ReferenceTables] = None,
    adapters: Optional[Mapping[str, Adapter]] = None,
    fetched_at: Optional[str] = None,
) -> Dict[str, Any]:
    settings = settings or get_settings()
    tables = tables or load_reference_tables()

    results = fetch_all_sources(settings, adapters)
    for key, result in results.items():
        if not result.is_live:
            logger.warning("[sources] %s -> fallback (%s: %s)", key, result.status.value, result.reason)

    reconciled = reconcile(results, tables)
    payload = build_payload(
        reconciled,
        results,
        tables,
        adapter_keys=list(results.keys()),
        fetched_at=fetched_at or utc_timestamp(),
    )
    logger.info("Data quality: %s", payload["metadata"]["dataQuality"])
    return payload


def country_row(payload: Mapping[str, Any], code: str) -> Optional[Dict[str, Any]]:
    """
    One dashboard table row: latest period/value per series metric plus the
    static records. None for codes outside the EU-27.
    """
    code = eurostat_geo(code)
    if code is None:
        return None

    provenance = payload["metadata"]["provenance"]
    row: Dict[str, Any] = {
        "code": code,
        "name": payload.get("countries", {}).get(code) or country_name(code),
        "salarySource": payload["salarySource"].get(code),
        "isOverride": code in payload["metadata"]["balticOverrides"],
    }
    for metric in SERIES_METRICS:
        hit = latest(payload[metric].get(code))
        row[metric] = {
            "value": hit[1] if hit else None,
            "period": hit[0] if hit else None,
            "provenance": provenance[metric].get(code),
        }
    row["minimumWage"] = payload["minimumWage"].get(code)
    row["taxBracket"] = payload["taxBrackets"].get(code)
    row["history"] = {
        "unemployment": payload["unemployment"].get(code, {}),
        "employment": payload["employment"].get(code, {}),
    }
    return row
