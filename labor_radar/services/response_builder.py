# labor_radar/services/response_builder.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Sequence

from labor_radar.config import ReferenceTables
from labor_radar.models import SourceResult
from labor_radar.services.reconciler import Reconciled
from labor_radar.utils.country_codes import EU_COUNTRY_CODES, eu_country_names


def utc_timestamp(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def data_quality(results: Mapping[str, SourceResult], adapter_keys: Sequence[str]) -> Dict[str, str]:
    """'live' only when the adapter returned usable data; anything else is 'fallback'."""
    out: Dict[str, str] = {}
    for key in adapter_keys:
        result = results.get(key)
        out[key] = result.quality if result is not None else "fallback"
    return out


def build_payload(
    reconciled: Reconciled,
    results: Mapping[str, SourceResult],
    tables: ReferenceTables,
    adapter_keys: Sequence[str],
    fetched_at: Optional[str] = None,
) -> Dict[str, Any]:
    """Pure assembly of the dashboard document; no values are changed here."""
    datasets = reconciled.datasets
    return {
        "unemployment": datasets["unemployment"],
        "employment": datasets["employment"],
        "avgSalary": datasets["avgSalary"],
        "medSalary": datasets["medSalary"],
        "minimumWage": {c: dict(tables.minimum_wage[c]) for c in EU_COUNTRY_CODES},
        "taxBrackets": {c: dict(tables.tax_brackets[c]) for c in EU_COUNTRY_CODES},
        "countries": eu_country_names(),
        "salarySource": reconciled.salary_source,
        "metadata": {
            "fetchedAt": fetched_at or utc_timestamp(),
            "sources": dict(tables.sources),
            "balticOverrides": {
                code: {
                    "source": rec["source"],
                    "period": rec["period"],
                    "lastUpdated": rec["lastUpdated"],
                }
                for code, rec in tables.overrides.items()
            },
            "dataQuality": data_quality(results, adapter_keys),
            "provenance": reconciled.provenance,
            "referenceVersion": tables.version,
        },
    }
