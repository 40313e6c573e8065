# labor_radar/config.py
from __future__ import annotations

"""
Runtime settings (environment) and the curated reference tables.

The reference tables (overrides, fallbacks, minimum wage, tax brackets) are a
versioned JSON document edited by hand. They are loaded and validated once per
process; a gap in coverage is a configuration defect and stops startup.
"""

import json
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from labor_radar.models import (
    MetricDataset,
    MinimumWageRecord,
    NonOecdSalaryRecord,
    OverrideRecord,
    TaxBracketRecord,
)
from labor_radar.utils.country_codes import EU_COUNTRY_CODES, is_eu_code

DEFAULT_REFERENCE_PATH = Path(__file__).parent / "data" / "reference_tables.json"

FALLBACK_METRICS = ("unemployment", "employment", "avgSalary")


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    eurostat_base_url: str
    oecd_base_url: str
    timeout_sec: float
    retries: int
    backoff: float
    join_timeout_sec: float
    cache_ttl_sec: int
    reference_path: Path
    median_ratio: Optional[float]
    use_ses_earnings: bool


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    ratio = os.getenv("LABOR_RADAR_MEDIAN_RATIO")
    return Settings(
        eurostat_base_url=os.getenv(
            "EUROSTAT_BASE_URL",
            "https://ec.europa.eu/eurostat/api/dissemination/statistics/1.0/data",
        ),
        oecd_base_url=os.getenv("OECD_BASE_URL", "https://sdmx.oecd.org/public/rest/data"),
        timeout_sec=_env_float("LABOR_RADAR_TIMEOUT_SEC", 8.0),
        retries=_env_int("LABOR_RADAR_RETRIES", 2),
        backoff=_env_float("LABOR_RADAR_BACKOFF", 0.8),
        join_timeout_sec=_env_float("LABOR_RADAR_JOIN_TIMEOUT_SEC", 20.0),
        cache_ttl_sec=_env_int("LABOR_RADAR_CACHE_TTL_SEC", 86400),
        reference_path=Path(os.getenv("LABOR_RADAR_REFERENCE_PATH", str(DEFAULT_REFERENCE_PATH))),
        median_ratio=float(ratio) if ratio else None,
        use_ses_earnings=_env_flag("LABOR_RADAR_USE_SES_EARNINGS"),
    )


# ------------------------------------------------------------------------------
# Reference tables
# ------------------------------------------------------------------------------
class ReferenceDataError(ValueError):
    """The curated reference tables are incomplete or malformed."""


@dataclass(frozen=True)
class ReferenceTables:
    version: str
    median_ratio: float
    sources: Dict[str, str]
    overrides: Dict[str, OverrideRecord]
    non_oecd_salaries: Dict[str, NonOecdSalaryRecord]
    fallback: Dict[str, MetricDataset]
    minimum_wage: Dict[str, MinimumWageRecord]
    tax_brackets: Dict[str, TaxBracketRecord]


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _check_countries(table: str, rows: Any, *, complete: bool) -> Dict[str, Any]:
    if not isinstance(rows, Mapping):
        raise ReferenceDataError(f"{table}: expected an object keyed by country code")
    unknown = sorted(k for k in rows if not is_eu_code(k))
    if unknown:
        raise ReferenceDataError(f"{table}: unknown country codes {unknown}")
    if complete:
        missing = [c for c in EU_COUNTRY_CODES if c not in rows]
        if missing:
            raise ReferenceDataError(f"{table}: no entry for {missing}")
    return dict(rows)


def _check_series(table: str, code: str, series: Any) -> Dict[str, float]:
    if not isinstance(series, Mapping) or not series:
        raise ReferenceDataError(f"{table}.{code}: expected a non-empty {{period: value}} series")
    for period, value in series.items():
        if not _is_number(value):
            raise ReferenceDataError(f"{table}.{code}.{period}: value {value!r} is not numeric")
    return dict(series)


def _check_minimum_wage(code: str, rec: Any) -> MinimumWageRecord:
    if not isinstance(rec, Mapping):
        raise ReferenceDataError(f"minimumWage.{code}: expected an object")
    monthly, annual = rec.get("monthly"), rec.get("annual")
    if _is_number(monthly) and _is_number(annual):
        if "effective" in rec:
            raise ReferenceDataError(f"minimumWage.{code}: statutory record must not carry 'effective'")
        return dict(rec)  # type: ignore[return-value]
    if monthly is None and annual is None:
        if not isinstance(rec.get("note"), str) or not _is_number(rec.get("effective")):
            raise ReferenceDataError(
                f"minimumWage.{code}: record without statutory minimum needs 'note' and 'effective'"
            )
        return dict(rec)  # type: ignore[return-value]
    raise ReferenceDataError(f"minimumWage.{code}: monthly/annual must both be numbers or both null")


def _check_tax(code: str, rec: Any) -> TaxBracketRecord:
    if not isinstance(rec, Mapping):
        raise ReferenceDataError(f"taxBrackets.{code}: expected an object")
    if not (_is_number(rec.get("min")) and _is_number(rec.get("max"))) or rec["min"] > rec["max"]:
        raise ReferenceDataError(f"taxBrackets.{code}: invalid min/max")
    if rec.get("type") not in ("Progressive", "Flat"):
        raise ReferenceDataError(f"taxBrackets.{code}: unknown type {rec.get('type')!r}")
    if not isinstance(rec.get("brackets"), int) or rec["brackets"] < 1:
        raise ReferenceDataError(f"taxBrackets.{code}: brackets must be a positive integer")
    return dict(rec)  # type: ignore[return-value]


def _check_override(code: str, rec: Any) -> OverrideRecord:
    if not isinstance(rec, Mapping):
        raise ReferenceDataError(f"overrides.{code}: expected an object")
    for key in ("avgSalary", "medSalary"):
        if not _is_number(rec.get(key)):
            raise ReferenceDataError(f"overrides.{code}.{key}: not numeric")
    for key in ("source", "period", "lastUpdated"):
        if not isinstance(rec.get(key), str) or not rec[key]:
            raise ReferenceDataError(f"overrides.{code}.{key}: missing")
    return dict(rec)  # type: ignore[return-value]


def _check_non_oecd(code: str, rec: Any) -> NonOecdSalaryRecord:
    if not isinstance(rec, Mapping) or not _is_number(rec.get("avgSalary")) or not rec.get("year"):
        raise ReferenceDataError(f"nonOecdSalaries.{code}: needs numeric 'avgSalary' and 'year'")
    return {"avgSalary": rec["avgSalary"], "year": str(rec["year"])}


def parse_reference_tables(doc: Any, median_ratio: Optional[float] = None) -> ReferenceTables:
    """Validate a reference document. Raises ReferenceDataError on any gap."""
    if not isinstance(doc, Mapping):
        raise ReferenceDataError("reference document must be a JSON object")

    ratio = median_ratio if median_ratio is not None else doc.get("medianToMeanRatio")
    if not _is_number(ratio) or not 0 < ratio <= 1:
        raise ReferenceDataError(f"medianToMeanRatio must be in (0, 1], got {ratio!r}")

    fallback_doc = doc.get("fallback")
    if not isinstance(fallback_doc, Mapping):
        raise ReferenceDataError("fallback: missing")
    fallback: Dict[str, MetricDataset] = {}
    for metric in FALLBACK_METRICS:
        rows = _check_countries(f"fallback.{metric}", fallback_doc.get(metric), complete=True)
        fallback[metric] = {c: _check_series(f"fallback.{metric}", c, rows[c]) for c in EU_COUNTRY_CODES}

    minimum_wage = _check_countries("minimumWage", doc.get("minimumWage"), complete=True)
    tax = _check_countries("taxBrackets", doc.get("taxBrackets"), complete=True)
    overrides = _check_countries("overrides", doc.get("overrides") or {}, complete=False)
    non_oecd = _check_countries("nonOecdSalaries", doc.get("nonOecdSalaries") or {}, complete=False)

    sources = doc.get("sources") or {}
    if not isinstance(sources, Mapping):
        raise ReferenceDataError("sources: expected an object")

    return ReferenceTables(
        version=str(doc.get("version") or "unversioned"),
        median_ratio=float(ratio),
        sources={str(k): str(v) for k, v in sources.items()},
        overrides={c: _check_override(c, r) for c, r in overrides.items()},
        non_oecd_salaries={c: _check_non_oecd(c, r) for c, r in non_oecd.items()},
        fallback=fallback,
        minimum_wage={c: _check_minimum_wage(c, minimum_wage[c]) for c in EU_COUNTRY_CODES},
        tax_brackets={c: _check_tax(c, tax[c]) for c in EU_COUNTRY_CODES},
    )


def read_reference_tables(path: Path, median_ratio: Optional[float] = None) -> ReferenceTables:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            doc = json.load(fh)
    except (OSError, json.JSONDecodeError) as e:
        raise ReferenceDataError(f"cannot read reference tables at {path}: {e}") from e
    return parse_reference_tables(doc, median_ratio=median_ratio)


@lru_cache(maxsize=1)
def load_reference_tables() -> ReferenceTables:
    """Process-wide tables, read once from the configured path."""
    settings = get_settings()
    return read_reference_tables(settings.reference_path, median_ratio=settings.median_ratio)
