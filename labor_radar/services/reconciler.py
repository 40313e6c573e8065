# labor_radar/services/reconciler.py
from __future__ import annotations

"""
Reconciliation of live adapter results with the curated reference tables.

Precedence per metric, highest first:
    override  (national statistics, Baltic countries)
    live      (OECD / Eurostat adapter returned data for the country)
    fallback  (static constants, including the non-OECD salary table)
Median salary adds a lowest `derived` tier: avgSalary x medianToMeanRatio.

Precedence is applied by merge_tiers, low to high. A tier that covers a country
replaces that country's whole series, so the winning tier is unambiguous.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, NamedTuple, Sequence

from labor_radar.config import ReferenceTables
from labor_radar.models import MetricDataset, ProvenanceTag, SourceResult, TimeSeries
from labor_radar.services.source_matrix import adapters_for_metric
from labor_radar.utils.country_codes import EU_COUNTRY_CODES, is_eu_code
from labor_radar.utils.series_math import scale_series, sorted_series

STATIC_SOURCE = "Static estimate"


class Tier(NamedTuple):
    tag: ProvenanceTag
    source: str               # human label, ends up in salarySource
    data: Mapping[str, TimeSeries]


@dataclass
class MergedMetric:
    data: MetricDataset = field(default_factory=dict)
    provenance: Dict[str, ProvenanceTag] = field(default_factory=dict)
    origin: Dict[str, str] = field(default_factory=dict)


@dataclass
class Reconciled:
    datasets: Dict[str, MetricDataset]
    provenance: Dict[str, Dict[str, ProvenanceTag]]
    salary_source: Dict[str, str]


def merge_tiers(tiers: Sequence[Tier]) -> MergedMetric:
    """
    Merge (tag, source, partial dataset) tiers ordered lowest priority first.
    Unknown countries and empty series are ignored. Output is keyed in EU order
    with periods sorted ascending.
    """
    winners: Dict[str, Tier] = {}
    for tier in tiers:
        for code, series in (tier.data or {}).items():
            if is_eu_code(code) and series:
                winners[code] = tier

    merged = MergedMetric()
    for code in EU_COUNTRY_CODES:
        tier = winners.get(code)
        if tier is None:
            continue
        merged.data[code] = sorted_series(tier.data[code])
        merged.provenance[code] = tier.tag
        merged.origin[code] = tier.source
    return merged


def _live(results: Mapping[str, SourceResult], key: str) -> MetricDataset:
    result = results.get(key)
    return result.data if result is not None and result.is_live else {}


def _live_tiers(results: Mapping[str, SourceResult], metric: str) -> List[Tier]:
    return [Tier("live", spec["label"], _live(results, spec["key"])) for spec in adapters_for_metric(metric)]


def _override_series(tables: ReferenceTables, field_name: str) -> MetricDataset:
    return {code: {rec["period"]: rec[field_name]} for code, rec in tables.overrides.items()}


def _non_oecd_series(tables: ReferenceTables) -> MetricDataset:
    return {code: {rec["year"]: rec["avgSalary"]} for code, rec in tables.non_oecd_salaries.items()}


def derive_median(avg_salary: Mapping[str, TimeSeries], ratio: float) -> MetricDataset:
    """Approximate medians: every average observation x ratio, rounded."""
    return {code: scale_series(series, ratio) for code, series in avg_salary.items()}


def reconcile(results: Mapping[str, SourceResult], tables: ReferenceTables) -> Reconciled:
    """
    results: adapter key -> SourceResult (missing keys count as no data).
    Live tiers come from the source matrix, one per adapter feeding the metric.
    """

    unemployment = merge_tiers([
        Tier("fallback", STATIC_SOURCE, tables.fallback["unemployment"]),
        *_live_tiers(results, "unemployment"),
    ])
    employment = merge_tiers([
        Tier("fallback", STATIC_SOURCE, tables.fallback["employment"]),
        *_live_tiers(results, "employment"),
    ])
    # Non-OECD members never appear in OECD data; their single-year constant
    # sits above the generic fallback and below every live source.
    avg_salary = merge_tiers([
        Tier("fallback", STATIC_SOURCE, tables.fallback["avgSalary"]),
        Tier("fallback", STATIC_SOURCE, _non_oecd_series(tables)),
        *_live_tiers(results, "avgSalary"),
        Tier("override", "override", _override_series(tables, "avgSalary")),
    ])
    med_salary = merge_tiers([
        Tier("derived", "derived", derive_median(avg_salary.data, tables.median_ratio)),
        *_live_tiers(results, "medSalary"),
        Tier("override", "override", _override_series(tables, "medSalary")),
    ])

    salary_source: Dict[str, str] = {}
    for code, origin in avg_salary.origin.items():
        if avg_salary.provenance[code] == "override":
            salary_source[code] = tables.overrides[code]["source"]
        else:
            salary_source[code] = origin

    return Reconciled(
        datasets={
            "unemployment": unemployment.data,
            "employment": employment.data,
            "avgSalary": avg_salary.data,
            "medSalary": med_salary.data,
        },
        provenance={
            "unemployment": unemployment.provenance,
            "employment": employment.provenance,
            "avgSalary": avg_salary.provenance,
            "medSalary": med_salary.provenance,
        },
        salary_source=salary_source,
    )
