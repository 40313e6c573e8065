"""
labor_radar/services/source_matrix.py

Declarative source matrix for the EU labor dashboard.

This module does not call any APIs. It describes, for each upstream adapter,
which dataset to query, which filter dimensions pin it down to a single
measure, and which dashboard metric it feeds.

The providers build their requests from these specs; the reconciler turns
every spec feeding a metric into a live tier, ordered by `rank` and labelled
with `label` in salarySource.
"""

from __future__ import annotations

from typing import Dict, List, Optional, TypedDict


class AdapterSpec(TypedDict, total=False):
    """One upstream dataset, pinned to a single measure by its filters."""

    key: str                 # adapter key, also the dataQuality flag name
    dataset: str             # Eurostat dataset code or OECD dataflow id
    filters: Dict[str, str]  # dimension filters (Eurostat query params)
    key_template: Optional[str]  # OECD SDMX key, "{areas}" replaced by joined codes
    since: Optional[str]     # first period requested
    metric: str              # dashboard metric fed by this source
    rank: int                # higher wins among live sources of one metric
    label: str               # human source name
    optional: bool           # only queried when SES alternates are enabled


# -----------------------------------------------------------------------------
# Adapter Matrix
# -----------------------------------------------------------------------------

SOURCE_MATRIX: Dict[str, AdapterSpec] = {

    # OECD average annual wages, EUR, current prices.
    # Only 22 EU members report to OECD; the rest come from nonOecdSalaries.
    "oecdData": {
        "key": "oecdData",
        "dataset": "OECD.ELS.SAE,DSD_EARNINGS@AV_AN_WAGE,1.0",
        "filters": {},
        "key_template": "{areas}..EUR..",
        "since": "2020",
        "metric": "avgSalary",
        "rank": 2,
        "label": "OECD",
        "optional": False,
    },

    # Eurostat monthly unemployment rate, SA, 15-74, both sexes, % of labour force
    "unemploymentData": {
        "key": "unemploymentData",
        "dataset": "une_rt_m",
        "filters": {"s_adj": "SA", "age": "Y15-74", "sex": "T", "unit": "PC_ACT"},
        "key_template": None,
        "since": "2020-01",
        "metric": "unemployment",
        "rank": 1,
        "label": "Eurostat",
        "optional": False,
    },

    # Eurostat annual employment, 15-64, thousands of persons
    "employmentData": {
        "key": "employmentData",
        "dataset": "lfsi_emp_a",
        "filters": {"indic_em": "EMP_LFS", "sex": "T", "age": "Y15-64", "unit": "THS_PER"},
        "key_template": None,
        "since": "2020",
        "metric": "employment",
        "rank": 1,
        "label": "Eurostat",
        "optional": False,
    },

    # Eurostat Structure of Earnings Survey, mean annual earnings (EUR).
    # Four-yearly survey; ranks below OECD wages.
    "meanEarningsData": {
        "key": "meanEarningsData",
        "dataset": "earn_ses_pub2s",
        "filters": {"indic_se": "MEAN_E_EUR", "nace_r2": "B-S_X_O", "worktime": "TOTAL"},
        "key_template": None,
        "since": None,
        "metric": "avgSalary",
        "rank": 1,
        "label": "Eurostat SES",
        "optional": True,
    },

    # Eurostat Structure of Earnings Survey, median annual earnings (EUR).
    # Replaces the derived median where present.
    "medianEarningsData": {
        "key": "medianEarningsData",
        "dataset": "earn_ses_pub2s",
        "filters": {"indic_se": "MED_E_EUR", "nace_r2": "B-S_X_O", "worktime": "TOTAL"},
        "key_template": None,
        "since": None,
        "metric": "medSalary",
        "rank": 1,
        "label": "Eurostat SES",
        "optional": True,
    },
}


def active_adapters(use_ses_earnings: bool) -> List[AdapterSpec]:
    """Adapters queried per request, in matrix order."""
    return [spec for spec in SOURCE_MATRIX.values() if use_ses_earnings or not spec.get("optional")]


def adapters_for_metric(metric: str) -> List[AdapterSpec]:
    """Specs feeding `metric`, lowest rank first."""
    specs = [spec for spec in SOURCE_MATRIX.values() if spec.get("metric") == metric]
    return sorted(specs, key=lambda spec: spec.get("rank", 0))
