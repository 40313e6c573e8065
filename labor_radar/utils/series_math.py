from __future__ import annotations
import math
from typing import Dict, Mapping, Optional, Tuple


def latest(series: Optional[Mapping[str, float]]) -> Optional[Tuple[str, float]]:
    # assumes keys are "YYYY", "YYYY-Qn", "YYYY-MM" or "latest"
    if not series:
        return None
    k = max(series.keys())
    v = series.get(k)
    if v is None:
        return None
    try:
        v = float(v)
    except (TypeError, ValueError):
        return None
    return (k, v)


def sorted_series(series: Mapping[str, float]) -> Dict[str, float]:
    """Copy of a {period: value} series with periods in ascending order."""
    return {k: series[k] for k in sorted(series.keys())}


def round_half_up(v: float) -> int:
    """Whole-unit rounding with halves going up (24620.5 -> 24621)."""
    return int(math.floor(float(v) + 0.5))


def scale_series(series: Mapping[str, float], ratio: float) -> Dict[str, float]:
    """Multiply every observation by `ratio`, rounding to whole units."""
    return {k: round_half_up(float(v) * ratio) for k, v in series.items()}
