# labor_radar/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Literal, Optional, TypedDict

# period label -> observation, e.g. {"2024-Q3": 23280}
TimeSeries = Dict[str, float]
# country code -> TimeSeries
MetricDataset = Dict[str, TimeSeries]

ProvenanceTag = Literal["live", "fallback", "override", "derived"]
QualityFlag = Literal["live", "fallback"]

SERIES_METRICS = ("unemployment", "employment", "avgSalary", "medSalary")


class FetchStatus(str, Enum):
    OK = "ok"
    EMPTY = "empty"
    MALFORMED = "malformed"
    FAILED = "failed"


@dataclass(frozen=True)
class SourceResult:
    """Outcome of one adapter call. Only OK with data counts as live."""

    source: str
    status: FetchStatus
    data: MetricDataset = field(default_factory=dict)
    reason: Optional[str] = None

    @property
    def is_live(self) -> bool:
        return self.status is FetchStatus.OK and bool(self.data)

    @property
    def quality(self) -> QualityFlag:
        return "live" if self.is_live else "fallback"

    @classmethod
    def ok(cls, source: str, data: MetricDataset) -> "SourceResult":
        if not data:
            return cls(source, FetchStatus.EMPTY, {}, "no observations")
        return cls(source, FetchStatus.OK, data)

    @classmethod
    def failed(cls, source: str, reason: str) -> "SourceResult":
        return cls(source, FetchStatus.FAILED, {}, reason)

    @classmethod
    def malformed(cls, source: str, reason: str) -> "SourceResult":
        return cls(source, FetchStatus.MALFORMED, {}, reason)


@dataclass(frozen=True)
class DecodeResult:
    data: MetricDataset
    problem: Optional[str] = None
    skipped: int = 0


class MinimumWageRecord(TypedDict, total=False):
    monthly: Optional[float]
    annual: Optional[float]
    note: str
    effective: float


class OverrideRecord(TypedDict):
    avgSalary: float
    medSalary: float
    source: str
    period: str
    lastUpdated: str


class NonOecdSalaryRecord(TypedDict):
    avgSalary: float
    year: str


class TaxBracketRecord(TypedDict, total=False):
    min: float
    max: float
    type: Literal["Progressive", "Flat"]
    brackets: int
    note: str
