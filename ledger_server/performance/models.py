"""Fund-level KPI models."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class KpiSnapshot:
    total_aum: float
    cumulative_return: float
    monthly_return: float
    last_updated: str
    asset_count: int = 0
    peak_aum: float = 0.0
    peak_ratio: int = 0
    distance_to_peak: float = 0.0
    latest_month: str | None = None


@dataclass
class YearToDate:
    year: int
    fund: float
    benchmark: float
    benchmark2: float
