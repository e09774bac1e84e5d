"""Series-level analytics over the aggregated performance records."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

import pandas as pd

from ledger_server.ledger.models import PerformanceRow
from ledger_server.performance.aggregator import parse_month_label
from ledger_server.performance.models import YearToDate

FRAME_COLUMNS = [
    "month",
    "ending_aum",
    "fund_mom",
    "fund_cumulative",
    "benchmark_mom",
    "benchmark_cumulative",
    "benchmark2_mom",
    "benchmark2_cumulative",
]


def series_frame(series: list[PerformanceRow]) -> pd.DataFrame:
    if not series:
        return pd.DataFrame(columns=FRAME_COLUMNS + ["year", "month_number"])
    frame = pd.DataFrame([asdict(row) for row in series])[FRAME_COLUMNS]
    periods = [parse_month_label(label) or (0, 0) for label in frame["month"]]
    frame["year"] = [year for year, _ in periods]
    frame["month_number"] = [month for _, month in periods]
    return frame


def year_to_date(series: list[PerformanceRow], year: int) -> YearToDate:
    """Cumulative return gained since the January row of ``year`` (zeros when absent)."""
    frame = series_frame(series)
    january = frame[(frame["year"] == year) & (frame["month_number"] == 1)]
    if frame.empty or january.empty:
        return YearToDate(year=year, fund=0.0, benchmark=0.0, benchmark2=0.0)
    start = january.iloc[0]
    latest = frame.iloc[-1]
    return YearToDate(
        year=year,
        fund=float(latest["fund_cumulative"] - start["fund_cumulative"]),
        benchmark=float(latest["benchmark_cumulative"] - start["benchmark_cumulative"]),
        benchmark2=float(latest["benchmark2_cumulative"] - start["benchmark2_cumulative"]),
    )


def best_and_worst_month(series: list[PerformanceRow]) -> dict[str, Any]:
    frame = series_frame(series)
    if frame.empty:
        return {"best": None, "worst": None}
    best = frame.loc[frame["fund_mom"].idxmax()]
    worst = frame.loc[frame["fund_mom"].idxmin()]
    return {
        "best": {"month": str(best["month"]), "fund_mom": float(best["fund_mom"])},
        "worst": {"month": str(worst["month"]), "fund_mom": float(worst["fund_mom"])},
    }


def max_drawdown(series: list[PerformanceRow]) -> float:
    """Largest peak-to-trough fall of ending AUM, as a negative percentage."""
    frame = series_frame(series)
    if frame.empty:
        return 0.0
    aum = frame["ending_aum"].astype(float)
    running_peak = aum.cummax()
    valid = running_peak > 0
    if not valid.any():
        return 0.0
    drawdowns = (aum[valid] / running_peak[valid] - 1.0) * 100.0
    return float(drawdowns.min())


def summarize(series: list[PerformanceRow], year: int) -> dict[str, Any]:
    ytd = year_to_date(series, year)
    extremes = best_and_worst_month(series)
    return {
        "months": len(series),
        "year_to_date": asdict(ytd),
        "best_month": extremes["best"],
        "worst_month": extremes["worst"],
        "max_drawdown_percent": round(max_drawdown(series), 4),
    }
