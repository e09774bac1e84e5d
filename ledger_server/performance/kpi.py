"""Fund-level KPI snapshot from current assets and the performance series."""

from __future__ import annotations

import logging
from datetime import datetime

from ledger_server.ledger.models import AssetRow, PerformanceRow
from ledger_server.ledger.timestamps import format_timestamp, parse_timestamp
from ledger_server.performance.models import KpiSnapshot

LOGGER = logging.getLogger(__name__)


def total_aum(assets: list[AssetRow]) -> float:
    return sum(asset.current_value for asset in assets)


def latest_timestamp(assets: list[AssetRow]) -> datetime | None:
    latest: datetime | None = None
    unparsable = 0
    for asset in assets:
        if not asset.last_price_update:
            continue
        parsed = parse_timestamp(asset.last_price_update)
        if parsed is None:
            unparsable += 1
            continue
        if latest is None or parsed > latest:
            latest = parsed
    if unparsable:
        LOGGER.debug("freshness timestamps skipped: unparsable=%s", unparsable)
    return latest


def peak_value(series: list[PerformanceRow]) -> float:
    if not series:
        return 0.0
    return max(row.ending_aum or 0.0 for row in series)


def peak_ratio(current_value: float, peak: float) -> tuple[int, float]:
    """Current value as a whole percent of the peak (capped at 100) and the distance to it."""
    if peak == 0:
        return 0, 0.0
    ratio = min(current_value / peak * 100.0, 100.0)
    return int(round(ratio)), max(0.0, peak - current_value)


def compute_snapshot(assets: list[AssetRow], series: list[PerformanceRow], now: datetime) -> KpiSnapshot:
    aum = total_aum(assets)
    latest = series[-1] if series else None
    freshest = latest_timestamp(assets) or now
    peak = peak_value(series)
    ratio, distance = peak_ratio(aum, peak)
    return KpiSnapshot(
        total_aum=aum,
        cumulative_return=latest.fund_cumulative if latest else 0.0,
        monthly_return=latest.fund_mom if latest else 0.0,
        last_updated=format_timestamp(freshest),
        asset_count=len(assets),
        peak_aum=peak,
        peak_ratio=ratio,
        distance_to_peak=distance,
        latest_month=latest.month if latest else None,
    )
