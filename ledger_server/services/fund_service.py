"""Read-path fund views: portfolio rows, performance series and KPI snapshot."""

from __future__ import annotations

import logging
import time

from ledger_server.errors import LedgerStoreError
from ledger_server.ledger.models import AssetRow, PerformanceRow
from ledger_server.ledger.rows import parse_asset_rows, parse_performance_rows
from ledger_server.ledger.store import parse_range
from ledger_server.performance.aggregator import build_series
from ledger_server.performance.analytics import summarize
from ledger_server.performance.kpi import compute_snapshot, latest_timestamp
from ledger_server.performance.models import KpiSnapshot
from ledger_server.services.base import ServiceContext, ServiceResult, envelope_from_error, run_with_cache

LOGGER = logging.getLogger(__name__)
LEDGER_SOURCE = "ledger"
FRESHNESS_FALLBACK_WARNING = "No parseable price timestamps; last_updated is the request time."


class FundService:
    def __init__(self, ctx: ServiceContext) -> None:
        self.ctx = ctx

    def _read_assets(self) -> list[AssetRow]:
        layout = self.ctx.layout
        raw = self.ctx.store.read_range(layout.portfolio_range)
        return parse_asset_rows(raw, layout.asset_columns, first_row_index=parse_range(layout.portfolio_range).start_row)

    def _read_series(self) -> list[PerformanceRow]:
        layout = self.ctx.layout
        if not layout.performance_range:
            return []
        raw = self.ctx.store.read_range(layout.performance_range)
        records = parse_performance_rows(
            raw,
            layout.performance_columns,
            first_row_index=parse_range(layout.performance_range).start_row,
        )
        return build_series(records, self.ctx.clock())

    def _failed(self, view: str, error: Exception) -> ServiceResult:
        if isinstance(error, LedgerStoreError):
            LOGGER.warning("ledger view failed: view=%s error=%s", view, error.message)
        else:
            LOGGER.exception("ledger view failed: view=%s", view)
        return ServiceResult(data=None, error=envelope_from_error(error))

    def get_portfolio(self) -> ServiceResult[list[AssetRow]]:
        def call() -> ServiceResult[list[AssetRow]]:
            try:
                assets = self._read_assets()
            except Exception as error:
                return self._failed("portfolio", error)
            return ServiceResult(data=assets, source=LEDGER_SOURCE, fetched_at=time.time())

        return run_with_cache(self.ctx, "portfolio:assets", call, tags=("portfolio",))

    def get_performance_series(self) -> ServiceResult[list[PerformanceRow]]:
        def call() -> ServiceResult[list[PerformanceRow]]:
            try:
                series = self._read_series()
            except Exception as error:
                return self._failed("performance", error)
            return ServiceResult(data=series, source=LEDGER_SOURCE, fetched_at=time.time())

        return run_with_cache(self.ctx, "performance:series", call, tags=("performance",))

    def get_kpi_snapshot(self) -> ServiceResult[KpiSnapshot]:
        """KPI snapshot, cached until a committed sync invalidates it.

        A snapshot whose freshness fell back to the request time is returned
        with a warning and never cached, so each call reports its own time.
        """

        def call() -> ServiceResult[KpiSnapshot]:
            try:
                assets = self._read_assets()
                series = self._read_series()
            except Exception as error:
                return self._failed("kpi", error)
            snapshot = compute_snapshot(assets, series, self.ctx.clock())
            warning = FRESHNESS_FALLBACK_WARNING if latest_timestamp(assets) is None else None
            return ServiceResult(data=snapshot, source=LEDGER_SOURCE, warning=warning, fetched_at=time.time())

        return run_with_cache(
            self.ctx,
            "kpi:snapshot",
            call,
            tags=("kpi", "portfolio", "performance"),
            cache_if=lambda result: result.warning is None,
        )

    def get_performance_summary(self, year: int | None = None) -> ServiceResult[dict]:
        series_result = self.get_performance_series()
        if series_result.error is not None or series_result.data is None:
            return ServiceResult(data=None, error=series_result.error)
        target_year = year or self.ctx.clock().year
        return ServiceResult(
            data=summarize(series_result.data, target_year),
            source=LEDGER_SOURCE,
            fetched_at=series_result.fetched_at,
        )
