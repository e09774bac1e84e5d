"""Price sync orchestration: read, filter, fetch, write, invalidate, report."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import replace
from typing import Callable

from ledger_server.errors import LedgerStoreError
from ledger_server.ledger.models import AssetRow
from ledger_server.ledger.rows import parse_asset_rows
from ledger_server.ledger.store import CellWrite, parse_range
from ledger_server.ledger.timestamps import format_timestamp
from ledger_server.pricing.eligibility import apply_symbol_fallback, classify, select_for_pricing
from ledger_server.pricing.fetcher import PriceFetcher, resolve
from ledger_server.pricing.models import PriceSyncStatus, RowResult, SyncMode, SyncReport, build_report
from ledger_server.pricing.writer import LedgerWriter
from ledger_server.runtime.monitoring import ServerMetrics, log_sync_event
from ledger_server.services.base import DEPENDENT_VIEW_TAGS, ServiceContext

LOGGER = logging.getLogger(__name__)
SYNC_IN_PROGRESS = "sync already in progress"


class LedgerReadFailed(Exception):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class SyncService:
    """Runs price syncs against the injected ledger and feed.

    Every public method returns a ``SyncReport``; no fault escapes as an
    exception. When ``lock`` is given, overlapping runs are refused instead of
    queued.
    """

    def __init__(
        self,
        ctx: ServiceContext,
        lock: threading.Lock | None = None,
        use_symbol_fallback: bool = False,
    ) -> None:
        self.ctx = ctx
        self._lock = lock
        self.use_symbol_fallback = use_symbol_fallback
        self.fetcher = PriceFetcher(ctx.feed)
        self.writer = LedgerWriter(ctx.store, ctx.layout.portfolio_sheet, ctx.layout.asset_columns)

    def run_sync(self) -> SyncReport:
        return self._guarded("all", lambda: self._sync_all(include_price=True, mode="all"))

    def update_price_changes(self) -> SyncReport:
        """Refresh only the 24h change and timestamp cells; prices stay untouched."""
        return self._guarded("changes", lambda: self._sync_all(include_price=False, mode="changes"))

    def update_single_price(self, symbol: str, external_id: str | None = None) -> SyncReport:
        return self._guarded("single", lambda: self._sync_single(symbol, external_id))

    def _guarded(self, mode: SyncMode, body: Callable[[], SyncReport]) -> SyncReport:
        started = time.perf_counter()
        if self._lock is not None and not self._lock.acquire(blocking=False):
            LOGGER.warning("sync refused: portfolio=%s mode=%s reason=%s", self.portfolio, mode, SYNC_IN_PROGRESS)
            report = SyncReport(feed_level_error=SYNC_IN_PROGRESS, timestamp=self._now(), mode=mode)
            self._record(report, started)
            return report
        try:
            report = body()
        except Exception as error:
            LOGGER.exception("sync failed: portfolio=%s mode=%s", self.portfolio, mode)
            report = SyncReport(feed_level_error=f"sync failed: {error}", timestamp=self._now(), mode=mode)
        finally:
            if self._lock is not None:
                self._lock.release()
        self._record(report, started)
        return report

    @property
    def portfolio(self) -> str:
        return self.ctx.layout.name

    def _now(self) -> str:
        return format_timestamp(self.ctx.clock())

    def _load_assets(self) -> list[AssetRow]:
        layout = self.ctx.layout
        try:
            raw = self.ctx.store.read_range(layout.portfolio_range)
            first_row = parse_range(layout.portfolio_range).start_row
        except LedgerStoreError as error:
            raise LedgerReadFailed(f"ledger read failed: {error.message}") from error
        except ValueError as error:
            raise LedgerReadFailed(f"ledger read failed: {error}") from error
        except Exception as error:
            LOGGER.exception("ledger read unexpected failure: range=%s", layout.portfolio_range)
            raise LedgerReadFailed(f"ledger read failed: {error}") from error
        assets = parse_asset_rows(raw, layout.asset_columns, first_row_index=first_row)
        if self.use_symbol_fallback:
            assets = apply_symbol_fallback(assets)
        return assets

    def _sync_all(self, include_price: bool, mode: SyncMode) -> SyncReport:
        timestamp = self._now()
        try:
            assets = self._load_assets()
        except LedgerReadFailed as error:
            LOGGER.warning("sync aborted: portfolio=%s mode=%s error=%s", self.portfolio, mode, error.message)
            return build_report([], timestamp, mode=mode, feed_level_error=error.message)
        eligible, skipped = select_for_pricing(assets)
        return self._price_and_commit(eligible, skipped, timestamp, mode, include_price)

    def _sync_single(self, symbol: str, external_id: str | None) -> SyncReport:
        timestamp = self._now()
        wanted = (symbol or "").strip().upper()
        try:
            assets = self._load_assets()
        except LedgerReadFailed as error:
            LOGGER.warning("sync aborted: portfolio=%s mode=single error=%s", self.portfolio, error.message)
            return build_report([], timestamp, mode="single", feed_level_error=error.message)
        row = next((asset for asset in assets if asset.symbol == wanted), None)
        if row is None:
            return build_report([], timestamp, mode="single", feed_level_error=f"asset {wanted} not found in ledger")
        if external_id:
            row = replace(row, external_id=external_id.strip())
        skip = classify(row)
        if skip is not None:
            return build_report([skip], timestamp, mode="single")
        return self._price_and_commit([row], [], timestamp, "single", include_price=True)

    def _price_and_commit(
        self,
        eligible: list[AssetRow],
        skipped: list[RowResult],
        timestamp: str,
        mode: SyncMode,
        include_price: bool,
    ) -> SyncReport:
        outcome = self.fetcher.fetch_prices(eligible)
        priced = resolve(eligible, outcome)
        feed_level_error = outcome.error.message if outcome.error is not None else None
        successes = [result for result in priced if result.status is PriceSyncStatus.SUCCESS]

        write_set = self.writer.build_write_set(successes, timestamp, include_price=include_price)
        if write_set and self.ctx.layout.kpi_timestamp_range:
            write_set.append(CellWrite(self.ctx.layout.kpi_timestamp_range, [[timestamp]]))
        write_error = self.writer.commit(write_set)

        if write_error is not None:
            for result in successes:
                result.reason = f"not committed: {write_error.message}"
        else:
            for result in successes:
                result.committed = True
            if feed_level_error is None:
                self.ctx.invalidate(DEPENDENT_VIEW_TAGS)

        return build_report(
            skipped + priced,
            timestamp,
            mode=mode,
            feed_level_error=feed_level_error,
            write_error=write_error.message if write_error is not None else None,
            feed_ids=outcome.requested_ids,
        )

    def _record(self, report: SyncReport, started: float) -> None:
        report.portfolio = self.portfolio
        latency_ms = (time.perf_counter() - started) * 1000.0
        log_sync_event(report, latency_ms)
        metrics = self.ctx.server_metrics
        if isinstance(metrics, ServerMetrics):
            metrics.record_sync(report, latency_ms)
