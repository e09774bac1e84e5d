from datetime import datetime, timezone

from ledger_server.cache.ttl_cache import TTLCache
from ledger_server.errors import LedgerStoreError
from ledger_server.ledger.store import InMemoryLedgerStore
from ledger_server.services.base import LedgerLayout, ServiceContext
from ledger_server.services.fund_service import FundService

NOW = datetime(2024, 3, 15, tzinfo=timezone.utc)


def _perf_row(month, aum, mom, cum) -> list:
    return ["", month, "", "", "", "", aum, mom, cum]


class CountingStore(InMemoryLedgerStore):
    def __init__(self, sheets) -> None:
        super().__init__(sheets)
        self.reads = 0

    def read_range(self, range_ref):
        self.reads += 1
        return super().read_range(range_ref)


class BrokenStore(InMemoryLedgerStore):
    def read_range(self, range_ref):
        raise LedgerStoreError("Ledger read failed: Provider request failed with status 403.", status=403)


def _sheets() -> dict:
    return {
        "Portfolio Overview": [
            ["Name", "Symbol"],
            ["Bitcoin", "BTC", "", "", "", "", 2, 50000, "", "2024-03-10T08:00:00Z", "bitcoin", 1.2],
            ["Ether", "ETH", "", "", "", "", 10, 3000, "", "03/12/2024, 09:15:00", "ethereum", -0.4],
        ],
        "MoM performance": [
            ["", "Month"],
            _perf_row("Jan-2024", 120000, 0.02, 0.10),
            _perf_row("Feb-2024", 125000, 0.0523, 0.1575),
            _perf_row("Dec-2025", 999999, 0.5, 0.5),
        ],
    }


def _service(store) -> FundService:
    return FundService(ServiceContext(store=store, feed=None, cache=TTLCache(), clock=lambda: NOW))


def test_kpi_snapshot_from_ledger() -> None:
    result = _service(InMemoryLedgerStore(_sheets())).get_kpi_snapshot()
    assert result.error is None
    snapshot = result.data
    assert snapshot.total_aum == 130000.0
    assert round(snapshot.monthly_return, 6) == 5.23
    assert round(snapshot.cumulative_return, 6) == 15.75
    assert snapshot.last_updated == "2024-03-12T09:15:00Z"
    assert snapshot.peak_aum == 125000.0
    assert snapshot.peak_ratio == 100
    assert snapshot.latest_month == "Feb-2024"


def test_performance_series_is_cached_until_invalidated() -> None:
    store = CountingStore(_sheets())
    service = _service(store)

    first = service.get_performance_series()
    second = service.get_performance_series()
    assert [row.month for row in first.data] == ["Jan-2024", "Feb-2024"]
    assert second is first
    assert store.reads == 1

    service.ctx.invalidate(["performance"])
    service.get_performance_series()
    assert store.reads == 2


def test_portfolio_rows_carry_ledger_row_numbers() -> None:
    result = _service(InMemoryLedgerStore(_sheets())).get_portfolio()
    assert [(row.symbol, row.row_index) for row in result.data] == [("BTC", 2), ("ETH", 3)]


def test_read_failure_returns_error_envelope_and_is_not_cached() -> None:
    service = _service(BrokenStore(_sheets()))
    result = service.get_kpi_snapshot()
    assert result.data is None
    assert result.error.code == "LEDGER_ERROR"
    assert "403" in result.error.message
    assert service.ctx.cache.get("kpi:snapshot") is None


def test_performance_summary_defaults_to_clock_year() -> None:
    result = _service(InMemoryLedgerStore(_sheets())).get_performance_summary()
    summary = result.data
    assert summary["months"] == 2
    assert summary["year_to_date"]["year"] == 2024
    assert round(summary["year_to_date"]["fund"], 6) == 5.75
    assert summary["best_month"]["month"] == "Feb-2024"


def test_kpi_without_price_timestamps_reports_request_time_each_call() -> None:
    sheets = _sheets()
    for row in sheets["Portfolio Overview"][1:]:
        row[9] = ""
    store = CountingStore(sheets)
    moments = [NOW, datetime(2024, 3, 15, 0, 0, 30, tzinfo=timezone.utc)]
    service = FundService(ServiceContext(store=store, feed=None, cache=TTLCache(), clock=lambda: moments[0]))

    first = service.get_kpi_snapshot()
    moments.pop(0)
    second = service.get_kpi_snapshot()

    assert first.data.last_updated == "2024-03-15T00:00:00Z"
    assert second.data.last_updated == "2024-03-15T00:00:30Z"
    assert second.warning is not None
    assert service.ctx.cache.get("kpi:snapshot") is None


def test_kpi_with_price_timestamps_is_cached() -> None:
    store = CountingStore(_sheets())
    service = _service(store)
    first = service.get_kpi_snapshot()
    assert first.warning is None
    assert service.get_kpi_snapshot() is first
    assert store.reads == 2


def test_portfolio_without_performance_range_has_flat_kpis() -> None:
    sheets = {"Personal portfolio": _sheets()["Portfolio Overview"]}
    layout = LedgerLayout(
        name="personal",
        portfolio_sheet="Personal portfolio",
        portfolio_range="'Personal portfolio'!A2:M",
        performance_range=None,
    )
    ctx = ServiceContext(store=InMemoryLedgerStore(sheets), feed=None, cache=TTLCache(), layout=layout, clock=lambda: NOW)
    result = FundService(ctx).get_kpi_snapshot()

    assert result.data.total_aum == 130000.0
    assert result.data.asset_count == 2
    assert result.data.peak_ratio == 0
    assert result.data.latest_month is None
    assert FundService(ctx).get_performance_series().data == []
