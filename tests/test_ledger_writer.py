from ledger_server.errors import LedgerWriteError
from ledger_server.ledger.models import AssetRow
from ledger_server.ledger.store import InMemoryLedgerStore
from ledger_server.pricing.models import PriceSyncStatus, RowResult
from ledger_server.pricing.writer import LedgerWriter
from ledger_server.providers.models import PriceQuote

STAMP = "2024-03-05T12:00:00Z"


def _success(row_index: int, price: float, change: float | None) -> RowResult:
    row = AssetRow("BTC", 1.0, "bitcoin", 1.0, None, "", row_index)
    return RowResult(row=row, status=PriceSyncStatus.SUCCESS, quote=PriceQuote("bitcoin", price, change))


class FailingStore:
    def __init__(self) -> None:
        self.calls = 0

    def read_range(self, range_ref):
        return []

    def write_range(self, range_ref, rows):
        raise AssertionError("not used")

    def batch_write(self, writes):
        self.calls += 1
        raise LedgerWriteError("quota exceeded", status=429)


def test_build_write_set_addresses_price_timestamp_and_change_cells() -> None:
    writer = LedgerWriter(InMemoryLedgerStore(), "Portfolio Overview")
    writes = writer.build_write_set([_success(5, 45000.0, 2.5)], STAMP)
    assert [(write.range_ref, write.values) for write in writes] == [
        ("'Portfolio Overview'!H5", [[45000.0]]),
        ("'Portfolio Overview'!J5", [[STAMP]]),
        ("'Portfolio Overview'!L5", [[2.5]]),
    ]


def test_build_write_set_changes_only_and_missing_change() -> None:
    writer = LedgerWriter(InMemoryLedgerStore(), "Portfolio Overview")
    assert [write.range_ref for write in writer.build_write_set([_success(3, 1.0, None)], STAMP)] == [
        "'Portfolio Overview'!H3",
        "'Portfolio Overview'!J3",
    ]
    changes = writer.build_write_set([_success(3, 1.0, -1.25)], STAMP, include_price=False)
    assert [write.range_ref for write in changes] == ["'Portfolio Overview'!J3", "'Portfolio Overview'!L3"]


def test_commit_empty_write_set_makes_no_call() -> None:
    store = FailingStore()
    assert LedgerWriter(store, "Portfolio Overview").commit([]) is None
    assert store.calls == 0


def test_commit_returns_error_instead_of_raising() -> None:
    store = FailingStore()
    writer = LedgerWriter(store, "Portfolio Overview")
    error = writer.commit(writer.build_write_set([_success(2, 1.0, 0.5)], STAMP))
    assert isinstance(error, LedgerWriteError)
    assert error.message == "quota exceeded"
    assert store.calls == 1


def test_commit_applies_single_batch() -> None:
    store = InMemoryLedgerStore({"Portfolio Overview": [["header"], ["Bitcoin", "BTC"]]})
    writer = LedgerWriter(store, "Portfolio Overview")
    assert writer.commit(writer.build_write_set([_success(2, 45000.0, 2.5)], STAMP)) is None
    assert len(store.batches) == 1
    row = store.snapshot("Portfolio Overview")[1]
    assert row[7] == 45000.0
    assert row[9] == STAMP
    assert row[11] == 2.5
