from ledger_server.errors import FeedUnavailable, RateLimited
from ledger_server.ledger.models import AssetRow
from ledger_server.pricing.fetcher import PriceFetcher, resolve
from ledger_server.pricing.models import PriceSyncStatus
from ledger_server.providers.http import ProviderError
from ledger_server.providers.models import PriceQuote


class RecordingFeed:
    def __init__(self, quotes=None, error: Exception | None = None) -> None:
        self.quotes = quotes or {}
        self.error = error
        self.calls: list[list[str]] = []

    def get_prices(self, ids):
        self.calls.append(list(ids))
        if self.error is not None:
            raise self.error
        return {key: value for key, value in self.quotes.items() if key in ids}


def _row(symbol: str, ext_id: str, row_index: int) -> AssetRow:
    return AssetRow(symbol, 1.0, ext_id, 1.0, None, "", row_index)


def test_fetch_prices_dedupes_ids_into_one_call() -> None:
    feed = RecordingFeed({"bitcoin": PriceQuote("bitcoin", 45000.0), "ethereum": PriceQuote("ethereum", 3000.0)})
    rows = [_row("BTC", "bitcoin", 2), _row("WBTC", "bitcoin", 3), _row("ETH", "ethereum", 4)]
    outcome = PriceFetcher(feed).fetch_prices(rows)

    assert feed.calls == [["bitcoin", "ethereum"]]
    assert outcome.error is None
    assert set(outcome.quotes) == {"bitcoin", "ethereum"}


def test_fetch_prices_skips_feed_when_nothing_eligible() -> None:
    feed = RecordingFeed()
    outcome = PriceFetcher(feed).fetch_prices([])
    assert feed.calls == []
    assert outcome.quotes == {}
    assert outcome.error is None


def test_rate_limit_marks_every_row_feed_error() -> None:
    feed = RecordingFeed(error=ProviderError("coingecko", "RATE_LIMIT", "Provider rate limit exceeded (HTTP 429).", 429))
    rows = [_row("BTC", "bitcoin", 2), _row("ETH", "ethereum", 3)]
    outcome = PriceFetcher(feed).fetch_prices(rows)
    results = resolve(rows, outcome)

    assert isinstance(outcome.error, RateLimited)
    assert [result.status for result in results] == [PriceSyncStatus.FEED_ERROR] * 2
    assert all("rate limit" in (result.reason or "").lower() for result in results)


def test_network_failure_is_feed_unavailable() -> None:
    feed = RecordingFeed(error=ProviderError("coingecko", "NETWORK", "Provider request timed out after 10.0s."))
    outcome = PriceFetcher(feed).fetch_prices([_row("BTC", "bitcoin", 2)])
    assert isinstance(outcome.error, FeedUnavailable)
    assert not isinstance(outcome.error, RateLimited)


def test_unexpected_exception_is_contained() -> None:
    feed = RecordingFeed(error=RuntimeError("boom"))
    outcome = PriceFetcher(feed).fetch_prices([_row("BTC", "bitcoin", 2)])
    assert isinstance(outcome.error, FeedUnavailable)
    assert "boom" in outcome.error.message


def test_missing_id_fails_only_that_row() -> None:
    feed = RecordingFeed({"bitcoin": PriceQuote("bitcoin", 45000.0, 2.5)})
    rows = [_row("BTC", "bitcoin", 2), _row("ABC", "abc-coin", 3)]
    results = resolve(rows, PriceFetcher(feed).fetch_prices(rows))

    assert results[0].status is PriceSyncStatus.SUCCESS
    assert results[0].quote.price == 45000.0
    assert results[1].status is PriceSyncStatus.FEED_ERROR
    assert results[1].reason == "no price returned for id abc-coin"
