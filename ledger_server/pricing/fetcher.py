"""One batched price-feed call per sync run, mapped back onto asset rows."""

from __future__ import annotations

import logging
import time
from typing import Iterable, Protocol

from ledger_server.errors import FeedError, FeedUnavailable, RateLimited
from ledger_server.ledger.models import AssetRow
from ledger_server.pricing.models import FetchOutcome, PriceSyncStatus, RowResult
from ledger_server.providers.http import ProviderError
from ledger_server.providers.models import PriceQuote

LOGGER = logging.getLogger(__name__)
RATE_LIMIT_PATTERNS = (
    "rate limit",
    "too many requests",
    "limit exceeded",
)


class PriceFeed(Protocol):
    def get_prices(self, ids: Iterable[str]) -> dict[str, PriceQuote]: ...


def is_rate_limited(error: ProviderError) -> bool:
    if error.code == "RATE_LIMIT" or error.status == 429:
        return True
    message = (error.message or "").lower()
    return any(pattern in message for pattern in RATE_LIMIT_PATTERNS)


def classify_provider_error(error: ProviderError) -> FeedError:
    if is_rate_limited(error):
        return RateLimited(f"Price feed rate limited: {error.message}", provider=error.provider)
    return FeedUnavailable(f"Price feed unavailable ({error.code}): {error.message}", provider=error.provider)


def unique_ids(rows: Iterable[AssetRow]) -> list[str]:
    return sorted({row.external_id for row in rows if row.external_id})


class PriceFetcher:
    def __init__(self, feed: PriceFeed) -> None:
        self._feed = feed

    def fetch_prices(self, eligible: list[AssetRow]) -> FetchOutcome:
        ids = unique_ids(eligible)
        if not ids:
            return FetchOutcome()
        started = time.perf_counter()
        try:
            quotes = self._feed.get_prices(ids)
        except FeedError as error:
            outcome = FetchOutcome(error=error, requested_ids=ids)
        except ProviderError as error:
            outcome = FetchOutcome(error=classify_provider_error(error), requested_ids=ids)
        except Exception as error:
            LOGGER.exception("price feed unexpected failure: ids=%s", len(ids))
            outcome = FetchOutcome(error=FeedUnavailable(f"Price feed failed: {error}"), requested_ids=ids)
        else:
            outcome = FetchOutcome(quotes=dict(quotes or {}), requested_ids=ids)

        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        if outcome.error is not None:
            LOGGER.warning(
                "price feed call failed: ids=%s error=%s kind=%s latency_ms=%s",
                len(ids),
                outcome.error.message,
                type(outcome.error).__name__,
                elapsed_ms,
            )
        else:
            LOGGER.info(
                "price feed call complete: ids=%s quotes=%s latency_ms=%s",
                len(ids),
                len(outcome.quotes),
                elapsed_ms,
            )
        return outcome


def resolve(eligible: list[AssetRow], outcome: FetchOutcome) -> list[RowResult]:
    """Give every eligible row a status from the shared fetch outcome."""
    results: list[RowResult] = []
    for row in eligible:
        if outcome.error is not None:
            results.append(RowResult(row=row, status=PriceSyncStatus.FEED_ERROR, reason=outcome.error.message))
            continue
        quote = outcome.quotes.get(row.external_id or "")
        if quote is None:
            results.append(
                RowResult(
                    row=row,
                    status=PriceSyncStatus.FEED_ERROR,
                    reason=f"no price returned for id {row.external_id}",
                )
            )
            continue
        results.append(RowResult(row=row, status=PriceSyncStatus.SUCCESS, quote=quote))
    return results
