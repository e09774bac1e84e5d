"""Typed sync-run models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from ledger_server.errors import FeedError
from ledger_server.ledger.models import AssetRow
from ledger_server.providers.models import PriceQuote

SyncMode = Literal["all", "single", "changes"]


class PriceSyncStatus(str, Enum):
    SUCCESS = "success"
    NO_QUANTITY = "no_quantity"
    NO_EXTERNAL_ID = "no_external_id"
    INVALID_EXTERNAL_ID = "invalid_external_id"
    FEED_ERROR = "feed_error"


@dataclass
class RowResult:
    row: AssetRow
    status: PriceSyncStatus
    reason: str | None = None
    quote: PriceQuote | None = None
    committed: bool = False


@dataclass
class FetchOutcome:
    quotes: dict[str, PriceQuote] = field(default_factory=dict)
    error: FeedError | None = None
    requested_ids: list[str] = field(default_factory=list)


@dataclass
class RowStatusDetail:
    symbol: str
    row_index: int
    status: str
    reason: str | None = None
    external_id: str | None = None
    price: float | None = None
    change_24h: float | None = None


@dataclass
class SyncReport:
    total_assets: int = 0
    updated: int = 0
    no_quantity: int = 0
    no_external_id: int = 0
    invalid_external_id: int = 0
    feed_errors: int = 0
    feed_level_error: str | None = None
    write_error: str | None = None
    timestamp: str = ""
    mode: SyncMode = "all"
    portfolio: str = "fund"
    feed_ids: list[str] = field(default_factory=list)
    rows: list[RowStatusDetail] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.feed_level_error is None and self.write_error is None


def build_report(
    results: list[RowResult],
    timestamp: str,
    mode: SyncMode = "all",
    feed_level_error: str | None = None,
    write_error: str | None = None,
    feed_ids: list[str] | None = None,
) -> SyncReport:
    counts = {status: 0 for status in PriceSyncStatus}
    details: list[RowStatusDetail] = []
    updated = 0
    for result in results:
        counts[result.status] += 1
        if result.status is PriceSyncStatus.SUCCESS and result.committed:
            updated += 1
        details.append(
            RowStatusDetail(
                symbol=result.row.symbol,
                row_index=result.row.row_index,
                status=result.status.value,
                reason=result.reason,
                external_id=result.row.external_id,
                price=result.quote.price if result.quote else None,
                change_24h=result.quote.change_24h if result.quote else None,
            )
        )
    details.sort(key=lambda item: item.row_index)
    return SyncReport(
        total_assets=len(results),
        updated=updated,
        no_quantity=counts[PriceSyncStatus.NO_QUANTITY],
        no_external_id=counts[PriceSyncStatus.NO_EXTERNAL_ID],
        invalid_external_id=counts[PriceSyncStatus.INVALID_EXTERNAL_ID],
        feed_errors=counts[PriceSyncStatus.FEED_ERROR],
        feed_level_error=feed_level_error,
        write_error=write_error,
        timestamp=timestamp,
        mode=mode,
        feed_ids=list(feed_ids or []),
        rows=details,
    )
