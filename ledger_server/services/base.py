"""Shared service orchestration helpers."""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Generic, Iterable, TypeVar

from ledger_server.cache.ttl_cache import TTLCache
from ledger_server.errors import FeedError, LedgerStoreError
from ledger_server.ledger.rows import AssetColumns, PerformanceColumns
from ledger_server.ledger.store import LedgerStore
from ledger_server.ledger.timestamps import utc_now
from ledger_server.pricing.fetcher import PriceFeed
from ledger_server.providers.http import ProviderError

T = TypeVar("T")
LOGGER = logging.getLogger(__name__)

SYMBOL_PATTERN = re.compile(r"^[A-Z0-9._-]+$")
# Views that depend on ledger prices; a committed sync invalidates all of them.
DEPENDENT_VIEW_TAGS = ("portfolio", "kpi", "performance")


@dataclass
class ErrorEnvelope:
    code: str
    message: str
    retriable: bool = True
    provider: str | None = None


@dataclass
class ServiceResult(Generic[T]):
    data: T | None
    source: str | None = None
    warning: str | None = None
    error: ErrorEnvelope | None = None
    fetched_at: float | None = None


@dataclass(frozen=True)
class LedgerLayout:
    name: str = "fund"
    portfolio_sheet: str = "Portfolio Overview"
    portfolio_range: str = "'Portfolio Overview'!A2:L"
    performance_range: str | None = "'MoM performance'!A2:Q"
    kpi_timestamp_range: str | None = None
    asset_columns: AssetColumns = field(default_factory=AssetColumns)
    performance_columns: PerformanceColumns = field(default_factory=PerformanceColumns)


@dataclass
class ServiceContext:
    store: LedgerStore
    feed: PriceFeed
    cache: TTLCache
    layout: LedgerLayout = field(default_factory=LedgerLayout)
    clock: Callable[[], datetime] = utc_now
    cache_ttl_seconds: int = 60
    invalidator: Callable[[list[str]], object] | None = None
    server_metrics: object | None = None

    def invalidate(self, tags: Iterable[str]) -> None:
        """Fire-and-forget view invalidation; failures are logged, never raised."""
        tag_list = list(tags)
        target = self.invalidator or self.cache.invalidate
        try:
            target(tag_list)
        except Exception:
            LOGGER.exception("cache invalidation failed: tags=%s", tag_list)


def envelope_from_error(error: Exception) -> ErrorEnvelope:
    if isinstance(error, ProviderError):
        retriable = error.code in {"RATE_LIMIT", "NETWORK", "UPSTREAM", "BAD_RESPONSE"}
        return ErrorEnvelope(code=error.code, message=error.message, retriable=retriable, provider=error.provider)
    if isinstance(error, FeedError):
        return ErrorEnvelope(code="FEED_ERROR", message=error.message, retriable=True, provider=error.provider)
    if isinstance(error, LedgerStoreError):
        return ErrorEnvelope(code="LEDGER_ERROR", message=error.message, retriable=True, provider="sheets")
    return ErrorEnvelope(code="INTERNAL", message=str(error) or type(error).__name__, retriable=False)


def run_with_cache(
    ctx: ServiceContext,
    cache_key: str,
    call: Callable[[], T],
    ttl_seconds: int | None = None,
    tags: Iterable[str] = (),
    cache_if: Callable[[T], bool] | None = None,
) -> T:
    cached = ctx.cache.get(cache_key)
    if cached is not None:
        return cached  # type: ignore[return-value]
    value = call()
    if isinstance(value, ServiceResult):
        if value.error is not None:
            return value  # type: ignore[return-value]
        value.fetched_at = value.fetched_at or time.time()
    if cache_if is not None and not cache_if(value):
        return value
    ctx.cache.set(cache_key, value, ttl_seconds=ttl_seconds or ctx.cache_ttl_seconds, tags=tags)
    return value


def validate_symbol(symbol: str) -> str:
    clean = (symbol or "").strip().upper()
    if not clean or len(clean) > 20 or not SYMBOL_PATTERN.match(clean):
        raise ValueError("Symbol must be 1-20 chars: A-Z, 0-9, dot, hyphen, underscore.")
    return clean
