"""Price synchronization domain package."""

from ledger_server.pricing.eligibility import select_for_pricing
from ledger_server.pricing.fetcher import PriceFetcher, resolve
from ledger_server.pricing.models import PriceSyncStatus, RowResult, SyncReport
from ledger_server.pricing.writer import LedgerWriter

__all__ = [
    "LedgerWriter",
    "PriceFetcher",
    "PriceSyncStatus",
    "RowResult",
    "SyncReport",
    "resolve",
    "select_for_pricing",
]
