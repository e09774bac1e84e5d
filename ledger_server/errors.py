"""Run-level error types for the sync engine."""

from __future__ import annotations


class FeedError(Exception):
    """The price feed could not be used for this run; no quote is trustworthy."""

    def __init__(self, message: str, provider: str | None = None) -> None:
        self.message = message
        self.provider = provider
        super().__init__(message)


class RateLimited(FeedError):
    pass


class FeedUnavailable(FeedError):
    pass


class LedgerStoreError(Exception):
    def __init__(self, message: str, status: int | None = None) -> None:
        self.message = message
        self.status = status
        super().__init__(message)


class LedgerWriteError(LedgerStoreError):
    pass
