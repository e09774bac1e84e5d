"""Typed ledger row models."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ParsedNumber:
    value: float
    was_defaulted: bool = False


@dataclass
class AssetRow:
    symbol: str
    quantity: float
    external_id: str | None
    current_price: float
    price_change_24h: float | None
    last_price_update: str
    row_index: int
    name: str = ""

    @property
    def current_value(self) -> float:
        return self.quantity * self.current_price


@dataclass
class PerformanceRow:
    month: str
    ending_aum: float = 0.0
    fund_mom: float = 0.0
    fund_cumulative: float = 0.0
    benchmark_mom: float = 0.0
    benchmark_cumulative: float = 0.0
    benchmark2_mom: float = 0.0
    benchmark2_cumulative: float = 0.0
    row_index: int | None = None


RETURN_FIELDS = (
    "fund_mom",
    "fund_cumulative",
    "benchmark_mom",
    "benchmark_cumulative",
    "benchmark2_mom",
    "benchmark2_cumulative",
)
