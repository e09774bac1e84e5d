"""Normalized data models shared across providers and the sync engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ProviderName = Literal[
    "coingecko",
    "sheets",
]


@dataclass(frozen=True)
class PriceQuote:
    external_id: str
    price: float
    change_24h: float | None = None
    last_updated_at: int | None = None
    source: ProviderName = "coingecko"
