"""Decides which asset rows qualify for a price refresh."""

from __future__ import annotations

import logging
from dataclasses import replace

from ledger_server.ledger.models import AssetRow
from ledger_server.pricing.models import PriceSyncStatus, RowResult

LOGGER = logging.getLogger(__name__)

# Well-known feed ids for rows whose id cell was never filled in.
SYMBOL_TO_FEED_ID: dict[str, str] = {
    "AURA": "aura-network",
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "SOL": "solana",
    "JITOSOL": "jito-staked-sol",
    "JUP": "jupiter-exchange-solana",
    "USDC": "usd-coin",
    "USDT": "tether",
    "BNB": "binancecoin",
    "ADA": "cardano",
    "DOT": "polkadot",
    "MATIC": "matic-network",
    "AVAX": "avalanche-2",
    "LINK": "chainlink",
    "UNI": "uniswap",
    "ATOM": "cosmos",
    "NEAR": "near",
    "AAVE": "aave",
    "LDO": "lido-dao",
    "DAI": "dai",
}


def is_valid_external_id(value: str | None) -> bool:
    if not value or not isinstance(value, str):
        return False
    if len(value) < 2:
        return False
    return not any(char.isspace() for char in value)


def apply_symbol_fallback(rows: list[AssetRow], mapping: dict[str, str] | None = None) -> list[AssetRow]:
    """Fill missing external ids from the symbol map; rows with an id are untouched."""
    lookup = SYMBOL_TO_FEED_ID if mapping is None else mapping
    out: list[AssetRow] = []
    for row in rows:
        fallback = lookup.get(row.symbol)
        if not row.external_id and fallback:
            LOGGER.debug("external id filled from symbol map: symbol=%s id=%s", row.symbol, fallback)
            out.append(replace(row, external_id=fallback))
        else:
            out.append(row)
    return out


def classify(row: AssetRow) -> RowResult | None:
    """Return the skip result for an ineligible row, or ``None`` when it qualifies."""
    if not row.symbol or row.quantity <= 0:
        return RowResult(
            row=row,
            status=PriceSyncStatus.NO_QUANTITY,
            reason=f"No quantity ({row.quantity:g}) or missing symbol ({row.symbol or 'UNKNOWN'})",
        )
    if not row.external_id:
        return RowResult(row=row, status=PriceSyncStatus.NO_EXTERNAL_ID, reason="No external id provided")
    if not is_valid_external_id(row.external_id):
        return RowResult(
            row=row,
            status=PriceSyncStatus.INVALID_EXTERNAL_ID,
            reason=f'Invalid external id format: "{row.external_id}"',
        )
    return None


def select_for_pricing(rows: list[AssetRow]) -> tuple[list[AssetRow], list[RowResult]]:
    eligible: list[AssetRow] = []
    skipped: list[RowResult] = []
    for row in rows:
        result = classify(row)
        if result is None:
            eligible.append(row)
        else:
            skipped.append(result)
    LOGGER.debug("eligibility: eligible=%s skipped=%s", len(eligible), len(skipped))
    return eligible, skipped
