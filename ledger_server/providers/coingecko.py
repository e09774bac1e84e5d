"""CoinGecko simple-price adapter with normalized outputs."""

from __future__ import annotations

import math
from typing import Iterable

from ledger_server.providers.http import ProviderError, fetch_json
from ledger_server.providers.models import PriceQuote

COINGECKO_BASE_URL = "https://api.coingecko.com/api/v3"
COINGECKO_PRO_BASE_URL = "https://pro-api.coingecko.com/api/v3"
VS_CURRENCY = "usd"
USER_AGENT = "fund-ledger-sync/1.0"


def _to_float(value: object) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _embedded_error(data: object) -> ProviderError | None:
    if not isinstance(data, dict):
        return None
    status = data.get("status")
    if isinstance(status, dict) and status.get("error_code") is not None:
        code = status.get("error_code")
        message = str(status.get("error_message") or f"CoinGecko error code {code}.")
        if code == 429 or "rate limit" in message.lower():
            return ProviderError("coingecko", "RATE_LIMIT", message, 429)
        if code in {401, 403, 10002, 10005}:
            return ProviderError("coingecko", "AUTH", message)
        return ProviderError("coingecko", "UPSTREAM", message)
    error = data.get("error")
    if isinstance(error, str) and error:
        if "rate limit" in error.lower():
            return ProviderError("coingecko", "RATE_LIMIT", error, 429)
        return ProviderError("coingecko", "UPSTREAM", error)
    return None


class CoinGeckoClient:
    def __init__(self, api_key: str | None = None, timeout_seconds: float = 10.0, pro: bool = False) -> None:
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self.pro = pro

    @property
    def base_url(self) -> str:
        return COINGECKO_PRO_BASE_URL if self.pro else COINGECKO_BASE_URL

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
        if self.api_key:
            header = "x-cg-pro-api-key" if self.pro else "x-cg-demo-api-key"
            headers[header] = self.api_key
        return headers

    def get_prices(self, ids: Iterable[str]) -> dict[str, PriceQuote]:
        """Fetch USD price and 24h change for every id in a single request."""
        unique = sorted({item for item in ids if item})
        if not unique:
            return {}
        data = fetch_json(
            f"{self.base_url}/simple/price",
            provider="coingecko",
            timeout_seconds=self.timeout_seconds,
            headers=self._headers(),
            params={
                "ids": ",".join(unique),
                "vs_currencies": VS_CURRENCY,
                "include_24hr_change": "true",
                "include_last_updated_at": "true",
            },
        )
        error = _embedded_error(data)
        if error is not None:
            raise error
        if not isinstance(data, dict):
            raise ProviderError("coingecko", "BAD_RESPONSE", "CoinGecko returned an unexpected payload.")

        quotes: dict[str, PriceQuote] = {}
        for external_id in unique:
            item = data.get(external_id)
            if not isinstance(item, dict):
                continue
            price = _to_float(item.get(VS_CURRENCY))
            if price is None:
                continue
            updated_at = _to_float(item.get("last_updated_at"))
            quotes[external_id] = PriceQuote(
                external_id=external_id,
                price=price,
                change_24h=_to_float(item.get(f"{VS_CURRENCY}_24h_change")),
                last_updated_at=int(updated_at) if updated_at is not None else None,
            )
        return quotes
