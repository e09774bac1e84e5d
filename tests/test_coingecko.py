import pytest

import ledger_server.providers.coingecko as coingecko
from ledger_server.providers.coingecko import CoinGeckoClient
from ledger_server.providers.http import ProviderError


def _capture(monkeypatch, payload):
    calls: list[dict] = []

    def fake_fetch_json(url, provider, timeout_seconds=15.0, headers=None, params=None, **_):
        calls.append({"url": url, "provider": provider, "headers": headers, "params": params, "timeout": timeout_seconds})
        return payload

    monkeypatch.setattr(coingecko, "fetch_json", fake_fetch_json)
    return calls


def test_get_prices_single_batched_request(monkeypatch) -> None:
    calls = _capture(
        monkeypatch,
        {
            "bitcoin": {"usd": 45000, "usd_24h_change": 2.5, "last_updated_at": 1709640000},
            "ethereum": {"usd": "3000.5"},
        },
    )
    quotes = CoinGeckoClient(api_key="demo-key", timeout_seconds=7.0).get_prices(["ethereum", "bitcoin", "bitcoin"])

    assert len(calls) == 1
    call = calls[0]
    assert call["url"] == "https://api.coingecko.com/api/v3/simple/price"
    assert call["params"]["ids"] == "bitcoin,ethereum"
    assert call["params"]["vs_currencies"] == "usd"
    assert call["params"]["include_24hr_change"] == "true"
    assert call["headers"]["x-cg-demo-api-key"] == "demo-key"
    assert call["timeout"] == 7.0
    assert quotes["bitcoin"].price == 45000.0
    assert quotes["bitcoin"].change_24h == 2.5
    assert quotes["bitcoin"].last_updated_at == 1709640000
    assert quotes["ethereum"].price == 3000.5
    assert quotes["ethereum"].change_24h is None


def test_pro_key_uses_pro_host(monkeypatch) -> None:
    calls = _capture(monkeypatch, {})
    CoinGeckoClient(api_key="pro-key", pro=True).get_prices(["bitcoin"])
    assert calls[0]["url"].startswith("https://pro-api.coingecko.com/")
    assert calls[0]["headers"]["x-cg-pro-api-key"] == "pro-key"


def test_missing_or_unpriced_ids_are_omitted(monkeypatch) -> None:
    _capture(monkeypatch, {"bitcoin": {"usd": None}, "other": {"usd": 1}})
    assert CoinGeckoClient().get_prices(["bitcoin", "ghost"]) == {}


def test_empty_ids_make_no_request(monkeypatch) -> None:
    calls = _capture(monkeypatch, {})
    assert CoinGeckoClient().get_prices([]) == {}
    assert calls == []


def test_embedded_rate_limit_body_raises(monkeypatch) -> None:
    _capture(monkeypatch, {"status": {"error_code": 429, "error_message": "You've exceeded the Rate Limit."}})
    with pytest.raises(ProviderError) as info:
        CoinGeckoClient().get_prices(["bitcoin"])
    assert info.value.code == "RATE_LIMIT"
    assert info.value.status == 429


def test_embedded_error_string_raises_upstream(monkeypatch) -> None:
    _capture(monkeypatch, {"error": "coin not supported"})
    with pytest.raises(ProviderError) as info:
        CoinGeckoClient().get_prices(["bitcoin"])
    assert info.value.code == "UPSTREAM"


def test_non_dict_payload_is_bad_response(monkeypatch) -> None:
    _capture(monkeypatch, ["unexpected"])
    with pytest.raises(ProviderError) as info:
        CoinGeckoClient().get_prices(["bitcoin"])
    assert info.value.code == "BAD_RESPONSE"
