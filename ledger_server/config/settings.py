"""Environment-driven settings."""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    """Runtime settings for local/stdio and HTTP-hosted modes."""

    app_name: str = "fund-ledger-sync"
    app_version: str = "1.0.0"
    transport_mode: str = "auto"
    http_transport: str = "sse"
    host: str = "0.0.0.0"
    port: int = 8000
    mcp_path: str = "/mcp"
    health_path: str = "/health"
    cron_path: str = "/cron/refresh-prices"
    ledger_backend: str = "sheets"
    google_sheet_id: str | None = None
    google_service_account_file: str | None = None
    google_service_account_json: str | None = None
    portfolio_sheet: str = "Portfolio Overview"
    portfolio_range: str = "'Portfolio Overview'!A2:L"
    performance_range: str = "'MoM performance'!A2:Q"
    kpi_timestamp_range: str | None = None
    personal_portfolio_enabled: bool = True
    personal_portfolio_sheet: str = "Personal portfolio"
    personal_portfolio_range: str = "'Personal portfolio'!A2:M"
    personal_performance_range: str | None = None
    personal_kpi_timestamp_range: str | None = None
    coingecko_api_key: str | None = None
    coingecko_pro: bool = False
    price_feed_timeout_seconds: float = 10.0
    ledger_timeout_seconds: float = 15.0
    sync_interval_seconds: int = 300
    use_symbol_fallback: bool = False
    cache_ttl_seconds: int = 60
    log_level: str = "INFO"


def _as_int(value: str | None, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _as_float(value: str | None, default: float) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def get_settings() -> Settings:
    """Load runtime settings from environment variables."""
    load_dotenv()

    portfolio_sheet = os.getenv("PORTFOLIO_SHEET", "Portfolio Overview")
    personal_sheet = os.getenv("PERSONAL_PORTFOLIO_SHEET", "Personal portfolio")
    return Settings(
        transport_mode=os.getenv("TRANSPORT_MODE", "auto").strip().lower(),
        http_transport=os.getenv("HTTP_TRANSPORT", "sse").strip().lower(),
        host=os.getenv("HOST", "0.0.0.0"),
        port=_as_int(os.getenv("PORT"), 8000),
        mcp_path=os.getenv("MCP_PATH", "/mcp"),
        health_path=os.getenv("HEALTH_PATH", "/health"),
        cron_path=os.getenv("CRON_PATH", "/cron/refresh-prices"),
        ledger_backend=os.getenv("LEDGER_BACKEND", "sheets").strip().lower(),
        google_sheet_id=os.getenv("GOOGLE_SHEET_ID"),
        google_service_account_file=os.getenv("GOOGLE_SERVICE_ACCOUNT_FILE"),
        google_service_account_json=os.getenv("GOOGLE_SERVICE_ACCOUNT_JSON"),
        portfolio_sheet=portfolio_sheet,
        portfolio_range=os.getenv("PORTFOLIO_RANGE", f"'{portfolio_sheet}'!A2:L"),
        performance_range=os.getenv("PERFORMANCE_RANGE", "'MoM performance'!A2:Q"),
        kpi_timestamp_range=os.getenv("KPI_TIMESTAMP_RANGE") or None,
        personal_portfolio_enabled=_as_bool(os.getenv("PERSONAL_PORTFOLIO_ENABLED"), True),
        personal_portfolio_sheet=personal_sheet,
        personal_portfolio_range=os.getenv("PERSONAL_PORTFOLIO_RANGE", f"'{personal_sheet}'!A2:M"),
        personal_performance_range=os.getenv("PERSONAL_PERFORMANCE_RANGE") or None,
        personal_kpi_timestamp_range=os.getenv("PERSONAL_KPI_TIMESTAMP_RANGE") or None,
        coingecko_api_key=os.getenv("COINGECKO_API_KEY"),
        coingecko_pro=_as_bool(os.getenv("COINGECKO_PRO"), False),
        price_feed_timeout_seconds=_as_float(os.getenv("PRICE_FEED_TIMEOUT_SECONDS"), 10.0),
        ledger_timeout_seconds=_as_float(os.getenv("LEDGER_TIMEOUT_SECONDS"), 15.0),
        sync_interval_seconds=_as_int(os.getenv("SYNC_INTERVAL_SECONDS"), 300),
        use_symbol_fallback=_as_bool(os.getenv("USE_SYMBOL_FALLBACK"), False),
        cache_ttl_seconds=_as_int(os.getenv("CACHE_TTL_SECONDS"), 60),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
    )
