"""Application entrypoint for the fund ledger sync MCP server."""

from __future__ import annotations

import asyncio
import logging
import os
import time

from mcp.server.fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from ledger_server.cache.ttl_cache import TTLCache
from ledger_server.config.settings import Settings, get_settings
from ledger_server.ledger.store import InMemoryLedgerStore, LedgerStore, parse_range
from ledger_server.providers.coingecko import CoinGeckoClient
from ledger_server.providers.sheets import GoogleSheetsLedgerStore
from ledger_server.resources.fund_resources import register_fund_resources
from ledger_server.runtime.monitoring import ServerMetrics
from ledger_server.runtime.response import report_payload
from ledger_server.runtime.scheduler import SyncPoller
from ledger_server.services.base import LedgerLayout, ServiceContext
from ledger_server.tools.registry import ToolServices, build_tool_services, register_all_tools

LOGGER = logging.getLogger(__name__)


def resolve_transport_mode(configured_mode: str) -> str:
    if os.getenv("RENDER") and configured_mode == "stdio":
        return "http"
    if configured_mode in {"stdio", "http"}:
        return configured_mode
    if os.getenv("RENDER") or os.getenv("PORT"):
        return "http"
    return "stdio"


def resolve_http_transport(configured_transport: str) -> str:
    if configured_transport in {"sse", "streamable"}:
        return configured_transport
    return "sse"


def build_layout(settings: Settings) -> LedgerLayout:
    return LedgerLayout(
        name="fund",
        portfolio_sheet=settings.portfolio_sheet,
        portfolio_range=settings.portfolio_range,
        performance_range=settings.performance_range,
        kpi_timestamp_range=settings.kpi_timestamp_range,
    )


def build_extra_layouts(settings: Settings) -> list[LedgerLayout]:
    if not settings.personal_portfolio_enabled:
        return []
    return [
        LedgerLayout(
            name="personal",
            portfolio_sheet=settings.personal_portfolio_sheet,
            portfolio_range=settings.personal_portfolio_range,
            performance_range=settings.personal_performance_range,
            kpi_timestamp_range=settings.personal_kpi_timestamp_range,
        )
    ]


def build_store(settings: Settings, layouts: list[LedgerLayout]) -> LedgerStore:
    if settings.ledger_backend == "memory":
        sheet_names: set[str] = set()
        for layout in layouts:
            for range_ref in (layout.portfolio_range, layout.performance_range, layout.kpi_timestamp_range):
                if range_ref:
                    sheet_names.add(parse_range(range_ref).sheet)
        LOGGER.warning("using in-memory ledger: sheets=%s", sorted(sheet_names))
        return InMemoryLedgerStore({name: [] for name in sheet_names})
    if not settings.google_sheet_id:
        raise ValueError("GOOGLE_SHEET_ID is required when LEDGER_BACKEND=sheets.")
    return GoogleSheetsLedgerStore.from_service_account(
        settings.google_sheet_id,
        service_account_file=settings.google_service_account_file,
        service_account_json=settings.google_service_account_json,
        timeout_seconds=settings.ledger_timeout_seconds,
    )


def build_services(settings: Settings, store: LedgerStore | None = None) -> ToolServices:
    layout = build_layout(settings)
    extra_layouts = build_extra_layouts(settings)
    ctx = ServiceContext(
        store=store if store is not None else build_store(settings, [layout, *extra_layouts]),
        feed=CoinGeckoClient(
            api_key=settings.coingecko_api_key,
            timeout_seconds=settings.price_feed_timeout_seconds,
            pro=settings.coingecko_pro,
        ),
        cache=TTLCache(default_ttl_seconds=settings.cache_ttl_seconds),
        layout=layout,
        cache_ttl_seconds=settings.cache_ttl_seconds,
        server_metrics=ServerMetrics(),
    )
    return build_tool_services(
        ctx,
        use_symbol_fallback=settings.use_symbol_fallback,
        extra_layouts=extra_layouts,
    )


def create_server(settings: Settings, services: ToolServices, resolved_mode: str) -> FastMCP:
    mcp = FastMCP(
        name=settings.app_name,
        host=settings.host,
        port=settings.port,
        streamable_http_path=settings.mcp_path,
    )
    register_all_tools(mcp, services)
    register_fund_resources(mcp, services)

    @mcp.custom_route(settings.health_path, methods=["GET"])
    async def health_check(_: object) -> Response:
        tools = await mcp.list_tools()
        resources = await mcp.list_resources()
        return JSONResponse(
            {
                "status": "ok",
                "service": settings.app_name,
                "version": settings.app_version,
                "mode": resolved_mode,
                "tool_count": len(tools),
                "resource_count": len(resources),
            }
        )

    @mcp.custom_route(settings.cron_path, methods=["GET", "POST"])
    async def cron_refresh_prices(request: Request) -> Response:
        try:
            portfolio = services.for_portfolio(request.query_params.get("portfolio"))
        except ValueError as error:
            return JSONResponse({"ok": False, "error": str(error)}, status_code=400)
        started = time.perf_counter()
        report = await asyncio.to_thread(portfolio.sync.run_sync)
        payload = report_payload(report)
        payload["latency_ms"] = round((time.perf_counter() - started) * 1000.0, 3)
        return JSONResponse(payload)

    return mcp


async def run() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    services = build_services(settings)
    resolved_mode = resolve_transport_mode(settings.transport_mode)
    resolved_http_transport = resolve_http_transport(settings.http_transport)
    mcp = create_server(settings, services, resolved_mode)

    if not settings.coingecko_api_key:
        LOGGER.warning("COINGECKO_API_KEY not set; using the keyless public tier")

    stop = asyncio.Event()
    poller_tasks: list[asyncio.Task[None]] = []
    if settings.sync_interval_seconds > 0:
        for portfolio in services.portfolios.values():
            poller = SyncPoller(portfolio.sync, poll_interval_seconds=settings.sync_interval_seconds)
            poller_tasks.append(asyncio.create_task(poller.run_forever(stop)))
    try:
        if resolved_mode == "stdio":
            await mcp.run_stdio_async()
        elif resolved_http_transport == "streamable":
            await mcp.run_streamable_http_async()
        else:
            await mcp.run_sse_async()
    finally:
        stop.set()
        if poller_tasks:
            await asyncio.gather(*poller_tasks)


def main() -> None:
    asyncio.run(run())


if __name__ == "__main__":
    main()
