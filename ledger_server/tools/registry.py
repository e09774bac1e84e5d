"""Service wiring and tool registration."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from typing import Iterable

from mcp.server.fastmcp import FastMCP

from ledger_server.cache.ttl_cache import TTLCache
from ledger_server.services.base import LedgerLayout, ServiceContext
from ledger_server.services.fund_service import FundService
from ledger_server.services.runtime_service import RuntimeService
from ledger_server.services.sync_service import SyncService


@dataclass
class PortfolioServices:
    sync: SyncService
    fund: FundService


@dataclass
class ToolServices:
    """Services for the primary portfolio plus any extra ledger portfolios.

    ``sync`` and ``fund`` belong to the primary portfolio; ``portfolios``
    maps every portfolio name, the primary one included, to its pair.
    """

    sync: SyncService
    fund: FundService
    runtime: RuntimeService
    metrics: object | None = None
    portfolios: dict[str, PortfolioServices] = field(default_factory=dict)

    def for_portfolio(self, name: str | None) -> PortfolioServices:
        key = (name or self.sync.portfolio).strip().lower()
        if key == self.sync.portfolio:
            return PortfolioServices(sync=self.sync, fund=self.fund)
        try:
            return self.portfolios[key]
        except KeyError:
            known = ", ".join(sorted({self.sync.portfolio, *self.portfolios}))
            raise ValueError(f"Unknown portfolio '{name}'. Use one of: {known}.") from None


def _portfolio_services(ctx: ServiceContext, use_symbol_fallback: bool, single_flight: bool) -> PortfolioServices:
    lock = threading.Lock() if single_flight else None
    return PortfolioServices(
        sync=SyncService(ctx, lock=lock, use_symbol_fallback=use_symbol_fallback),
        fund=FundService(ctx),
    )


def build_tool_services(
    ctx: ServiceContext,
    use_symbol_fallback: bool = False,
    single_flight: bool = True,
    extra_layouts: Iterable[LedgerLayout] = (),
) -> ToolServices:
    primary = _portfolio_services(ctx, use_symbol_fallback, single_flight)
    portfolios = {ctx.layout.name: primary}
    for layout in extra_layouts:
        if layout.name in portfolios:
            raise ValueError(f"Duplicate portfolio name: {layout.name}")
        # Own cache per portfolio so one ledger's sync leaves the other's views alone.
        portfolio_ctx = replace(ctx, layout=layout, cache=TTLCache(default_ttl_seconds=ctx.cache_ttl_seconds))
        portfolios[layout.name] = _portfolio_services(portfolio_ctx, use_symbol_fallback, single_flight)
    return ToolServices(
        sync=primary.sync,
        fund=primary.fund,
        runtime=RuntimeService(ctx),
        metrics=ctx.server_metrics,
        portfolios=portfolios,
    )


def register_all_tools(mcp: FastMCP, services: ToolServices) -> None:
    from ledger_server.tools.fund_tools import register_fund_tools
    from ledger_server.tools.runtime_tools import register_runtime_tools
    from ledger_server.tools.sync_tools import register_sync_tools

    register_sync_tools(mcp, services)
    register_fund_tools(mcp, services)
    register_runtime_tools(mcp, services)
