"""Price sync tools."""

from __future__ import annotations

from typing import TYPE_CHECKING

from mcp.server.fastmcp import FastMCP

from ledger_server.runtime.response import report_response
from ledger_server.services.base import validate_symbol
from ledger_server.tools.common import timed_tool

if TYPE_CHECKING:
    from ledger_server.tools.registry import ToolServices


def register_sync_tools(mcp: FastMCP, services: ToolServices) -> None:
    @mcp.tool(description="Refresh current price, 24h change and timestamp for every priceable asset of a ledger portfolio.")
    def run_price_sync(portfolio: str = "fund") -> str:
        return timed_tool(
            "run_price_sync",
            services.metrics,
            lambda: report_response(services.for_portfolio(portfolio).sync.run_sync()),
        )

    @mcp.tool(description="Refresh the price of one ledger asset by symbol, optionally overriding its feed id.")
    def update_single_price(symbol: str, external_id: str | None = None, portfolio: str = "fund") -> str:
        def call() -> str:
            clean = validate_symbol(symbol)
            sync = services.for_portfolio(portfolio).sync
            return report_response(sync.update_single_price(clean, external_id=external_id))

        return timed_tool("update_single_price", services.metrics, call)

    @mcp.tool(description="Refresh only the 24h change and timestamp cells, leaving prices untouched.")
    def update_price_changes(portfolio: str = "fund") -> str:
        return timed_tool(
            "update_price_changes",
            services.metrics,
            lambda: report_response(services.for_portfolio(portfolio).sync.update_price_changes()),
        )
