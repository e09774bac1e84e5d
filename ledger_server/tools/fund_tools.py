"""Read-only fund view tools."""

from __future__ import annotations

from typing import TYPE_CHECKING

from mcp.server.fastmcp import FastMCP

from ledger_server.tools.common import result_payload, timed_tool

if TYPE_CHECKING:
    from ledger_server.tools.registry import ToolServices


def register_fund_tools(mcp: FastMCP, services: ToolServices) -> None:
    @mcp.tool(description="Get portfolio KPIs: total AUM, latest cumulative and monthly return, freshness, peak ratio.")
    def get_kpi_snapshot(portfolio: str = "fund") -> str:
        return timed_tool(
            "get_kpi_snapshot",
            services.metrics,
            lambda: result_payload(services.for_portfolio(portfolio).fund.get_kpi_snapshot()),
        )

    @mcp.tool(description="Get the monthly performance series (percent returns), future months excluded.")
    def get_performance_series(portfolio: str = "fund") -> str:
        return timed_tool(
            "get_performance_series",
            services.metrics,
            lambda: result_payload(services.for_portfolio(portfolio).fund.get_performance_series()),
        )

    @mcp.tool(description="Get year-to-date, best/worst month and drawdown statistics for a portfolio.")
    def get_performance_summary(year: int | None = None, portfolio: str = "fund") -> str:
        def call() -> str:
            if year is not None and not 1900 <= year <= 9999:
                raise ValueError("year must be between 1900 and 9999.")
            return result_payload(services.for_portfolio(portfolio).fund.get_performance_summary(year))

        return timed_tool("get_performance_summary", services.metrics, call)

    @mcp.tool(description="Get parsed asset rows of a ledger portfolio.")
    def get_portfolio_assets(portfolio: str = "fund") -> str:
        return timed_tool(
            "get_portfolio_assets",
            services.metrics,
            lambda: result_payload(services.for_portfolio(portfolio).fund.get_portfolio()),
        )
