"""Fund resource definitions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from mcp.server.fastmcp import FastMCP

from ledger_server.runtime.response import success_response

if TYPE_CHECKING:
    from ledger_server.tools.registry import ToolServices

KPI_URI = "fund://kpi"
PERFORMANCE_URI = "fund://performance"


def register_fund_resources(mcp: FastMCP, services: "ToolServices") -> None:
    @mcp.resource(
        KPI_URI,
        name="fund-kpi",
        title="Fund KPI Snapshot",
        description="Total AUM, latest returns, price freshness and peak ratio computed from the ledger.",
        mime_type="application/json",
    )
    def kpi_resource() -> str:
        result = services.fund.get_kpi_snapshot()
        if result.data is None:
            message = result.error.message if result.error else "KPI snapshot unavailable."
            raise ValueError(message)
        return success_response(result)

    @mcp.resource(
        PERFORMANCE_URI,
        name="fund-performance",
        title="Fund Monthly Performance",
        description="Monthly performance series in percent, future months excluded, ledger order preserved.",
        mime_type="application/json",
    )
    def performance_resource() -> str:
        result = services.fund.get_performance_series()
        if result.data is None:
            message = result.error.message if result.error else "Performance series unavailable."
            raise ValueError(message)
        return success_response(result)
