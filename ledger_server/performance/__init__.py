"""Performance aggregation and KPI domain package."""

from ledger_server.performance.aggregator import build_series, parse_month_label
from ledger_server.performance.kpi import compute_snapshot
from ledger_server.performance.models import KpiSnapshot

__all__ = ["KpiSnapshot", "build_series", "compute_snapshot", "parse_month_label"]
