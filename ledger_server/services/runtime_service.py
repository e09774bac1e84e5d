"""Runtime health service."""

from __future__ import annotations

from ledger_server.runtime.monitoring import HealthSnapshot, ServerMetrics
from ledger_server.services.base import ServiceContext


class RuntimeService:
    def __init__(self, ctx: ServiceContext) -> None:
        self.ctx = ctx

    def get_server_health(self) -> HealthSnapshot:
        metrics = self.ctx.server_metrics
        if not isinstance(metrics, ServerMetrics):
            return HealthSnapshot(
                uptime_seconds=0.0,
                total_requests=0,
                error_rate=0.0,
                avg_latency_ms=0.0,
                sync_runs=0,
                last_sync=None,
            )
        return metrics.snapshot()
