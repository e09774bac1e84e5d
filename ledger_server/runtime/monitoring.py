"""Structured sync logging and health metrics aggregation."""

from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from ledger_server.pricing.models import SyncReport

LOGGER = logging.getLogger(__name__)


@dataclass
class HealthSnapshot:
    uptime_seconds: float
    total_requests: int
    error_rate: float
    avg_latency_ms: float
    sync_runs: int
    last_sync: dict[str, Any] | None


class ServerMetrics:
    def __init__(self, started_at: float | None = None) -> None:
        self.started_at = started_at or time.time()
        self._lock = threading.Lock()
        self.total_requests = 0
        self.error_requests = 0
        self.total_latency_ms = 0.0
        self.sync_runs = 0
        self.last_sync: dict[str, Any] | None = None

    def record(self, latency_ms: float, success: bool) -> None:
        with self._lock:
            self.total_requests += 1
            if not success:
                self.error_requests += 1
            self.total_latency_ms += max(0.0, latency_ms)

    def record_sync(self, report: "SyncReport", latency_ms: float) -> None:
        with self._lock:
            self.sync_runs += 1
            self.last_sync = {
                "portfolio": report.portfolio,
                "mode": report.mode,
                "timestamp": report.timestamp,
                "updated": report.updated,
                "feed_errors": report.feed_errors,
                "feed_level_error": report.feed_level_error,
                "write_error": report.write_error,
                "latency_ms": round(latency_ms, 3),
            }

    def snapshot(self) -> HealthSnapshot:
        with self._lock:
            requests = self.total_requests
            avg_latency = (self.total_latency_ms / requests) if requests else 0.0
            error_rate = (self.error_requests / requests) if requests else 0.0
            last_sync = dict(self.last_sync) if self.last_sync else None
            sync_runs = self.sync_runs
        return HealthSnapshot(
            uptime_seconds=max(0.0, time.time() - self.started_at),
            total_requests=requests,
            error_rate=error_rate,
            avg_latency_ms=avg_latency,
            sync_runs=sync_runs,
            last_sync=last_sync,
        )


def log_sync_event(report: "SyncReport", latency_ms: float) -> None:
    payload: dict[str, Any] = {
        "event": "price_sync",
        "portfolio": report.portfolio,
        "mode": report.mode,
        "total_assets": report.total_assets,
        "updated": report.updated,
        "no_quantity": report.no_quantity,
        "no_external_id": report.no_external_id,
        "invalid_external_id": report.invalid_external_id,
        "feed_errors": report.feed_errors,
        "feed_ids": len(report.feed_ids),
        "latency_ms": round(latency_ms, 3),
        "timestamp": report.timestamp,
    }
    if report.feed_level_error:
        payload["feed_level_error"] = report.feed_level_error
    if report.write_error:
        payload["write_error"] = report.write_error
    level = logging.INFO if report.ok else logging.WARNING
    LOGGER.log(level, json.dumps(payload, ensure_ascii=True))


def log_tool_event(tool: str, latency_ms: float, success: bool, warning: str | None = None) -> None:
    payload: dict[str, Any] = {
        "event": "tool_call",
        "tool": tool,
        "latency_ms": round(latency_ms, 3),
        "success": success,
        "timestamp": int(time.time()),
    }
    if warning:
        payload["warning"] = warning
    LOGGER.info(json.dumps(payload, ensure_ascii=True))
