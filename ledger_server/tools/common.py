"""Shared tool-layer helpers."""

from __future__ import annotations

import logging
import time
from typing import Callable

from ledger_server.runtime.monitoring import ServerMetrics, log_tool_event
from ledger_server.runtime.response import error_response, success_response
from ledger_server.services.base import ServiceResult

LOGGER = logging.getLogger(__name__)
SLOW_TOOL_MS = 2000.0


def result_payload(result: ServiceResult, default_message: str = "No data returned.") -> str:
    if result.data is not None:
        return success_response(result)
    if result.error:
        return error_response(result.error.code, result.error.message)
    return error_response("DATA_UNAVAILABLE", default_message)


def timed_tool(tool: str, metrics: object | None, call: Callable[[], str]) -> str:
    """Run a tool body, logging one event and recording latency; never raises."""
    started = time.perf_counter()
    success = True
    try:
        return call()
    except ValueError as error:
        success = False
        return error_response("INVALID_ARGUMENT", str(error))
    except Exception:
        success = False
        LOGGER.exception("tool failed: tool=%s", tool)
        return error_response("INTERNAL", "Request failed.")
    finally:
        latency_ms = (time.perf_counter() - started) * 1000.0
        warning = "slow_response" if latency_ms > SLOW_TOOL_MS else None
        log_tool_event(tool=tool, latency_ms=latency_ms, success=success, warning=warning)
        if isinstance(metrics, ServerMetrics):
            metrics.record(latency_ms=latency_ms, success=success)
