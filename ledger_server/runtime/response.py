"""Response shaping helpers for MCP tools."""

from __future__ import annotations

import json
import time
from dataclasses import asdict, is_dataclass
from enum import Enum
from typing import Any

from ledger_server.services.base import ServiceResult

DISCLAIMER = "Ledger figures are operational data, not investment advice."


def _convert_data(data: Any) -> Any:
    if is_dataclass(data) and not isinstance(data, type):
        return _convert_data(asdict(data))
    if isinstance(data, Enum):
        return data.value
    if isinstance(data, list):
        return [_convert_data(item) for item in data]
    if isinstance(data, dict):
        return {key: _convert_data(value) for key, value in data.items()}
    return data


def _freshness(fetched_at: float | None) -> dict[str, Any]:
    ts = fetched_at or time.time()
    age_seconds = max(0.0, time.time() - ts)
    return {"timestamp": int(ts), "age_seconds": round(age_seconds, 3)}


def success_response(result: ServiceResult[Any]) -> str:
    payload: dict[str, Any] = {
        "data": _convert_data(result.data),
        "data_freshness": _freshness(result.fetched_at),
        "disclaimer": DISCLAIMER,
    }
    if result.source:
        payload["source"] = result.source
    if result.warning:
        payload["warning"] = result.warning
    return json.dumps(payload, ensure_ascii=True)


def report_payload(report: Any) -> dict[str, Any]:
    payload = _convert_data(report)
    payload["ok"] = bool(getattr(report, "ok", True))
    return payload


def report_response(report: Any) -> str:
    return json.dumps(report_payload(report), ensure_ascii=True)


def error_response(code: str, message: str) -> str:
    return json.dumps(
        {
            "error": True,
            "code": code,
            "message": message,
            "timestamp": int(time.time()),
        },
        ensure_ascii=True,
    )
