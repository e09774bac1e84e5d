"""Freshness timestamp parsing for human-edited ledger cells.

Cells arrive in three shapes: ISO-like strings written by the sync job
(``2024-03-05T12:00:00Z``), slash dates typed or written by older jobs
(``03/05/2024, 12:00:00``), and spreadsheet serial numbers (days since
1899-12-30). Each parser returns ``None`` when it does not recognise the
value; :func:`parse_timestamp` tries them in order and never raises.
"""

from __future__ import annotations

import math
import re
from datetime import datetime, timedelta, timezone
from typing import Callable

SERIAL_EPOCH = datetime(1899, 12, 30, tzinfo=timezone.utc)
# 1900-01-01 .. 9999-12-31
SERIAL_MIN = 1.0
SERIAL_MAX = 2958465.0
SLASH_FORMATS = (
    "%m/%d/%Y, %H:%M:%S",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y, %H:%M",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d",
)
NUMERIC_PATTERN = re.compile(r"^-?\d+(\.\d+)?$")


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_iso(value: object) -> datetime | None:
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text or not text[:4].isdigit() or "-" not in text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return _utc(datetime.fromisoformat(text))
    except ValueError:
        return None


def parse_slash_date(value: object) -> datetime | None:
    if not isinstance(value, str) or "/" not in value:
        return None
    text = " ".join(value.strip().split())
    for fmt in SLASH_FORMATS:
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    return None


def parse_serial_date(value: object) -> datetime | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        text = value.strip()
        if not NUMERIC_PATTERN.match(text):
            return None
        value = float(text)
    if not isinstance(value, (int, float)):
        return None
    serial = float(value)
    if not math.isfinite(serial) or serial < SERIAL_MIN or serial > SERIAL_MAX:
        return None
    return SERIAL_EPOCH + timedelta(days=serial)


TIMESTAMP_PARSERS: tuple[Callable[[object], datetime | None], ...] = (
    parse_iso,
    parse_slash_date,
    parse_serial_date,
)


def parse_timestamp(value: object) -> datetime | None:
    if value is None or value == "":
        return None
    for parser in TIMESTAMP_PARSERS:
        parsed = parser(value)
        if parsed is not None:
            return parsed
    return None


def format_timestamp(value: datetime) -> str:
    """ISO-8601 UTC with a trailing Z, second precision."""
    return _utc(value).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
