"""Historical ledger rows to an ordered monthly performance series."""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from datetime import datetime

from ledger_server.ledger.models import RETURN_FIELDS, PerformanceRow
from ledger_server.ledger.timestamps import parse_iso, parse_serial_date, parse_slash_date

LOGGER = logging.getLogger(__name__)

MONTH_NAMES = ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec")
NAMED_MONTH_PATTERN = re.compile(r"^([A-Za-z]{3,9})\.?[\s\-/']+(\d{4})$")
YEAR_MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{1,2})$")
MONTH_YEAR_PATTERN = re.compile(r"^(\d{1,2})/(\d{4})$")


def _valid(year: int, month: int) -> tuple[int, int] | None:
    return (year, month) if 1 <= month <= 12 and year > 0 else None


def parse_month_label(label: object) -> tuple[int, int] | None:
    """Resolve a month cell to ``(year, month)``; ``None`` for placeholders and noise."""
    if isinstance(label, (int, float)) and not isinstance(label, bool):
        serial = parse_serial_date(label)
        return (serial.year, serial.month) if serial else None
    if not isinstance(label, str):
        return None
    text = label.strip()
    if not text:
        return None

    match = NAMED_MONTH_PATTERN.match(text)
    if match:
        prefix = match.group(1)[:3].lower()
        if prefix in MONTH_NAMES:
            return _valid(int(match.group(2)), MONTH_NAMES.index(prefix) + 1)
        return None
    match = YEAR_MONTH_PATTERN.match(text)
    if match:
        return _valid(int(match.group(1)), int(match.group(2)))
    match = MONTH_YEAR_PATTERN.match(text)
    if match:
        return _valid(int(match.group(2)), int(match.group(1)))

    for parser in (parse_iso, parse_slash_date, parse_serial_date):
        parsed = parser(text)
        if parsed is not None:
            return parsed.year, parsed.month
    return None


def to_percent(row: PerformanceRow) -> PerformanceRow:
    return replace(row, **{name: getattr(row, name) * 100.0 for name in RETURN_FIELDS})


def build_series(raw: list[PerformanceRow], now: datetime) -> list[PerformanceRow]:
    """Drop future and unlabeled months, convert fractions to percentages, keep ledger order.

    Input must be raw parser output: the x100 conversion happens here and only here.
    """
    current = (now.year, now.month)
    series: list[PerformanceRow] = []
    skipped_future = 0
    skipped_unlabeled = 0
    for row in raw:
        period = parse_month_label(row.month)
        if period is None:
            skipped_unlabeled += 1
            continue
        if period > current:
            skipped_future += 1
            continue
        series.append(to_percent(replace(row, month=row.month.strip())))
    if skipped_future or skipped_unlabeled:
        LOGGER.debug(
            "performance rows skipped: future=%s unlabeled=%s kept=%s",
            skipped_future,
            skipped_unlabeled,
            len(series),
        )
    return series
