"""Raw ledger rows to typed records.

Parsing never raises: a cell that does not hold a number becomes ``0.0`` and
the row is still returned. One bad cell must not stop a whole ledger.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

from ledger_server.ledger.models import AssetRow, ParsedNumber, PerformanceRow
from ledger_server.ledger.store import Cell, column_index
from ledger_server.ledger.timestamps import parse_serial_date

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssetColumns:
    """0-based column positions on the portfolio tab (A=0)."""

    name: int = column_index("A")
    symbol: int = column_index("B")
    quantity: int = column_index("G")
    current_price: int = column_index("H")
    last_price_update: int = column_index("J")
    external_id: int = column_index("K")
    price_change_24h: int = column_index("L")


@dataclass(frozen=True)
class PerformanceColumns:
    month: int = column_index("B")
    ending_aum: int = column_index("G")
    fund_mom: int = column_index("H")
    fund_cumulative: int = column_index("I")
    benchmark_mom: int = column_index("L")
    benchmark_cumulative: int = column_index("M")
    benchmark2_mom: int = column_index("P")
    benchmark2_cumulative: int = column_index("Q")


def _is_blank(cell: Cell) -> bool:
    return cell is None or (isinstance(cell, str) and not cell.strip())


def parse_number(cell: Cell) -> ParsedNumber:
    """Parse a numeric cell, reporting whether the value had to be defaulted.

    Accepts plain numbers and text such as ``"1,234.5"``, ``"$40,000"``,
    ``"(12.5)"`` and ``"5.23%"``. Percent text is returned as a fraction
    (``"5.23%"`` -> ``0.0523``) so it agrees with raw fractional cells.
    """
    if isinstance(cell, bool):
        return ParsedNumber(0.0, True)
    if isinstance(cell, (int, float)):
        number = float(cell)
        return ParsedNumber(number, False) if math.isfinite(number) else ParsedNumber(0.0, True)
    if _is_blank(cell) or not isinstance(cell, str):
        return ParsedNumber(0.0, True)

    text = cell.strip().replace(",", "").replace("$", "").replace(" ", "")
    negative = text.startswith("(") and text.endswith(")")
    if negative:
        text = text[1:-1]
    percent = text.endswith("%")
    if percent:
        text = text[:-1]
    try:
        number = float(text)
    except ValueError:
        return ParsedNumber(0.0, True)
    if not math.isfinite(number):
        return ParsedNumber(0.0, True)
    if percent:
        number /= 100.0
    return ParsedNumber(-number if negative else number, False)


def _cell(row: Sequence[Cell], index: int) -> Cell:
    return row[index] if index < len(row) else ""


def _text(cell: Cell) -> str:
    if _is_blank(cell):
        return ""
    if isinstance(cell, float) and cell.is_integer():
        return str(int(cell))
    return str(cell).strip()


def _number(row: Sequence[Cell], index: int, row_index: int, field: str) -> float:
    cell = _cell(row, index)
    parsed = parse_number(cell)
    if parsed.was_defaulted and not _is_blank(cell):
        LOGGER.debug("cell defaulted to 0: row=%s field=%s raw=%r", row_index, field, cell)
    return parsed.value


def _month_label(cell: Cell) -> str:
    if isinstance(cell, (int, float)) and not isinstance(cell, bool):
        serial = parse_serial_date(cell)
        return serial.strftime("%b-%Y") if serial else ""
    return _text(cell)


def parse_asset_rows(
    raw_rows: Sequence[Sequence[Cell]],
    columns: AssetColumns = AssetColumns(),
    first_row_index: int = 2,
) -> list[AssetRow]:
    """Parse portfolio rows; ``first_row_index`` is the ledger row of ``raw_rows[0]``."""
    assets: list[AssetRow] = []
    for offset, row in enumerate(raw_rows):
        if all(_is_blank(cell) for cell in row):
            continue
        row_index = first_row_index + offset
        external_id = _text(_cell(row, columns.external_id)) or None
        change_cell = _cell(row, columns.price_change_24h)
        change = parse_number(change_cell)
        assets.append(
            AssetRow(
                symbol=_text(_cell(row, columns.symbol)).upper(),
                quantity=max(0.0, _number(row, columns.quantity, row_index, "quantity")),
                external_id=external_id,
                current_price=_number(row, columns.current_price, row_index, "current_price"),
                price_change_24h=None if change.was_defaulted else change.value,
                last_price_update=_text(_cell(row, columns.last_price_update)),
                row_index=row_index,
                name=_text(_cell(row, columns.name)),
            )
        )
    return assets


def parse_performance_rows(
    raw_rows: Sequence[Sequence[Cell]],
    columns: PerformanceColumns = PerformanceColumns(),
    first_row_index: int = 2,
) -> list[PerformanceRow]:
    """Parse historical rows. Return fields stay raw fractions here."""
    records: list[PerformanceRow] = []
    for offset, row in enumerate(raw_rows):
        if all(_is_blank(cell) for cell in row):
            continue
        row_index = first_row_index + offset
        records.append(
            PerformanceRow(
                month=_month_label(_cell(row, columns.month)),
                ending_aum=_number(row, columns.ending_aum, row_index, "ending_aum"),
                fund_mom=_number(row, columns.fund_mom, row_index, "fund_mom"),
                fund_cumulative=_number(row, columns.fund_cumulative, row_index, "fund_cumulative"),
                benchmark_mom=_number(row, columns.benchmark_mom, row_index, "benchmark_mom"),
                benchmark_cumulative=_number(row, columns.benchmark_cumulative, row_index, "benchmark_cumulative"),
                benchmark2_mom=_number(row, columns.benchmark2_mom, row_index, "benchmark2_mom"),
                benchmark2_cumulative=_number(row, columns.benchmark2_cumulative, row_index, "benchmark2_cumulative"),
                row_index=row_index,
            )
        )
    return records
