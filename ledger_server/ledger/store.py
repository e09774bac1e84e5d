"""Ledger store interface, A1 range helpers and an in-memory implementation."""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass
from typing import Protocol, Sequence, Union

from ledger_server.errors import LedgerStoreError, LedgerWriteError

Cell = Union[str, int, float, None]
Row = list[Cell]

RANGE_PATTERN = re.compile(
    r"^(?:(?:'(?P<quoted>(?:[^']|'')+)'|(?P<plain>[^!']+))!)?"
    r"(?P<c1>[A-Za-z]+)?(?P<r1>\d+)?(?::(?P<c2>[A-Za-z]+)?(?P<r2>\d+)?)?$"
)
DEFAULT_SHEET = "Sheet1"


@dataclass(frozen=True)
class RangeRef:
    sheet: str
    start_col: int
    start_row: int
    end_col: int | None
    end_row: int | None


@dataclass(frozen=True)
class CellWrite:
    range_ref: str
    values: list[Row]


class LedgerStore(Protocol):
    def read_range(self, range_ref: str) -> list[Row]: ...

    def write_range(self, range_ref: str, rows: list[Row]) -> None: ...

    def batch_write(self, writes: Sequence[CellWrite]) -> None: ...


def column_letter(index: int) -> str:
    """0-based column index to A1 letters (0 -> A, 27 -> AB)."""
    if index < 0:
        raise ValueError("Column index must be non-negative.")
    letters = ""
    number = index + 1
    while number:
        number, remainder = divmod(number - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters


def column_index(letters: str) -> int:
    value = 0
    for char in letters.upper():
        if not "A" <= char <= "Z":
            raise ValueError(f"Invalid column letters: {letters}")
        value = value * 26 + (ord(char) - ord("A") + 1)
    return value - 1


def quote_sheet(sheet: str) -> str:
    if re.fullmatch(r"[A-Za-z0-9_]+", sheet):
        return sheet
    return "'" + sheet.replace("'", "''") + "'"


def cell_ref(sheet: str, column: int, row: int) -> str:
    return f"{quote_sheet(sheet)}!{column_letter(column)}{row}"


def parse_range(range_ref: str) -> RangeRef:
    match = RANGE_PATTERN.match(range_ref.strip())
    if not match or not (match.group("c1") or match.group("r1")):
        raise ValueError(f"Invalid A1 range: {range_ref}")
    sheet = match.group("quoted")
    sheet = sheet.replace("''", "'") if sheet is not None else (match.group("plain") or DEFAULT_SHEET)
    c1, r1, c2, r2 = match.group("c1"), match.group("r1"), match.group("c2"), match.group("r2")
    has_end = ":" in range_ref
    start_col = column_index(c1) if c1 else 0
    start_row = int(r1) if r1 else 1
    if has_end:
        end_col = column_index(c2) if c2 else None
        end_row = int(r2) if r2 else None
    else:
        end_col = start_col if c1 else None
        end_row = start_row if r1 else None
    return RangeRef(sheet=sheet, start_col=start_col, start_row=start_row, end_col=end_col, end_row=end_row)


class InMemoryLedgerStore:
    """Thread-safe dict-of-grids ledger with atomic batch writes.

    Reads mimic the Sheets values API: trailing blank rows and trailing blank
    cells are omitted, blanks inside a row come back as empty strings.
    """

    def __init__(self, sheets: dict[str, list[Row]] | None = None) -> None:
        self._lock = threading.Lock()
        self._sheets: dict[str, list[Row]] = {
            name: [list(row) for row in rows] for name, rows in (sheets or {}).items()
        }
        self.batches: list[list[CellWrite]] = []

    def read_range(self, range_ref: str) -> list[Row]:
        ref = parse_range(range_ref)
        with self._lock:
            grid = self._sheets.get(ref.sheet)
            if grid is None:
                raise LedgerStoreError(f"Unable to parse range: {range_ref}", status=400)
            last_row = len(grid) if ref.end_row is None else min(ref.end_row, len(grid))
            out: list[Row] = []
            for row in grid[ref.start_row - 1 : last_row]:
                end = len(row) if ref.end_col is None else min(ref.end_col + 1, len(row))
                cells = ["" if cell is None else cell for cell in row[ref.start_col : end]]
                while cells and cells[-1] == "":
                    cells.pop()
                out.append(cells)
            while out and not out[-1]:
                out.pop()
            return out

    def write_range(self, range_ref: str, rows: list[Row]) -> None:
        self.batch_write([CellWrite(range_ref=range_ref, values=rows)])

    def batch_write(self, writes: Sequence[CellWrite]) -> None:
        parsed = []
        for write in writes:
            try:
                ref = parse_range(write.range_ref)
            except ValueError as error:
                raise LedgerWriteError(str(error), status=400) from error
            if ref.sheet not in self._sheets:
                raise LedgerWriteError(f"Unable to parse range: {write.range_ref}", status=400)
            parsed.append((ref, write.values))
        with self._lock:
            for ref, values in parsed:
                grid = self._sheets[ref.sheet]
                for row_offset, row_values in enumerate(values):
                    row_number = ref.start_row + row_offset
                    while len(grid) < row_number:
                        grid.append([])
                    target = grid[row_number - 1]
                    for col_offset, value in enumerate(row_values):
                        column = ref.start_col + col_offset
                        while len(target) <= column:
                            target.append("")
                        target[column] = value
            self.batches.append(list(writes))

    def snapshot(self, sheet: str) -> list[Row]:
        with self._lock:
            return [list(row) for row in self._sheets.get(sheet, [])]
