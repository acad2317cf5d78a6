"""I/O helpers — decode workbooks into cell grids, write JSON artifacts."""

from __future__ import annotations

import json
import math
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from io import BytesIO
from pathlib import Path
from typing import Any

from openpyxl import load_workbook

Grid = list[list[Any]]

_INT_RE = re.compile(r"[+-]?[0-9]+")


class WorkbookOpenError(Exception):
    """Raised when a byte buffer cannot be decoded as a workbook."""


class SheetReadError(Exception):
    """Raised when a named sheet exists but cannot be read as a cell grid."""


@dataclass(frozen=True)
class CellError:
    """A spreadsheet error value such as ``#N/A`` or ``#DIV/0!``."""

    code: str


# ── Loading ──────────────────────────────────────────────────────


class SheetBook:
    """Named, row-ordered cell grids of one workbook.

    Sheets are decoded on first access; ``sheet_names`` keeps workbook order.
    """

    def __init__(self, sheet_names: list[str], read_sheet: Callable[[str], Grid]) -> None:
        self._sheet_names = list(sheet_names)
        self._read_sheet = read_sheet

    @classmethod
    def from_grids(cls, grids: Mapping[str, Grid]) -> SheetBook:
        copies = {name: [list(row) for row in grid] for name, grid in grids.items()}
        return cls(list(copies), lambda name: copies[name])

    @property
    def sheet_names(self) -> list[str]:
        return list(self._sheet_names)

    def sheet(self, name: str) -> Grid:
        if name not in self._sheet_names:
            raise SheetReadError(f"Sheet not found: {name!r}")
        return self._read_sheet(name)


def _cell_value(cell: Any) -> Any:
    if cell.data_type == "e":
        return CellError(str(cell.value))
    return cell.value


def open_workbook(data: bytes) -> SheetBook:
    """Decode an ``.xlsx`` byte buffer.

    Raises
    ------
    WorkbookOpenError
        If the buffer is not a readable workbook.
    """
    try:
        wb = load_workbook(BytesIO(data), data_only=True)
    except Exception as exc:
        raise WorkbookOpenError(str(exc) or type(exc).__name__) from exc

    def _read(name: str) -> Grid:
        ws = wb[name]
        iter_rows = getattr(ws, "iter_rows", None)
        if iter_rows is None:
            raise SheetReadError(f"Sheet {name!r} is not a worksheet")
        return [[_cell_value(cell) for cell in row] for row in iter_rows()]

    return SheetBook(wb.sheetnames, _read)


# ── Cell coercion ────────────────────────────────────────────────


def cell_at(grid: Grid, row: int, col: int) -> Any:
    """Return the value at (*row*, *col*), or ``None`` outside the grid."""
    if row < 0 or col < 0 or row >= len(grid):
        return None
    cells = grid[row]
    if col >= len(cells):
        return None
    return cells[col]


def _format_float(value: float) -> str:
    if value.is_integer():
        return str(int(value))
    text = repr(value)
    if "e" in text:
        # Positional form only: 1e-05 -> 0.00001
        text = format(Decimal(text), "f")
    return text


def cell_text(value: Any) -> str:
    """Render a cell value as text (numbers in natural form, errors as ``""``)."""
    if value is None or isinstance(value, CellError):
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, datetime):
        if value.time() == time(0):
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return str(value)
    return str(value)


def parse_int(text: str) -> int | None:
    """Parse an optionally signed run of digits; anything else is ``None``."""
    if not _INT_RE.fullmatch(text):
        return None
    return int(text)


def cell_int(value: Any) -> int:
    """Coerce a cell to an integer quantity; unparseable values count as 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    if isinstance(value, str):
        parsed = parse_int(value)
        return 0 if parsed is None else parsed
    return 0


# ── Writing ──────────────────────────────────────────────────────


def write_json(path: Path, data: Any) -> Path:
    """Write *data* as pretty-printed JSON to *path* (atomic + deterministic)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
    ) + "\n"
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(payload, encoding="utf-8")
    tmp_path.replace(path)
    return path
