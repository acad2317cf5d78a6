from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from io import BytesIO
from typing import Any

import pytest
from openpyxl import Workbook

Cells = Mapping[tuple[int, int], Any]

MAPPING_HEADER = ("코드", "원본 사업장명", "사업장명")
SCENARIO_FILENAME = "report(1.5~1.9) 2026년 1월.xlsx"


def _xlsx_bytes(sheets: Mapping[str, Cells]) -> bytes:
    wb = Workbook()
    wb.remove(wb.active)
    for name, cells in sheets.items():
        ws = wb.create_sheet(title=name)
        for (row, col), value in cells.items():
            ws.cell(row=row + 1, column=col + 1, value=value)
    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()


def _mapping_bytes(
    rows: Sequence[Sequence[Any]], header: Sequence[Any] = MAPPING_HEADER
) -> bytes:
    cells: dict[tuple[int, int], Any] = {}
    for c, value in enumerate(header):
        cells[(0, c)] = value
    for r, row in enumerate(rows, 1):
        for c, value in enumerate(row):
            cells[(r, c)] = value
    return _xlsx_bytes({"mapping": cells})


def _grid(cells: Cells, width: int = 15, height: int | None = None) -> list[list[Any]]:
    if height is None:
        height = max((r for r, _ in cells), default=-1) + 1
    grid: list[list[Any]] = [[None] * width for _ in range(height)]
    for (row, col), value in cells.items():
        grid[row][col] = value
    return grid


def _scenario_cells() -> dict[tuple[int, int], Any]:
    return {
        (0, 1): "※ Store Alpha : 3",
        (4, 1): 1, (4, 4): "Widget", (4, 5): 10,
        (5, 1): 2, (5, 4): "Widget", (5, 5): 0,
        (6, 1): 3, (6, 4): "Gadget", (6, 5): 5,
        (7, 1): "total", (7, 4): "-", (7, 5): "-",
    }


@pytest.fixture
def make_xlsx() -> Callable[[Mapping[str, Cells]], bytes]:
    return _xlsx_bytes


@pytest.fixture
def make_mapping() -> Callable[..., bytes]:
    return _mapping_bytes


@pytest.fixture
def make_grid() -> Callable[..., list[list[Any]]]:
    return _grid


@pytest.fixture
def scenario_cells() -> dict[tuple[int, int], Any]:
    return _scenario_cells()


@pytest.fixture
def scenario_filename() -> str:
    return SCENARIO_FILENAME


@pytest.fixture
def scenario_mapping() -> bytes:
    return _mapping_bytes([["S01", "Store Alpha", "Alpha Mart"]])


@pytest.fixture
def scenario_origin() -> bytes:
    return _xlsx_bytes({"월": _scenario_cells()})
