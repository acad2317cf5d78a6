"""Store-name mapping table loader."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from weekly_report_convert import MAPPING_COLUMNS
from weekly_report_convert.io import (
    Grid,
    SheetReadError,
    WorkbookOpenError,
    cell_text,
    open_workbook,
)
from weekly_report_convert.models import MappingEntry, Resolved, StoreIdentity, Unresolved

logger = logging.getLogger(__name__)


class MappingError(Exception):
    """Base class for fatal mapping-document failures."""


class MappingOpenError(MappingError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"매핑 파일 열기 실패: {detail}")


class MappingEmptyError(MappingError):
    def __init__(self) -> None:
        super().__init__("매핑 파일에 시트가 없습니다")


class MappingSheetError(MappingError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"매핑 시트 읽기 실패: {detail}")


def _header_index(grid: Grid) -> dict[str, int]:
    if not grid:
        return {}
    headers: dict[str, int] = {}
    for idx, value in enumerate(grid[0]):
        headers[cell_text(value)] = idx
    return headers


def _text_at(row: list[object], idx: int | None) -> str:
    if idx is None or idx >= len(row):
        return ""
    return cell_text(row[idx])


def parse_mapping_grid(
    grid: Grid, columns: Mapping[str, str] = MAPPING_COLUMNS
) -> dict[str, MappingEntry]:
    """Build the original-name lookup from a header row plus data rows.

    Repeated original names keep the last row.
    """
    headers = _header_index(grid)
    code_idx = headers.get(columns["code"])
    orig_idx = headers.get(columns["original_name"])
    name_idx = headers.get(columns["system_name"])
    if orig_idx is None:
        logger.warning("Mapping sheet has no %r column; no entries loaded", columns["original_name"])

    mapping: dict[str, MappingEntry] = {}
    for row in grid[1:]:
        original_name = _text_at(row, orig_idx)
        if not original_name:
            continue
        mapping[original_name] = MappingEntry(
            code=_text_at(row, code_idx),
            system_name=_text_at(row, name_idx),
        )
    return mapping


def load_mapping(
    data: bytes, columns: Mapping[str, str] = MAPPING_COLUMNS
) -> dict[str, MappingEntry]:
    """Parse the first sheet of the mapping workbook in *data*.

    Raises
    ------
    MappingOpenError
        If *data* is not a readable workbook.
    MappingEmptyError
        If the workbook has no sheets.
    MappingSheetError
        If the first sheet cannot be read.
    """
    try:
        book = open_workbook(data)
    except WorkbookOpenError as exc:
        raise MappingOpenError(str(exc)) from exc

    sheet_names = book.sheet_names
    if not sheet_names:
        raise MappingEmptyError()

    try:
        grid = book.sheet(sheet_names[0])
    except SheetReadError as exc:
        raise MappingSheetError(str(exc)) from exc

    mapping = parse_mapping_grid(grid, columns)
    logger.info("Mapping loaded: %d entries from sheet %r", len(mapping), sheet_names[0])
    return mapping


def resolve_store(store_name: str, mapping: Mapping[str, MappingEntry]) -> StoreIdentity:
    entry = mapping.get(store_name)
    if entry is None:
        return Unresolved(original_name=store_name)
    return Resolved(code=entry.code, system_name=entry.system_name)

