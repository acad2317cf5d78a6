"""Excel result writer — produces ``<origin>_result.xlsx``."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from weekly_report_convert.models import ConversionResult

# ── Style constants ──────────────────────────────────────────────

HEADER_FONT = Font(name="Calibri", bold=True, size=11)
HEADER_FILL = PatternFill(start_color="E0E0E0", end_color="E0E0E0", fill_type="solid")
HEADER_ALIGN = Alignment(horizontal="center", vertical="center", wrap_text=True)

MAPPING_FAILED_FILL = PatternFill(start_color="FFCCCC", end_color="FFCCCC", fill_type="solid")

INT_FMT = '#,##0'

DATA_SHEET = "데이터"
VALIDATION_SHEET = "검증"
STORE_DAILY_SHEET = "매장별 상세"
MAPPING_FAILED_SHEET = "매핑실패"

# Field name → column header, in output order.
DATA_COLUMNS: dict[str, str] = {
    "date": "일자",
    "code": "코드",
    "store_name": "사업장명",
    "product_name": "품목명",
    "box_qty": "Box 입수",
    "afternoon": "오후 진열",
}
VALIDATION_COLUMNS: dict[str, str] = {
    "date": "일자",
    "day_name": "요일",
    "extracted_box": "추출 Box 합계",
    "original_total": "원본 시트 총 계",
    "original_store_sum": "원본 시트 개별매장 합계",
    "result": "검증 결과",
}
STORE_DAILY_COLUMNS: dict[str, str] = {
    "date": "일자",
    "code": "코드",
    "store_name": "사업장명",
    "box_sum": "Box 합계",
}
MAPPING_FAILED_COLUMN = "매장명"

_INT_COLUMNS = {"Box 입수", "추출 Box 합계", "원본 시트 총 계", "원본 시트 개별매장 합계", "Box 합계"}
_MAX_COL_WIDTH = 50
_AUTO_WIDTH_SAMPLE_ROWS = 300
_EXCEL_FORMULA_PREFIXES = ("=", "+", "-", "@")


# ── Frames ───────────────────────────────────────────────────────


def _frame(records: list[dict[str, Any]], columns: dict[str, str]) -> pd.DataFrame:
    df = pd.DataFrame(records, columns=list(columns))
    return df.rename(columns=columns)


def result_frames(result: ConversionResult) -> dict[str, pd.DataFrame]:
    """Return one DataFrame per output sheet, keyed by sheet name.

    The mapping-failure sheet is present only when a store went unmapped.
    """
    frames = {
        DATA_SHEET: _frame([r.to_dict() for r in result.data], DATA_COLUMNS),
        VALIDATION_SHEET: _frame([r.to_dict() for r in result.validation], VALIDATION_COLUMNS),
        STORE_DAILY_SHEET: _frame([r.to_dict() for r in result.store_daily], STORE_DAILY_COLUMNS),
    }
    if result.mapping_failures:
        frames[MAPPING_FAILED_SHEET] = pd.DataFrame({MAPPING_FAILED_COLUMN: result.mapping_failures})
    return frames


# ── Helpers ──────────────────────────────────────────────────────


def _style_header(ws: Worksheet, ncols: int) -> None:
    for c in range(1, ncols + 1):
        cell = ws.cell(row=1, column=c)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGN


def _display_width(text: str) -> int:
    # Hangul and other wide glyphs take roughly two columns.
    return sum(2 if ord(ch) > 0x2E80 else 1 for ch in text)


def _auto_width(ws: Worksheet) -> None:
    max_row = min(ws.max_row, _AUTO_WIDTH_SAMPLE_ROWS + 1)
    for c_idx in range(1, ws.max_column + 1):
        letter = get_column_letter(c_idx)
        width = 0
        for row in ws.iter_rows(min_row=1, max_row=max_row, min_col=c_idx, max_col=c_idx):
            cell = row[0]
            width = max(width, _display_width(str(cell.value or "")))
        ws.column_dimensions[letter].width = min(width + 2, _MAX_COL_WIDTH)


def _excel_value(val: Any) -> Any:
    try:
        if pd.isna(val):
            return None
    except (TypeError, ValueError):
        return val

    item = getattr(val, "item", None)
    if callable(item):
        val = item()

    if isinstance(val, str):
        if val.startswith("'"):
            return val
        stripped = val.lstrip()
        if stripped and stripped[0] in _EXCEL_FORMULA_PREFIXES:
            return f"'{val}"

    return val


def _df_to_sheet(
    wb: Workbook, name: str, df: pd.DataFrame, *, highlight_rows: set[int] | None = None,
) -> Worksheet:
    ws = wb.create_sheet(title=name)
    col_names = list(df.columns)

    for c_idx, col_name in enumerate(col_names, 1):
        ws.cell(row=1, column=c_idx, value=col_name)
    for r_idx, row_vals in enumerate(df.itertuples(index=False, name=None), 2):
        for c_idx, val in enumerate(row_vals, 1):
            cell = ws.cell(row=r_idx, column=c_idx, value=_excel_value(val))
            if col_names[c_idx - 1] in _INT_COLUMNS:
                cell.number_format = INT_FMT
            if highlight_rows and (r_idx - 2) in highlight_rows:
                cell.fill = MAPPING_FAILED_FILL
    _style_header(ws, len(col_names))
    ws.freeze_panes = "A2"
    if len(df) > 0:
        ws.auto_filter.ref = ws.dimensions
    _auto_width(ws)
    return ws


# ── Public API ───────────────────────────────────────────────────


def default_result_name(origin_name: str) -> str:
    """``weekly.xlsx`` → ``weekly_result.xlsx``."""
    stem = Path(origin_name).stem or "report"
    return f"{stem}_result.xlsx"


def write_result_workbook(path: Path, result: ConversionResult) -> Path:
    """Write the converted sheets of *result* to *path* and return it.

    Rows belonging to unmapped stores are filled light red on the data sheet.
    """
    if not result.success:
        raise ValueError(f"Cannot write a failed conversion: {result.error}")

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    wb = Workbook()
    active_sheet = wb.active
    if active_sheet is not None:
        wb.remove(active_sheet)  # remove default sheet

    failed_rows = {idx for idx, row in enumerate(result.data) if row.mapping_failed}
    for name, df in result_frames(result).items():
        _df_to_sheet(wb, name, df, highlight_rows=failed_rows if name == DATA_SHEET else None)

    tmp_path = path.with_name(f"{path.stem}.tmp{path.suffix}")
    wb.save(tmp_path)
    tmp_path.replace(path)
    return path
