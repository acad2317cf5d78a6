"""Conversion pipeline — pure functions, no side effects."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

import pandas as pd

from weekly_report_convert.blocks import extract_products, find_store_blocks
from weekly_report_convert.dates import FilenameDateError, resolve_base_date
from weekly_report_convert.io import (
    Grid,
    SheetReadError,
    WorkbookOpenError,
    cell_at,
    cell_int,
    cell_text,
    open_workbook,
)
from weekly_report_convert.layout import DEFAULT_LAYOUT, ReportLayout
from weekly_report_convert.mapping import MappingError, load_mapping, resolve_store
from weekly_report_convert.models import (
    ConversionResult,
    DataRow,
    StoreDailyRow,
    Unresolved,
    ValidationRow,
)

logger = logging.getLogger(__name__)

RESULT_MATCH = "일치"
RESULT_NO_ORIGINAL = "원본 데이터 없음"
RESULT_MISMATCH = "불일치 (차이: {diff})"


# ── Reconciliation ───────────────────────────────────────────────


@dataclass(frozen=True)
class DayTotals:
    """Totals a weekday sheet declares about itself."""

    original_total: int
    original_store_sum: int


def read_day_totals(grid: Grid, layout: ReportLayout = DEFAULT_LAYOUT) -> DayTotals:
    """Read the grand-total cell and sum the per-store total rows.

    Only strictly positive box values on total-label rows count toward
    ``original_store_sum``.
    """
    total_row, total_col = layout.grand_total_cell
    original_total = cell_int(cell_at(grid, total_row, total_col))

    store_sum = 0
    for row_idx in range(layout.store_totals_start_row, len(grid)):
        for region in layout.regions:
            if cell_text(cell_at(grid, row_idx, region.col_no)) != layout.total_label:
                continue
            value = cell_int(cell_at(grid, row_idx, region.col_box))
            if value > 0:
                store_sum += value
    return DayTotals(original_total=original_total, original_store_sum=store_sum)


def classify_reconciliation(extracted_box: int, original_store_sum: int) -> str:
    if original_store_sum <= 0:
        return RESULT_NO_ORIGINAL
    if extracted_box == original_store_sum:
        return RESULT_MATCH
    return RESULT_MISMATCH.format(diff=extracted_box - original_store_sum)


def reconcile_day(date: str, day_name: str, extracted_box: int, totals: DayTotals) -> ValidationRow:
    return ValidationRow(
        date=date,
        day_name=day_name,
        extracted_box=extracted_box,
        original_total=totals.original_total,
        original_store_sum=totals.original_store_sum,
        result=classify_reconciliation(extracted_box, totals.original_store_sum),
    )


# ── Aggregation ──────────────────────────────────────────────────


def aggregate_store_daily(rows: Iterable[DataRow]) -> list[StoreDailyRow]:
    """Sum ``box_qty`` per (date, code, store_name), in first-seen order."""
    df = pd.DataFrame(
        [(r.date, r.code, r.store_name, r.box_qty) for r in rows],
        columns=["date", "code", "store_name", "box_qty"],
    )
    if df.empty:
        return []
    grouped = (
        df.groupby(["date", "code", "store_name"], sort=False, dropna=False, as_index=False)
        .agg(box_sum=("box_qty", "sum"))
    )
    return [
        StoreDailyRow(date=date, code=code, store_name=store_name, box_sum=int(box_sum))
        for date, code, store_name, box_sum in grouped.itertuples(index=False, name=None)
    ]


# ── Orchestration ────────────────────────────────────────────────


def convert_report(
    origin_data: bytes,
    mapping_data: bytes,
    filename: str,
    *,
    layout: ReportLayout = DEFAULT_LAYOUT,
    strict_dates: bool = False,
) -> ConversionResult:
    """Convert one weekly report workbook into normalized rows.

    Fatal problems (unreadable mapping or origin workbook, and with
    *strict_dates* an undated or overflowing filename date) produce a
    failed result; everything else is absorbed with a skip, a warning or a
    sentinel.
    """
    try:
        mapping = load_mapping(mapping_data)
    except MappingError as exc:
        logger.error("%s", exc)
        return ConversionResult.failure(str(exc))

    try:
        book = open_workbook(origin_data)
    except WorkbookOpenError as exc:
        logger.error("Origin workbook unreadable: %s", exc)
        return ConversionResult.failure(f"원본 파일 열기 실패: {exc}")

    try:
        base = resolve_base_date(filename, strict=strict_dates)
    except FilenameDateError as exc:
        logger.error("%s", exc)
        return ConversionResult.failure(f"파일명 날짜 해석 실패: {exc}")

    warnings: list[str] = []
    if not base.matched:
        message = (
            f"Filename {filename!r} lacks a full date pattern; "
            f"using base date {base.shifted(0)}"
        )
        logger.warning(message)
        warnings.append(message)
    if base.rolled_over:
        message = (
            f"Filename {filename!r} names a day past the end of its month; "
            f"rolled forward to {base.shifted(0)}"
        )
        logger.warning(message)
        warnings.append(message)

    sheet_names = set(book.sheet_names)
    data: list[DataRow] = []
    validation: list[ValidationRow] = []
    mapping_failures: list[str] = []
    failed_names: set[str] = set()

    for offset, day_name in enumerate(layout.weekday_sheets):
        if day_name not in sheet_names:
            continue
        try:
            grid = book.sheet(day_name)
        except SheetReadError as exc:
            logger.warning("Skipping sheet %r: %s", day_name, exc)
            warnings.append(f"Sheet {day_name!r} skipped: {exc}")
            continue

        date_str = base.shifted(offset)
        blocks = find_store_blocks(grid, layout)
        day_box = 0

        for block in blocks:
            identity = resolve_store(block.store_name, mapping)
            if isinstance(identity, Unresolved) and block.store_name not in failed_names:
                failed_names.add(block.store_name)
                mapping_failures.append(block.store_name)
                logger.warning("No mapping for store %r", block.store_name)

            for product_name, box_qty, afternoon in extract_products(grid, block, layout=layout):
                data.append(
                    DataRow(
                        date=date_str,
                        code=identity.code,
                        store_name=identity.system_name,
                        product_name=product_name,
                        box_qty=box_qty,
                        afternoon=afternoon,
                    )
                )
                day_box += box_qty

        row = reconcile_day(date_str, day_name, day_box, read_day_totals(grid, layout))
        validation.append(row)
        logger.debug(
            "Sheet %r (%s): %d blocks, %d boxes, %s",
            day_name, date_str, len(blocks), day_box, row.result,
        )

    store_daily = aggregate_store_daily(data)
    logger.info(
        "Converted %d rows across %d sheets (%d unmapped stores)",
        len(data), len(validation), len(mapping_failures),
    )
    return ConversionResult(
        data=data,
        validation=validation,
        store_daily=store_daily,
        mapping_failures=mapping_failures,
        warnings=warnings,
    )
