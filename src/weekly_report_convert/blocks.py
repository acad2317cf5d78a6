"""Store-block scanning and product-row extraction."""

from __future__ import annotations

import re
from functools import lru_cache

from weekly_report_convert.io import Grid, cell_at, cell_int, cell_text, parse_int
from weekly_report_convert.layout import DEFAULT_LAYOUT, Region, ReportLayout
from weekly_report_convert.models import StoreBlock

Product = tuple[str, int, str]


@lru_cache(maxsize=8)
def _marker_pattern(marker: str) -> re.Pattern[str]:
    # "※ 매장명 : 12" -> "매장명"; trailing digits are ignored.
    return re.compile(re.escape(marker) + r"\s*(.+?)\s*:\s*\d*")


def extract_store_name(value: object, marker: str = DEFAULT_LAYOUT.block_marker) -> str | None:
    """Return the store name of a block marker cell, or ``None``.

    A marker with nothing before the colon yields ``""``; the block is still
    real and its store simply misses the mapping.
    """
    text = cell_text(value)
    if marker not in text:
        return None
    match = _marker_pattern(marker).search(text)
    if match is None:
        return None
    return match.group(1).strip()


def _block(store_name: str, row: int, region: Region) -> StoreBlock:
    return StoreBlock(
        store_name=store_name,
        anchor_row=row,
        col_no=region.col_no,
        col_afternoon=region.col_afternoon,
        col_product=region.col_product,
        col_box=region.col_box,
    )


def find_store_blocks(grid: Grid, layout: ReportLayout = DEFAULT_LAYOUT) -> list[StoreBlock]:
    """Locate every block anchor, row by row and region by region.

    Repeated markers yield repeated blocks.
    """
    blocks: list[StoreBlock] = []
    for row_idx in range(len(grid)):
        for region in layout.regions:
            name = extract_store_name(cell_at(grid, row_idx, region.col_no), layout.block_marker)
            if name is not None:
                blocks.append(_block(name, row_idx, region))
    return blocks


def extract_products(
    grid: Grid,
    block: StoreBlock,
    max_products: int | None = None,
    layout: ReportLayout = DEFAULT_LAYOUT,
) -> list[Product]:
    """Read ``(product_name, box_qty, afternoon)`` rows below *block*.

    The window starts ``layout.product_row_offset`` rows under the anchor.
    A non-integer "no." cell ends the block; an empty product name or a zero
    quantity only skips that row.
    """
    if max_products is None:
        max_products = layout.max_products
    start = block.anchor_row + layout.product_row_offset

    products: list[Product] = []
    for row_idx in range(start, start + max_products):
        if parse_int(cell_text(cell_at(grid, row_idx, block.col_no))) is None:
            break

        product_name = cell_text(cell_at(grid, row_idx, block.col_product)).strip()
        if not product_name:
            continue

        box_qty = cell_int(cell_at(grid, row_idx, block.col_box))
        if box_qty == 0:
            continue

        afternoon = cell_text(cell_at(grid, row_idx, block.col_afternoon)).strip()
        products.append((product_name, box_qty, afternoon))
    return products
