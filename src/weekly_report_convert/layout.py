"""Fixed geometry of the weekly store report.

Every offset here is 0-indexed (row, column) into a sheet grid.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Region:
    """One horizontal column range in which store blocks can appear."""

    name: str
    col_no: int
    col_afternoon: int
    col_product: int
    col_box: int


REGION_A = Region(name="A", col_no=1, col_afternoon=2, col_product=4, col_box=5)
REGION_B = Region(name="B", col_no=10, col_afternoon=11, col_product=13, col_box=14)


@dataclass(frozen=True)
class ReportLayout:
    """Report-family constants consumed by the scanner and reconciler.

    ``regions`` are scanned left to right, so their order is also the order
    in which blocks anchored on the same row are emitted.
    """

    regions: tuple[Region, ...] = (REGION_A, REGION_B)
    block_marker: str = "※"
    total_label: str = "계"
    product_row_offset: int = 4
    max_products: int = 25
    grand_total_cell: tuple[int, int] = (7, 5)
    store_totals_start_row: int = 34
    weekday_sheets: tuple[str, ...] = field(default=("월", "화", "수", "목", "금"))

    def __post_init__(self) -> None:
        if not self.regions:
            raise ValueError("regions must not be empty")
        if not self.block_marker:
            raise ValueError("block_marker must not be empty")
        if self.product_row_offset < 1:
            raise ValueError("product_row_offset must be >= 1")
        if self.max_products < 0:
            raise ValueError("max_products must be >= 0")
        if len(set(self.weekday_sheets)) != len(self.weekday_sheets):
            raise ValueError("weekday_sheets must be unique")


DEFAULT_LAYOUT = ReportLayout()
