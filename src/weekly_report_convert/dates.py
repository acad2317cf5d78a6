"""Report dates — base date from the filename, weekday offsets from it."""

from __future__ import annotations

import re
from dataclasses import dataclass

DEFAULT_YEAR = 2026
DEFAULT_MONTH = 1
DEFAULT_DAY = 1

_DAYS_IN_MONTH = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)

# "2026년 1월" / "26년 1월"
_YEAR_MONTH_RE = re.compile(r"(\d+)년\s*(\d+)월")
# "(1.5~1.9)"; only the start of the range is used.
_RANGE_RE = re.compile(r"\((\d+)\.(\d+)~(\d+)\.(\d+)\)")


class FilenameDateError(ValueError):
    """Raised when a filename does not yield a usable report date."""


@dataclass(frozen=True)
class BaseDate:
    year: int
    month: int
    day: int
    year_matched: bool = False
    range_matched: bool = False
    rolled_over: bool = False

    @property
    def matched(self) -> bool:
        """True when both filename patterns were found."""
        return self.year_matched and self.range_matched

    def shifted(self, offset: int) -> str:
        return format_date(*add_days(self.year, self.month, self.day, offset))


def resolve_base_date(filename: str, *, strict: bool = False) -> BaseDate:
    """Derive the report's first day from *filename*.

    Missing patterns fall back to 2026 / January 1st and a day past the end
    of its month rolls into the next (``2.30`` -> March 2nd). With *strict*
    either case raises :class:`FilenameDateError` instead.
    """
    year = DEFAULT_YEAR
    month = DEFAULT_MONTH
    day = DEFAULT_DAY

    year_match = _YEAR_MONTH_RE.search(filename)
    if year_match:
        year = int(year_match.group(1))
        if year < 100:
            year += 2000

    range_match = _RANGE_RE.search(filename)
    if range_match:
        month = int(range_match.group(1))
        day = int(range_match.group(2))

    year_matched = year_match is not None
    range_matched = range_match is not None
    if strict and not (year_matched and range_matched):
        missing = []
        if not year_matched:
            missing.append("'YYYY년 M월'")
        if not range_matched:
            missing.append("'(M.D~M.D)'")
        raise FilenameDateError(
            f"Filename {filename!r} has no {' or '.join(missing)} date pattern"
        )

    rolled_over = day > days_in_month(year, month)
    if rolled_over:
        if strict:
            raise FilenameDateError(
                f"Filename {filename!r} names an impossible date "
                f"{format_date(year, month, day)}"
            )
        year, month, day = add_days(year, month, day, 0)

    return BaseDate(
        year=year,
        month=month,
        day=day,
        year_matched=year_matched,
        range_matched=range_matched,
        rolled_over=rolled_over,
    )


def is_leap_year(year: int) -> bool:
    return (year % 4 == 0 and year % 100 != 0) or year % 400 == 0


def days_in_month(year: int, month: int) -> int:
    """Length of *month*; an out-of-range month counts as 31 days."""
    if month == 2 and is_leap_year(year):
        return 29
    if 1 <= month <= 12:
        return _DAYS_IN_MONTH[month - 1]
    return 31


def add_days(year: int, month: int, day: int, offset: int) -> tuple[int, int, int]:
    """Advance a Gregorian date by *offset* whole days.

    Days past the end of the month carry into the following months, so an
    overflowing start such as February 30th normalizes on the way. The year
    is unbounded.
    """
    if offset < 0:
        raise ValueError("offset must be >= 0")
    day += offset
    while day > days_in_month(year, month):
        day -= days_in_month(year, month)
        month += 1
        if month > 12:
            month = 1
            year += 1
    return year, month, day


def format_date(year: int, month: int, day: int) -> str:
    return f"{year:04d}-{month:02d}-{day:02d}"
