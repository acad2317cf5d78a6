"""Data models used across the package."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from numbers import Integral
from typing import Any

MAPPING_FAILED_CODE = "MAPPING_FAILED"
MAPPING_FAILED_PREFIX = "[매핑실패] "


def _to_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    return int(value)


def _to_non_negative_int(value: Any, field_name: str) -> int:
    result = _to_int(value, field_name)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


def _to_string_list(values: Sequence[Any] | None, field_name: str) -> list[str]:
    if values is None:
        return []
    if isinstance(values, str):
        raise TypeError(f"{field_name} must be a sequence of strings")
    normalized: list[str] = []
    for item in values:
        if not isinstance(item, str):
            raise TypeError(f"{field_name} items must be strings")
        normalized.append(item)
    return normalized


# ── Mapping / identity ───────────────────────────────────────────


@dataclass(frozen=True)
class MappingEntry:
    code: str
    system_name: str


@dataclass(frozen=True)
class Resolved:
    """Store found in the mapping table."""

    code: str
    system_name: str


@dataclass(frozen=True)
class Unresolved:
    """Store missing from the mapping table; stamped with sentinel values."""

    original_name: str

    @property
    def code(self) -> str:
        return MAPPING_FAILED_CODE

    @property
    def system_name(self) -> str:
        return f"{MAPPING_FAILED_PREFIX}{self.original_name}"


StoreIdentity = Resolved | Unresolved


# ── Extraction ───────────────────────────────────────────────────


@dataclass(frozen=True)
class StoreBlock:
    """One store's data region within a sheet, anchored at its marker row."""

    store_name: str
    anchor_row: int
    col_no: int
    col_afternoon: int
    col_product: int
    col_box: int


@dataclass(frozen=True)
class DataRow:
    """One extracted product line.

    Contract invariant: ``product_name`` is non-empty and ``box_qty != 0``.
    """

    date: str
    code: str
    store_name: str
    product_name: str
    box_qty: int
    afternoon: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "box_qty", _to_int(self.box_qty, "box_qty"))
        if not self.product_name:
            raise ValueError("product_name must not be empty")
        if self.box_qty == 0:
            raise ValueError("box_qty must be non-zero")

    @property
    def mapping_failed(self) -> bool:
        return self.code == MAPPING_FAILED_CODE

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "code": self.code,
            "store_name": self.store_name,
            "product_name": self.product_name,
            "box_qty": self.box_qty,
            "afternoon": self.afternoon,
        }


@dataclass(frozen=True)
class ValidationRow:
    """Reconciliation outcome for one weekday sheet."""

    date: str
    day_name: str
    extracted_box: int
    original_total: int
    original_store_sum: int
    result: str

    def __post_init__(self) -> None:
        for name in ("extracted_box", "original_total", "original_store_sum"):
            object.__setattr__(self, name, _to_int(getattr(self, name), name))
        if self.original_store_sum < 0:
            raise ValueError("original_store_sum must be >= 0")

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "day_name": self.day_name,
            "extracted_box": self.extracted_box,
            "original_total": self.original_total,
            "original_store_sum": self.original_store_sum,
            "result": self.result,
        }


@dataclass(frozen=True)
class StoreDailyRow:
    date: str
    code: str
    store_name: str
    box_sum: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "box_sum", _to_int(self.box_sum, "box_sum"))

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "code": self.code,
            "store_name": self.store_name,
            "box_sum": self.box_sum,
        }


# ── Result / manifest ────────────────────────────────────────────


@dataclass
class ConversionResult:
    """Sole output of a conversion.

    Contract invariant: either ``success`` with no ``error``, or a failure
    with a non-empty ``error`` and every collection empty.
    """

    data: list[DataRow] = field(default_factory=list)
    validation: list[ValidationRow] = field(default_factory=list)
    store_daily: list[StoreDailyRow] = field(default_factory=list)
    mapping_failures: list[str] = field(default_factory=list)
    success: bool = True
    error: str | None = None
    warnings: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.mapping_failures = _to_string_list(self.mapping_failures, "mapping_failures")
        self.warnings = _to_string_list(self.warnings, "warnings")
        if len(set(self.mapping_failures)) != len(self.mapping_failures):
            raise ValueError("mapping_failures must not repeat a store name")
        if self.success:
            if self.error is not None:
                raise ValueError("error must be None for a successful result")
            return
        if not self.error:
            raise ValueError("error must be set for a failed result")
        if self.data or self.validation or self.store_daily or self.mapping_failures:
            raise ValueError("a failed result must not carry data")

    @classmethod
    def failure(cls, message: str) -> ConversionResult:
        return cls(success=False, error=message)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": self.success,
            "data": [row.to_dict() for row in self.data],
            "validation": [row.to_dict() for row in self.validation],
            "store_daily": [row.to_dict() for row in self.store_daily],
            "mapping_failures": list(self.mapping_failures),
        }
        if self.warnings:
            payload["warnings"] = list(self.warnings)
        if self.error is not None:
            payload["error"] = self.error
        return payload


@dataclass
class RunManifest:
    """Audit-trail manifest for a single CLI run."""

    tool: str = "weekly-report-convert"
    version: str = ""
    origin_path: str = ""
    mapping_path: str = ""
    output_dir: str = ""
    created_at_utc: str = ""
    rows_out: int = 0
    mapping_failures: int = 0
    origin_sha256: str = ""
    mapping_sha256: str = ""
    status: str = "success"
    error_code: int | None = None
    error_message: str = ""

    def __post_init__(self) -> None:
        self.rows_out = _to_non_negative_int(self.rows_out, "rows_out")
        self.mapping_failures = _to_non_negative_int(self.mapping_failures, "mapping_failures")
        if self.status not in {"success", "failed"}:
            raise ValueError(f"Invalid status: {self.status!r}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "version": self.version,
            "origin_path": self.origin_path,
            "mapping_path": self.mapping_path,
            "output_dir": self.output_dir,
            "created_at_utc": self.created_at_utc,
            "rows_out": self.rows_out,
            "mapping_failures": self.mapping_failures,
            "origin_sha256": self.origin_sha256,
            "mapping_sha256": self.mapping_sha256,
            "status": self.status,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }
