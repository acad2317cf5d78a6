"""CLI integration tests for weekly-report-convert."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from openpyxl import load_workbook
from typer.testing import CliRunner

import weekly_report_convert.cli as cli_mod
from weekly_report_convert import __version__
from weekly_report_convert.cli import app

runner = CliRunner()


def _write(path: Path, data: bytes) -> Path:
    path.write_bytes(data)
    return path


@pytest.fixture
def inputs(
    tmp_path: Path, scenario_origin: bytes, scenario_mapping: bytes, scenario_filename: str
) -> tuple[Path, Path]:
    origin = _write(tmp_path / scenario_filename, scenario_origin)
    mapping = _write(tmp_path / "mapping.xlsx", scenario_mapping)
    return origin, mapping


@pytest.fixture
def mismatch_origin(  # type: ignore[no-untyped-def]
    tmp_path: Path, make_xlsx, scenario_cells: dict[tuple[int, int], Any], scenario_filename: str
) -> Path:
    cells = dict(scenario_cells)
    cells[(40, 1)] = "계"
    cells[(40, 5)] = 20
    path = tmp_path / "mismatch" / scenario_filename
    path.parent.mkdir()
    return _write(path, make_xlsx({"월": cells}))


def test_run_writes_all_artifacts(tmp_path: Path, inputs: tuple[Path, Path]) -> None:
    origin, mapping = inputs
    out_dir = tmp_path / "out"

    result = runner.invoke(
        app,
        ["run", "--origin", str(origin), "--mapping", str(mapping), "--out-dir", str(out_dir), "--quiet"],
    )

    assert result.exit_code == 0
    workbook = out_dir / f"{origin.stem}_result.xlsx"
    assert workbook.exists()
    assert load_workbook(workbook).sheetnames == ["데이터", "검증", "매장별 상세"]

    payload = json.loads((out_dir / "conversion_result.json").read_text(encoding="utf-8"))
    assert payload["success"] is True
    assert [row["box_qty"] for row in payload["data"]] == [10, 5]
    assert "error" not in payload

    manifest = json.loads((out_dir / "run_manifest.json").read_text(encoding="utf-8"))
    assert manifest["tool"] == "weekly-report-convert"
    assert manifest["status"] == "success"
    assert manifest["rows_out"] == 2
    assert manifest["mapping_failures"] == 0
    assert len(manifest["origin_sha256"]) == 64
    assert manifest["error_code"] is None


def test_run_unreadable_mapping_exits_2_with_failed_manifest(
    tmp_path: Path, inputs: tuple[Path, Path]
) -> None:
    origin, _ = inputs
    bad_mapping = _write(tmp_path / "bad.xlsx", b"not a workbook")
    out_dir = tmp_path / "out_fail"

    result = runner.invoke(
        app,
        ["run", "--origin", str(origin), "--mapping", str(bad_mapping), "--out-dir", str(out_dir), "--quiet"],
    )

    assert result.exit_code == 2
    assert "매핑 파일 열기 실패" in result.stdout
    manifest = json.loads((out_dir / "run_manifest.json").read_text(encoding="utf-8"))
    assert manifest["status"] == "failed"
    assert manifest["error_code"] == 2
    assert manifest["error_message"].startswith("매핑 파일 열기 실패")
    assert not (out_dir / "conversion_result.json").exists()
    assert not list(out_dir.glob("*_result.xlsx"))


def test_run_strict_dates_rejects_undated_filename(
    tmp_path: Path, scenario_origin: bytes, scenario_mapping: bytes
) -> None:
    origin = _write(tmp_path / "weekly.xlsx", scenario_origin)
    mapping = _write(tmp_path / "mapping.xlsx", scenario_mapping)
    out_dir = tmp_path / "out"

    lenient = runner.invoke(
        app,
        ["run", "-i", str(origin), "-m", str(mapping), "-o", str(out_dir), "--quiet"],
    )
    strict = runner.invoke(
        app,
        ["run", "-i", str(origin), "-m", str(mapping), "-o", str(out_dir), "--strict-dates", "--quiet"],
    )

    assert lenient.exit_code == 0
    assert strict.exit_code == 2
    assert "파일명 날짜 해석 실패" in strict.stdout


def test_run_internal_error_exits_1(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, inputs: tuple[Path, Path]
) -> None:
    origin, mapping = inputs
    out_dir = tmp_path / "out"

    def _boom(*_args: object, **_kwargs: object) -> None:
        raise RuntimeError("boom")

    monkeypatch.setattr(cli_mod, "convert_report", _boom)

    result = runner.invoke(
        app,
        ["run", "--origin", str(origin), "--mapping", str(mapping), "--out-dir", str(out_dir), "--quiet"],
    )

    assert result.exit_code == 1
    manifest = json.loads((out_dir / "run_manifest.json").read_text(encoding="utf-8"))
    assert manifest["status"] == "failed"
    assert manifest["error_code"] == 1
    assert "boom" in manifest["error_message"]


def test_run_nonquiet_shows_panels_and_table(tmp_path: Path, inputs: tuple[Path, Path]) -> None:
    origin, mapping = inputs

    result = runner.invoke(
        app,
        ["run", "--origin", str(origin), "--mapping", str(mapping), "--out-dir", str(tmp_path / "out")],
    )

    assert result.exit_code == 0
    assert "Conversion Start" in result.stdout
    assert "Reconciliation" in result.stdout
    assert "Conversion Complete" in result.stdout


def test_validate_writes_nothing(tmp_path: Path, inputs: tuple[Path, Path]) -> None:
    origin, mapping = inputs
    before = sorted(p.name for p in tmp_path.iterdir())

    result = runner.invoke(app, ["validate", "--origin", str(origin), "--mapping", str(mapping)])

    assert result.exit_code == 0
    assert "Validate" in result.stdout
    assert sorted(p.name for p in tmp_path.iterdir()) == before


def test_validate_strict_mismatch_exits_3(
    tmp_path: Path, mismatch_origin: Path, scenario_mapping: bytes
) -> None:
    mapping = _write(tmp_path / "mapping.xlsx", scenario_mapping)

    lenient = runner.invoke(
        app, ["validate", "--origin", str(mismatch_origin), "--mapping", str(mapping), "--quiet"]
    )
    strict = runner.invoke(
        app,
        ["validate", "--origin", str(mismatch_origin), "--mapping", str(mapping), "--strict", "--quiet"],
    )

    assert lenient.exit_code == 0
    assert strict.exit_code == 3
    assert "mismatch" in strict.stdout


def test_validate_failure_exits_2(tmp_path: Path, inputs: tuple[Path, Path]) -> None:
    _, mapping = inputs
    bad_origin = _write(tmp_path / "broken(1.5~1.9) 2026년 1월.xlsx", b"garbage")

    result = runner.invoke(app, ["validate", "--origin", str(bad_origin), "--mapping", str(mapping)])

    assert result.exit_code == 2
    assert "원본 파일 열기 실패" in result.stdout


def test_missing_origin_is_rejected_by_option_parsing(tmp_path: Path, inputs: tuple[Path, Path]) -> None:
    _, mapping = inputs

    result = runner.invoke(
        app, ["run", "--origin", str(tmp_path / "nope.xlsx"), "--mapping", str(mapping)]
    )

    assert result.exit_code == 2
    assert not (tmp_path / "nope.xlsx").exists()


def test_version_flag_prints_and_exits() -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert "weekly-report-convert" in result.stdout
    assert f"v{__version__}" in result.stdout
