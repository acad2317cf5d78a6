"""CLI entry point for weekly-report-convert."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table as RichTable

from weekly_report_convert import __version__
from weekly_report_convert.io import write_json
from weekly_report_convert.models import ConversionResult, RunManifest
from weekly_report_convert.pipeline import RESULT_MATCH, RESULT_NO_ORIGINAL, convert_report
from weekly_report_convert.report import default_result_name, write_result_workbook
from weekly_report_convert.utils import sha256_bytes, utcnow_iso

app = typer.Typer(
    name="wrconvert",
    help="weekly-report-convert — Turn weekly store-block reports into normalized delivery rows.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()

EXIT_INTERNAL = 1
EXIT_FAILED = 2
EXIT_MISMATCH = 3


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {msg}")


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"weekly-report-convert v{__version__}")
        raise typer.Exit()


def _read_inputs(origin: Path, mapping: Path) -> tuple[bytes, bytes]:
    try:
        return origin.read_bytes(), mapping.read_bytes()
    except OSError as exc:
        raise ValueError(f"Cannot read input: {exc}") from exc


def _has_mismatch(result: ConversionResult) -> bool:
    return any(row.result not in (RESULT_MATCH, RESULT_NO_ORIGINAL) for row in result.validation)


def _validation_table(result: ConversionResult) -> RichTable:
    tbl = RichTable(title="Reconciliation", show_lines=True)
    tbl.add_column("Date", style="bold")
    tbl.add_column("Day")
    tbl.add_column("Extracted", justify="right")
    tbl.add_column("Sheet total", justify="right")
    tbl.add_column("Store sum", justify="right")
    tbl.add_column("Result")
    for row in result.validation:
        if row.result == RESULT_MATCH:
            verdict = f"[green]{row.result}[/green]"
        elif row.result == RESULT_NO_ORIGINAL:
            verdict = f"[yellow]{row.result}[/yellow]"
        else:
            verdict = f"[red]{row.result}[/red]"
        tbl.add_row(
            row.date,
            row.day_name,
            str(row.extracted_box),
            str(row.original_total),
            str(row.original_store_sum),
            verdict,
        )
    return tbl


def _print_notes(result: ConversionResult) -> None:
    for warning in result.warnings:
        console.print(f"  [yellow]![/yellow] {warning}")
    if result.mapping_failures:
        console.print(
            f"  [yellow]![/yellow] {len(result.mapping_failures)} unmapped store(s): "
            + ", ".join(result.mapping_failures)
        )


def _write_manifest(
    out_dir: Path,
    origin: Path,
    mapping: Path,
    created_at: str,
    *,
    result: ConversionResult | None = None,
    origin_bytes: bytes = b"",
    mapping_bytes: bytes = b"",
    status: str = "success",
    error_code: int | None = None,
    error_message: str = "",
) -> Path:
    manifest = RunManifest(
        version=__version__,
        origin_path=str(origin.resolve()),
        mapping_path=str(mapping.resolve()),
        output_dir=str(out_dir.resolve()),
        created_at_utc=created_at,
        rows_out=len(result.data) if result else 0,
        mapping_failures=len(result.mapping_failures) if result else 0,
        origin_sha256=sha256_bytes(origin_bytes) if origin_bytes else "",
        mapping_sha256=sha256_bytes(mapping_bytes) if mapping_bytes else "",
        status=status,
        error_code=error_code,
        error_message=error_message,
    )
    return write_json(out_dir / "run_manifest.json", manifest.to_dict())


# ── Callbacks ────────────────────────────────────────────────────


@app.callback()
def main(
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Emit debug logging from the conversion pipeline.",
    ),
) -> None:
    """weekly-report-convert CLI."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


# ── run command ──────────────────────────────────────────────────


@app.command()
def run(
    origin: Path = typer.Option(
        ..., "--origin", "-i",
        help="Weekly report workbook (.xlsx). Its name must carry the report dates.",
        exists=True, readable=True, dir_okay=False,
    ),
    mapping: Path = typer.Option(
        ..., "--mapping", "-m",
        help="Store mapping workbook with 코드 / 원본 사업장명 / 사업장명 columns.",
        exists=True, readable=True, dir_okay=False,
    ),
    out_dir: Path = typer.Option(
        Path("output"), "--out-dir", "-o",
        help="Output directory for result workbook + JSON + manifest.",
    ),
    strict_dates: bool = typer.Option(
        False, "--strict-dates",
        help="Fail instead of falling back to 2026-01-01 when the filename has no dates.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; still writes all artifacts.",
    ),
) -> None:
    """Convert a weekly report and write the result workbook."""
    echo = _printer(quiet)
    created_at = utcnow_iso()
    out_dir.mkdir(parents=True, exist_ok=True)

    try:
        origin_bytes, mapping_bytes = _read_inputs(origin, mapping)
    except ValueError as exc:
        manifest_path = _write_manifest(
            out_dir, origin, mapping, created_at,
            status="failed", error_code=EXIT_FAILED, error_message=str(exc),
        )
        _err(str(exc))
        console.print(f"  Manifest -> {manifest_path}")
        raise typer.Exit(code=EXIT_FAILED)

    if not quiet:
        console.print(Panel(
            f"[bold]weekly-report-convert[/bold] v{__version__}\n"
            f"Origin:  {origin}\nMapping: {mapping}\nOutput:  {out_dir}",
            title="Conversion Start", border_style="blue",
        ))

    try:
        echo("[blue]>[/blue] Converting …")
        result = convert_report(
            origin_bytes, mapping_bytes, origin.name, strict_dates=strict_dates
        )
        if not result.success:
            message = result.error or "Conversion failed"
            manifest_path = _write_manifest(
                out_dir, origin, mapping, created_at,
                result=result, origin_bytes=origin_bytes, mapping_bytes=mapping_bytes,
                status="failed", error_code=EXIT_FAILED, error_message=message,
            )
            _err(message)
            console.print(f"  Manifest -> {manifest_path}")
            raise typer.Exit(code=EXIT_FAILED)

        echo(f"  {len(result.data)} rows from {len(result.validation)} sheets")
        if not quiet:
            _print_notes(result)
            console.print(_validation_table(result))

        # ── Write artifacts ──────────────────────────────────────
        report_path = write_result_workbook(out_dir / default_result_name(origin.name), result)
        echo(f"  Workbook -> {report_path}")
        json_path = write_json(out_dir / "conversion_result.json", result.to_dict())
        echo(f"  Result   -> {json_path}")
        manifest_path = _write_manifest(
            out_dir, origin, mapping, created_at,
            result=result, origin_bytes=origin_bytes, mapping_bytes=mapping_bytes,
        )
        echo(f"  Manifest -> {manifest_path}")

        if not quiet:
            console.print(Panel(
                f"[green]Done[/green] — {len(result.data)} rows -> {report_path}",
                title="Conversion Complete", border_style="green",
            ))
    except typer.Exit:
        raise
    except Exception as exc:
        message = f"Unexpected internal error: {exc}"
        manifest_path = _write_manifest(
            out_dir, origin, mapping, created_at,
            origin_bytes=origin_bytes, mapping_bytes=mapping_bytes,
            status="failed", error_code=EXIT_INTERNAL, error_message=message,
        )
        _err(message)
        console.print(f"  Manifest -> {manifest_path}")
        raise typer.Exit(code=EXIT_INTERNAL)


# ── validate command ─────────────────────────────────────────────


@app.command()
def validate(
    origin: Path = typer.Option(
        ..., "--origin", "-i",
        help="Weekly report workbook (.xlsx).",
        exists=True, readable=True, dir_okay=False,
    ),
    mapping: Path = typer.Option(
        ..., "--mapping", "-m",
        help="Store mapping workbook.",
        exists=True, readable=True, dir_okay=False,
    ),
    strict_dates: bool = typer.Option(
        False, "--strict-dates",
        help="Fail instead of falling back to 2026-01-01 when the filename has no dates.",
    ),
    strict: bool = typer.Option(
        False, "--strict",
        help="Exit 3 when any weekday fails reconciliation.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress the reconciliation table.",
    ),
) -> None:
    """Reconcile a weekly report without writing any files.

    Exit 0 = OK, exit 2 = conversion failure, exit 3 = mismatch with --strict.
    """
    try:
        origin_bytes, mapping_bytes = _read_inputs(origin, mapping)
    except ValueError as exc:
        _err(str(exc))
        raise typer.Exit(code=EXIT_FAILED)

    try:
        result = convert_report(
            origin_bytes, mapping_bytes, origin.name, strict_dates=strict_dates
        )
    except Exception as exc:
        _err(f"Unexpected internal error: {exc}")
        raise typer.Exit(code=EXIT_INTERNAL)

    if not result.success:
        _err(result.error or "Conversion failed")
        raise typer.Exit(code=EXIT_FAILED)

    if not quiet:
        console.print(Panel(
            f"[bold]weekly-report-convert[/bold] v{__version__}  [dim]validate mode[/dim]\n"
            f"Origin: {origin}",
            title="Validate", border_style="cyan",
        ))
        _print_notes(result)
        console.print(_validation_table(result))

    if strict and _has_mismatch(result):
        _err("Reconciliation mismatch")
        raise typer.Exit(code=EXIT_MISMATCH)
