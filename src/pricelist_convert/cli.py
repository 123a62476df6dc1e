"""CLI entry point for pricelist-convert."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table as RichTable

from pricelist_convert import __version__
from pricelist_convert.batch import convert_directory
from pricelist_convert.converter import DEFAULT_PREVIEW_ROWS, convert_with_report
from pricelist_convert.export import write_records
from pricelist_convert.io import load_rows
from pricelist_convert.models import FileOutcome
from pricelist_convert.session import ConversionSession
from pricelist_convert.utils import output_name

app = typer.Typer(
    name="plconvert",
    help="pricelist-convert — Turn 'name price unit' rows into labelled lines.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {escape(msg)}")


def _configure_logging(verbose: bool) -> None:
    logger = logging.getLogger("pricelist_convert")
    if not verbose:
        return
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        logger.addHandler(RichHandler(console=console, show_path=False))
    logger.setLevel(logging.DEBUG)


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"pricelist-convert v{__version__}")
        raise typer.Exit()


def _outcome_line(outcome: FileOutcome) -> str:
    name = escape(Path(outcome.source).name)
    if outcome.ok:
        report = outcome.report
        return (
            f"  [green]ok[/green] {name} -> {Path(outcome.output).name} "
            f"({report.rows_out}/{report.rows_in} rows)"
        )
    return f"  [red]x[/red] {name}: {escape(outcome.error_message)}"


def _preview_table(title: str, rows: list[list[object]]) -> RichTable:
    tbl = RichTable(title=title, show_lines=True)
    width = max((len(r) for r in rows), default=0)
    for idx in range(width):
        tbl.add_column(f"Col {idx + 1}")
    for row in rows:
        tbl.add_row(*[str(v) for v in row], *([""] * (width - len(row))))
    return tbl


# ── Callbacks ────────────────────────────────────────────────────


@app.callback()
def main(
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """pricelist-convert CLI."""


# ── run command ──────────────────────────────────────────────────


@app.command()
def run(
    input_dir: Path = typer.Option(
        ..., "--input-dir", "-i",
        help="Directory whose spreadsheets are converted.",
        exists=True, file_okay=False, dir_okay=True, readable=True,
        envvar="PLCONVERT_INPUT_DIR",
    ),
    out_dir: Path = typer.Option(
        Path("after"), "--out-dir", "-o",
        help="Directory for converted workbooks + run manifest.",
        envvar="PLCONVERT_OUT_DIR",
    ),
    zip_path: Path | None = typer.Option(
        None, "--zip",
        help="Also bundle every converted workbook into this ZIP file.",
        envvar="PLCONVERT_ZIP",
    ),
    manifest: bool = typer.Option(
        True, "--manifest/--no-manifest",
        help="Write run_manifest.json into the output directory.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; still writes all outputs.",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Show debug logging.",
    ),
) -> None:
    """Convert every spreadsheet in a directory.

    Exit 0 = all files converted, exit 1 = at least one file failed.
    """
    _configure_logging(verbose)
    echo = _printer(quiet)

    if not quiet:
        console.print(Panel(
            f"[bold]pricelist-convert[/bold] v{__version__}\n"
            f"Input:  {input_dir}\nOutput: {out_dir}",
            title="Batch Start", border_style="blue",
        ))

    def _on_file(outcome: FileOutcome) -> None:
        if outcome.ok:
            echo(_outcome_line(outcome))
        else:
            console.print(_outcome_line(outcome))

    try:
        result = convert_directory(
            input_dir, out_dir, bundle=zip_path, write_manifest=manifest, on_file=_on_file,
        )
    except (ValueError, OSError) as exc:
        _err(str(exc))
        raise typer.Exit(code=1)
    except Exception as exc:
        _err(f"Unexpected internal error: {exc}")
        raise typer.Exit(code=1)

    if not result.outcomes:
        echo(f"  [yellow]![/yellow] No files found in {input_dir}")
    if result.bundle_path is not None:
        echo(f"  Bundle   -> {result.bundle_path}")
    if result.manifest_path is not None:
        echo(f"  Manifest -> {result.manifest_path}")

    converted = len(result.converted)
    failed = len(result.failed)
    if failed:
        _err(f"{failed} of {len(result.outcomes)} files failed to convert")
        raise typer.Exit(code=1)

    if not quiet:
        console.print(Panel(
            f"[green]Done[/green] — {converted} files -> {out_dir}",
            title="Batch Complete", border_style="green",
        ))


# ── convert command ──────────────────────────────────────────────


@app.command()
def convert(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Spreadsheet to convert (.xlsx, .xls or .csv).",
        exists=True, dir_okay=False, readable=True,
    ),
    out_dir: Path = typer.Option(
        Path("after"), "--out-dir", "-o",
        help="Directory for the converted workbook.",
        envvar="PLCONVERT_OUT_DIR",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output.",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Show debug logging.",
    ),
) -> None:
    """Convert a single spreadsheet."""
    _configure_logging(verbose)
    echo = _printer(quiet)

    echo("[blue]>[/blue] Loading input file …")
    try:
        rows = load_rows(input_file)
    except (FileNotFoundError, ValueError, OSError) as exc:
        _err(str(exc))
        raise typer.Exit(code=2)
    except Exception as exc:
        _err(f"Unexpected internal error: {exc}")
        raise typer.Exit(code=1)

    try:
        records, report = convert_with_report(rows)
        path = write_records(out_dir / output_name(input_file), records)
    except OSError as exc:
        _err(f"Cannot write output: {exc}")
        raise typer.Exit(code=1)
    except Exception as exc:
        _err(f"Unexpected internal error: {exc}")
        raise typer.Exit(code=1)

    echo(f"  {report.rows_out}/{report.rows_in} rows recognized")
    echo(f"  Output -> {path}")


# ── inspect command ──────────────────────────────────────────────


@app.command("inspect")
def inspect_files(
    input_files: list[Path] = typer.Argument(
        ...,
        help="Spreadsheets to preview.",
        exists=True, dir_okay=False, readable=True,
    ),
    rows: int = typer.Option(
        DEFAULT_PREVIEW_ROWS, "--rows", "-n",
        help="Number of rows to preview per file.",
        min=0,
    ),
) -> None:
    """Preview files and count the rows that will be converted."""
    session = ConversionSession(preview_limit=rows)
    items = session.add_many(input_files)

    summary = RichTable(title="Recognized Rows", show_lines=True)
    summary.add_column("File", style="bold")
    summary.add_column("Recognized")
    summary.add_column("Status")

    for item in items:
        if item.rows is None:
            summary.add_row(item.source.name, "-", f"[red]{escape(item.error_message)}[/red]")
            continue
        if rows:
            console.print(_preview_table(item.source.name, item.preview))
        summary.add_row(item.source.name, f"{item.recognized}/{item.total}", item.status.value)

    console.print(summary)
    if any(item.rows is None for item in items):
        raise typer.Exit(code=1)
