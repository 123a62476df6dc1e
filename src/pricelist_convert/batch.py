"""Headless batch mode — convert every spreadsheet in a directory."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from pricelist_convert import __version__
from pricelist_convert.converter import convert_with_report
from pricelist_convert.export import write_bundle, write_records
from pricelist_convert.io import load_rows, write_json
from pricelist_convert.models import FileOutcome, FileStatus, RunManifest
from pricelist_convert.utils import output_name, sha256_file, utcnow_iso

logger = logging.getLogger(__name__)

MANIFEST_NAME = "run_manifest.json"


@dataclass
class BatchResult:
    outcomes: list[FileOutcome] = field(default_factory=list)
    manifest_path: Path | None = None
    bundle_path: Path | None = None

    @property
    def converted(self) -> list[FileOutcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def failed(self) -> list[FileOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def ok(self) -> bool:
        return not self.failed


def list_input_files(input_dir: Path) -> list[Path]:
    """Regular, non-hidden files directly under *input_dir*, sorted by name."""
    input_dir = Path(input_dir)
    if not input_dir.is_dir():
        raise NotADirectoryError(f"Input directory not found: {input_dir}")
    return sorted(
        p for p in input_dir.iterdir() if p.is_file() and not p.name.startswith(".")
    )


def convert_file(source: Path, output_dir: Path) -> FileOutcome:
    """Convert *source* into ``output_dir/<stem>.xlsx``.

    Read and write failures are returned as an ``error`` outcome rather than
    raised, so callers can carry on with the next file.
    """
    source = Path(source)
    target = Path(output_dir) / output_name(source)
    try:
        rows = load_rows(source)
        digest = sha256_file(source)
        records, report = convert_with_report(rows)
        write_records(target, records)
    except (ValueError, OSError) as exc:
        logger.warning("Could not convert %s: %s", source.name, exc)
        return FileOutcome(
            source=str(source),
            status=FileStatus.error,
            error_message=str(exc),
        )

    logger.debug(
        "%s: %d/%d rows recognized -> %s",
        source.name, report.rows_out, report.rows_in, target,
    )
    return FileOutcome(
        source=str(source),
        status=FileStatus.done,
        output=str(target),
        report=report,
        sha256=digest,
    )


def convert_directory(
    input_dir: Path,
    output_dir: Path,
    *,
    bundle: Path | None = None,
    write_manifest: bool = True,
    on_file: Callable[[FileOutcome], None] | None = None,
) -> BatchResult:
    """Convert every file in *input_dir* into *output_dir*.

    Each file is converted on its own; a failure is recorded in its outcome
    and never stops the rest of the run. When *bundle* is given, the
    converted workbooks are also zipped there under their output names.
    """
    input_dir = Path(input_dir)
    output_dir = Path(output_dir)
    sources = list_input_files(input_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    created_at = utcnow_iso()

    result = BatchResult()
    claimed: dict[str, Path] = {}
    for source in sources:
        name = output_name(source)
        if name in claimed:
            outcome = FileOutcome(
                source=str(source),
                status=FileStatus.error,
                error_message=f"Output name {name!r} already used by {claimed[name].name}",
            )
            logger.warning("Skipping %s: %s", source.name, outcome.error_message)
        else:
            outcome = convert_file(source, output_dir)
            if outcome.ok:
                claimed[name] = source
        result.outcomes.append(outcome)
        if on_file is not None:
            on_file(outcome)

    if bundle is not None:
        members = {Path(o.output).name: Path(o.output).read_bytes() for o in result.converted}
        if members:
            result.bundle_path = write_bundle(bundle, members)
        else:
            logger.warning("No converted files; bundle %s not written", bundle)

    if write_manifest:
        manifest = RunManifest(
            version=__version__,
            input_dir=str(input_dir.resolve()),
            output_dir=str(output_dir.resolve()),
            created_at_utc=created_at,
            bundle=str(result.bundle_path.resolve()) if result.bundle_path else "",
            files=[o.to_dict() for o in result.outcomes],
        )
        result.manifest_path = write_json(output_dir / MANIFEST_NAME, manifest.to_dict())

    return result
