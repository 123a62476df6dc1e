"""Data models shared by the converter, exporter and batch runner."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from numbers import Integral
from typing import Any

RawRow = Sequence[Any]


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


class Country(str, Enum):
    """Origin label derived from a listing's currency symbol."""

    JAPAN = "ژاپن"
    USA = "امریکا"
    EUROPE = "اروپا"
    UNKNOWN = "Unknown"


class FileStatus(str, Enum):
    ready = "ready"
    converting = "converting"
    done = "done"
    error = "error"


@dataclass(frozen=True)
class ParsedItem:
    """One listing row split into its parts.

    ``price`` is the integer value of the first digit run in the descriptor;
    ``quantity`` is a plain numeric coercion and may be NaN.
    """

    name: str
    price: int
    unit: str
    quantity: float


@dataclass(frozen=True)
class OutputRecord:
    """A converted line.

    The field is called ``name`` but holds the whole ``"name price country"``
    line; the exporter writes it as a single unlabeled column.
    """

    name: str

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name}


@dataclass
class ConversionReport:
    """Row counts for one converted file.

    Contract invariant: ``dropped_rows == rows_in - rows_out``.
    """

    rows_in: int = 0
    rows_out: int = 0
    dropped_rows: int = 0

    def __post_init__(self) -> None:
        self.rows_in = _to_non_negative_int(self.rows_in, "rows_in")
        self.rows_out = _to_non_negative_int(self.rows_out, "rows_out")
        self.dropped_rows = _to_non_negative_int(self.dropped_rows, "dropped_rows")
        if self.rows_out > self.rows_in:
            raise ValueError("rows_out must be <= rows_in")
        if self.dropped_rows != self.rows_in - self.rows_out:
            raise ValueError("dropped_rows must equal rows_in - rows_out")

    @property
    def recognized(self) -> int:
        return self.rows_out

    def to_dict(self) -> dict[str, Any]:
        return {
            "rows_in": self.rows_in,
            "rows_out": self.rows_out,
            "dropped_rows": self.dropped_rows,
        }


@dataclass
class FileOutcome:
    """Result of converting one input file in batch mode."""

    source: str
    status: FileStatus
    output: str = ""
    report: ConversionReport = field(default_factory=ConversionReport)
    error_message: str = ""
    sha256: str = ""

    def __post_init__(self) -> None:
        self.status = FileStatus(self.status)
        if self.status not in (FileStatus.done, FileStatus.error):
            raise ValueError("status must be 'done' or 'error' for a finished file")
        if self.status is FileStatus.error and self.output:
            raise ValueError("failed files must not reference an output")

    @property
    def ok(self) -> bool:
        return self.status is FileStatus.done

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "status": self.status.value,
            "output": self.output,
            "error_message": self.error_message,
            "sha256": self.sha256,
            **self.report.to_dict(),
        }


@dataclass
class RunManifest:
    """Audit-trail manifest for a single batch run."""

    tool: str = "pricelist-convert"
    version: str = ""
    input_dir: str = ""
    output_dir: str = ""
    created_at_utc: str = ""
    bundle: str = ""
    files: list[dict[str, Any]] = field(default_factory=list)

    @property
    def files_ok(self) -> int:
        return sum(1 for f in self.files if f.get("status") == FileStatus.done.value)

    @property
    def files_failed(self) -> int:
        return len(self.files) - self.files_ok

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "version": self.version,
            "input_dir": self.input_dir,
            "output_dir": self.output_dir,
            "created_at_utc": self.created_at_utc,
            "bundle": self.bundle,
            "files_ok": self.files_ok,
            "files_failed": self.files_failed,
            "files": [dict(f) for f in self.files],
        }
