"""I/O helpers — load input spreadsheets as raw rows, write JSON artifacts."""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Literal

import pandas as pd

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = (".xlsx", ".xlsm", ".xltx", ".xltm")
SUPPORTED_SUFFIXES = (*EXCEL_SUFFIXES, ".xls", ".csv")

# ── Loading ──────────────────────────────────────────────────────


def _read_csv(path: Path, delimiter: str | None) -> pd.DataFrame:
    last_exc: Exception | None = None
    sep = delimiter if delimiter else None
    engine: Literal["c", "python"] = "c" if delimiter else "python"
    for encoding in ("utf-8-sig", "utf-8", "latin-1"):
        try:
            return pd.read_csv(
                path,
                dtype="string",
                sep=sep,
                engine=engine,
                encoding=encoding,
                encoding_errors="strict",
                skip_blank_lines=True,
            )
        except pd.errors.EmptyDataError:
            return pd.DataFrame()
        except (UnicodeDecodeError, pd.errors.ParserError) as exc:
            last_exc = exc
    raise ValueError(f"Could not read CSV {path} (decode or parse failed)") from last_exc


def _read_first_sheet(path: Path, engine: str) -> pd.DataFrame:
    try:
        with pd.ExcelFile(path, engine=engine) as book:
            if not book.sheet_names:
                logger.debug("%s has no sheets", path)
                return pd.DataFrame()
            return book.parse(book.sheet_names[0], header=0, dtype=object)
    except ImportError:
        raise
    except Exception as exc:
        # zipfile, openpyxl and xlrd each raise their own corrupt-file errors
        raise ValueError(
            f"Cannot read spreadsheet {path} (is it corrupted or wrong format?): {exc}"
        ) from exc


def load_table(path: Path, delimiter: str | None = None) -> pd.DataFrame:
    """Load the first sheet of a CSV or Excel file as a raw DataFrame.

    The first row is treated as the header row.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    ValueError
        If *path* is not a file, the extension is not supported, or the
        file cannot be decoded/parsed.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    if not path.is_file():
        raise ValueError(f"Input path is not a file: {path}")

    suffix = path.suffix.lower()
    if suffix == ".csv":
        return _read_csv(path, delimiter)

    if suffix in EXCEL_SUFFIXES:
        return _read_first_sheet(path, "openpyxl")

    if suffix == ".xls":
        try:
            return _read_first_sheet(path, "xlrd")
        except ImportError as exc:
            raise ValueError(
                "Unsupported .xls input unless 'xlrd' is installed. "
                "Either convert to .xlsx or add dependency: pip install xlrd"
            ) from exc

    raise ValueError(
        f"Unsupported file type: {suffix!r}. Use one of {', '.join(SUPPORTED_SUFFIXES)}"
    )


def _is_blank(value: Any) -> bool:
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def frame_to_rows(df: pd.DataFrame) -> list[list[Any]]:
    """Flatten *df* into rows of their non-empty cell values, in column order.

    Rows without any value are skipped.
    """
    rows: list[list[Any]] = []
    for values in df.itertuples(index=False, name=None):
        row = [v for v in values if not _is_blank(v)]
        if row:
            rows.append(row)
    return rows


def load_rows(path: Path, delimiter: str | None = None) -> list[list[Any]]:
    """Read *path* and return its data rows as raw value lists."""
    df = load_table(path, delimiter=delimiter)
    rows = frame_to_rows(df)
    logger.debug("Loaded %d rows from %s", len(rows), path)
    return rows


# ── Writing ──────────────────────────────────────────────────────


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    item = getattr(obj, "item", None)
    if callable(item):
        converted = item()
        if isinstance(converted, (str, int, float, bool)) or converted is None:
            return converted
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def write_json(path: Path, data: Any) -> Path:
    """Write *data* as pretty-printed JSON to *path* (atomic + deterministic)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
        default=_json_default,
    ) + "\n"
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(payload, encoding="utf-8")
    tmp_path.replace(path)
    return path
