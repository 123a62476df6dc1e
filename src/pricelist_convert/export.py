"""Excel export + ZIP bundling for converted records."""

from __future__ import annotations

import io
import zipfile
from collections.abc import Iterable, Mapping
from pathlib import Path

from openpyxl import Workbook
from openpyxl.cell.cell import TYPE_STRING
from openpyxl.styles import Alignment
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from pricelist_convert import OUTPUT_SHEET_NAME
from pricelist_convert.models import OutputRecord

# Fixed member timestamp so the same inputs always give the same archive bytes.
FIXED_ZIP_DT = (2020, 1, 1, 0, 0, 0)

_AUTO_WIDTH_SAMPLE_ROWS = 300
_MAX_COLUMN_WIDTH = 60


# ── Helpers ──────────────────────────────────────────────────────


def _auto_width(ws: Worksheet) -> None:
    max_row = min(ws.max_row, _AUTO_WIDTH_SAMPLE_ROWS)
    for c_idx in range(1, ws.max_column + 1):
        letter = get_column_letter(c_idx)
        width = 0
        for row in ws.iter_rows(min_row=1, max_row=max_row, min_col=c_idx, max_col=c_idx):
            cell = row[0]
            width = max(width, len(str(cell.value or "")))
        width += 4
        ws.column_dimensions[letter].width = min(width, _MAX_COLUMN_WIDTH)


def _write_text_cell(ws: Worksheet, row: int, value: str) -> None:
    cell = ws.cell(row=row, column=1, value=value)
    # openpyxl turns "=..." into a formula; lines are always plain text.
    cell.data_type = TYPE_STRING
    cell.alignment = Alignment(horizontal="right" if _is_rtl(value) else "left")


def _is_rtl(text: str) -> bool:
    return any("\u0600" <= ch <= "\u06ff" for ch in text)


# ── Public API ───────────────────────────────────────────────────


def records_to_workbook(records: Iterable[OutputRecord]) -> Workbook:
    """Build a one-sheet workbook: one unlabeled column, one line per record."""
    wb = Workbook()
    ws = wb.active
    if ws is None:
        ws = wb.create_sheet()
    ws.title = OUTPUT_SHEET_NAME

    written = 0
    for r_idx, record in enumerate(records, 1):
        _write_text_cell(ws, r_idx, record.name)
        written = r_idx
    if written:
        _auto_width(ws)
    return wb


def workbook_bytes(wb: Workbook) -> bytes:
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def records_to_bytes(records: Iterable[OutputRecord]) -> bytes:
    return workbook_bytes(records_to_workbook(records))


def write_records(path: Path, records: Iterable[OutputRecord]) -> Path:
    """Write *records* to the ``.xlsx`` at *path* (atomic) and return the path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    wb = records_to_workbook(records)
    tmp_path = path.with_name(f"{path.stem}.tmp{path.suffix}")
    wb.save(tmp_path)
    tmp_path.replace(path)
    return path


def bundle_bytes(members: Mapping[str, bytes]) -> bytes:
    """Zip *members* (``{archive_name: data}``) in name order."""
    if not members:
        raise ValueError("Nothing to bundle: no converted files")
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, mode="w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name in sorted(members):
            info = zipfile.ZipInfo(filename=name, date_time=FIXED_ZIP_DT)
            info.compress_type = zipfile.ZIP_DEFLATED
            info.external_attr = 0o644 << 16
            zf.writestr(info, members[name])
    return buffer.getvalue()


def write_bundle(path: Path, members: Mapping[str, bytes]) -> Path:
    """Write a ZIP bundle of *members* to *path* (atomic) and return the path."""
    path = Path(path)
    payload = bundle_bytes(members)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_bytes(payload)
    tmp_path.replace(path)
    return path
