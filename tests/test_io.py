from __future__ import annotations

import math
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import pandas as pd
import pytest
from openpyxl import Workbook

from pricelist_convert.io import frame_to_rows, load_rows, load_table, write_json

MakeXlsx = Callable[..., Path]


def test_load_rows_skips_header_and_keeps_cell_types(make_xlsx: MakeXlsx) -> None:
    path = make_xlsx("prices.xlsx", [["product 123 $", 10], ["widget 99 €", 2]])

    rows = load_rows(path)

    assert rows == [["product 123 $", 10], ["widget 99 €", 2]]


def test_load_rows_drops_empty_cells_and_blank_rows(make_xlsx: MakeXlsx) -> None:
    path = make_xlsx(
        "gaps.xlsx",
        [["tea 4 $", None, 3], [None, None, None], [None, "lonely 1 €", 1]],
        header=("a", "b", "c"),
    )

    rows = load_rows(path)

    assert rows == [["tea 4 $", 3], ["lonely 1 €", 1]]


def test_load_rows_reads_first_sheet_only(tmp_path: Path) -> None:
    wb = Workbook()
    first = wb.active
    assert first is not None
    first.append(["product", "quantity"])
    first.append(["first 1 $", 1])
    second = wb.create_sheet("Other")
    second.append(["product", "quantity"])
    second.append(["second 2 €", 2])
    path = tmp_path / "two_sheets.xlsx"
    wb.save(path)

    assert load_rows(path) == [["first 1 $", 1]]


def test_load_rows_header_only_sheet_is_empty(make_xlsx: MakeXlsx) -> None:
    path = make_xlsx("header_only.xlsx", [])

    assert load_rows(path) == []


def test_load_rows_blank_workbook_is_empty(make_xlsx: MakeXlsx) -> None:
    path = make_xlsx("blank.xlsx", [], header=None)

    assert load_rows(path) == []


def test_load_rows_csv(tmp_path: Path) -> None:
    path = tmp_path / "prices.csv"
    path.write_text("product,quantity\nwidget 99 €,2\n", encoding="utf-8")

    assert load_rows(path) == [["widget 99 €", "2"]]


def test_load_rows_empty_csv(tmp_path: Path) -> None:
    path = tmp_path / "empty.csv"
    path.write_text("", encoding="utf-8")

    assert load_rows(path) == []


def test_load_table_csv_latin1_fallback_reads_non_utf_chars(tmp_path: Path) -> None:
    csv_path = tmp_path / "latin1.csv"
    csv_path.write_bytes("product,quantity\nCafé 3 $,1\n".encode("latin-1"))

    result = load_table(csv_path)

    assert result.iloc[0]["product"] == "Café 3 $"


def test_load_table_csv_wraps_parser_error(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    csv_path = tmp_path / "broken.csv"
    csv_path.write_text('not,a,valid"\n', encoding="utf-8")

    def _fake_read_csv(path: Path, **kwargs: object) -> pd.DataFrame:
        del path, kwargs
        raise pd.errors.ParserError("malformed csv")

    monkeypatch.setattr(pd, "read_csv", _fake_read_csv)

    with pytest.raises(ValueError, match="decode or parse failed"):
        load_table(csv_path)


def test_load_table_corrupt_xlsx_raises_value_error(tmp_path: Path) -> None:
    path = tmp_path / "corrupt.xlsx"
    path.write_bytes(b"this is not a zip archive")

    with pytest.raises(ValueError, match="corrupt"):
        load_table(path)


def test_load_table_xls_missing_xlrd_raises_friendly_error(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    xls_path = tmp_path / "legacy.xls"
    xls_path.write_bytes(b"x")

    def _fake_excel_file(path: Path, **kwargs: object) -> pd.ExcelFile:
        del path, kwargs
        raise ImportError("No module named xlrd")

    monkeypatch.setattr(pd, "ExcelFile", _fake_excel_file)

    with pytest.raises(ValueError, match="xlrd"):
        load_table(xls_path)


def test_load_table_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="not found"):
        load_table(tmp_path / "nope.xlsx")


def test_load_table_rejects_directory_path(tmp_path: Path) -> None:
    input_dir = tmp_path / "fake.xlsx"
    input_dir.mkdir()

    with pytest.raises(ValueError, match="not a file"):
        load_table(input_dir)


def test_load_table_rejects_unknown_suffix(tmp_path: Path) -> None:
    path = tmp_path / "notes.txt"
    path.write_text("tea 1 $", encoding="utf-8")

    with pytest.raises(ValueError, match="Unsupported file type"):
        load_table(path)


def test_frame_to_rows_treats_nan_and_na_as_blank() -> None:
    df = pd.DataFrame(
        {
            "a": ["tea 1 $", pd.NA, math.nan],
            "b": [2, 3, None],
        },
        dtype=object,
    )

    assert frame_to_rows(df) == [["tea 1 $", 2], [3]]


def test_write_json_is_atomic_and_deterministic(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "artifact.json"
    payload = {
        "b": 1,
        "a": datetime(2024, 1, 2, 3, 4, 5),
        "path": Path("foo/bar"),
        "label": "امریکا",
    }

    out = write_json(path, payload)

    assert out == path
    text = path.read_text(encoding="utf-8")
    assert text.endswith("\n")
    assert '"a": "2024-01-02T03:04:05"' in text
    assert '"label": "امریکا"' in text
    assert text.index('"a"') < text.index('"b"') < text.index('"path"')
    assert not path.with_suffix(path.suffix + ".tmp").exists()


def test_write_json_raises_on_unknown_type(tmp_path: Path) -> None:
    class Unknown:
        pass

    with pytest.raises(TypeError, match="not JSON serializable"):
        write_json(tmp_path / "artifact.json", {"x": Unknown()})


def test_load_table_corrupt_xls_raises_value_error(tmp_path: Path) -> None:
    path = tmp_path / "legacy.xls"
    path.write_bytes(b"garbage, not a BIFF workbook")

    with pytest.raises(ValueError, match="xls|corrupt"):
        load_table(path)


def test_load_table_wraps_engine_specific_errors(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    path = tmp_path / "legacy.xls"
    path.write_bytes(b"x")

    class EngineError(Exception):
        pass

    def _fake_excel_file(path: Path, **kwargs: object) -> pd.ExcelFile:
        del path, kwargs
        raise EngineError("Unsupported format, or corrupt file: Expected BOF record")

    monkeypatch.setattr(pd, "ExcelFile", _fake_excel_file)

    with pytest.raises(ValueError, match="corrupted or wrong format"):
        load_table(path)


def test_load_table_unknown_suffix_lists_supported_types(tmp_path: Path) -> None:
    path = tmp_path / "notes.ods"
    path.write_bytes(b"x")

    with pytest.raises(ValueError, match=r"\.xlsm.*\.xls.*\.csv"):
        load_table(path)
