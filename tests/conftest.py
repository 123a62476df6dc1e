from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from pathlib import Path

import pytest
from openpyxl import Workbook

HEADER = ("product", "quantity")

MakeXlsx = Callable[..., Path]


@pytest.fixture
def make_xlsx(tmp_path: Path) -> MakeXlsx:
    """Write a one-sheet workbook under ``tmp_path`` and return its path."""

    def _make(
        name: str,
        rows: Iterable[Sequence[object]],
        header: Sequence[object] | None = HEADER,
    ) -> Path:
        wb = Workbook()
        ws = wb.active
        assert ws is not None
        if header is not None:
            ws.append(list(header))
        for row in rows:
            ws.append(list(row))
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        wb.save(path)
        return path

    return _make
