"""Upload-and-convert session — the interactive workflow without a UI.

A :class:`ConversionSession` holds the files a user has picked, shows a
preview and the recognized-row count for each, converts them one at a time
or all together, and hands back the results individually or as one ZIP.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

from pricelist_convert.converter import (
    DEFAULT_PREVIEW_ROWS,
    convert_rows,
    count_recognized,
    preview_rows,
)
from pricelist_convert.export import bundle_bytes, records_to_bytes
from pricelist_convert.io import load_rows
from pricelist_convert.models import FileStatus
from pricelist_convert.utils import output_name

logger = logging.getLogger(__name__)

_TRANSITIONS: Mapping[FileStatus, frozenset[FileStatus]] = MappingProxyType(
    {
        FileStatus.ready: frozenset({FileStatus.converting}),
        FileStatus.converting: frozenset({FileStatus.done, FileStatus.error}),
        FileStatus.done: frozenset({FileStatus.converting}),
        FileStatus.error: frozenset({FileStatus.converting}),
    }
)


@dataclass
class SessionItem:
    """One picked file and its conversion state.

    ``rows`` is ``None`` when the file could not be read on upload; the read
    is retried when the item is converted.
    """

    key: str
    source: Path
    name: str
    rows: list[list[Any]] | None = None
    preview: list[list[Any]] = field(default_factory=list)
    recognized: int = 0
    status: FileStatus = FileStatus.ready
    result: bytes | None = None
    result_name: str | None = None
    error_message: str = ""

    @property
    def total(self) -> int:
        return len(self.rows) if self.rows is not None else 0

    def advance(self, status: FileStatus) -> None:
        if status not in _TRANSITIONS[self.status]:
            raise ValueError(
                f"Cannot move {self.name!r} from {self.status.value} to {status.value}"
            )
        self.status = status


class ConversionSession:
    def __init__(self, preview_limit: int = DEFAULT_PREVIEW_ROWS) -> None:
        self.preview_limit = preview_limit
        self._items: dict[str, SessionItem] = {}

    @property
    def items(self) -> list[SessionItem]:
        return list(self._items.values())

    def get(self, key: str) -> SessionItem:
        try:
            return self._items[key]
        except KeyError:
            raise KeyError(f"No file with key {key!r} in this session") from None

    def add(self, path: Path) -> SessionItem:
        """Pick *path*: read it, keep a preview and count recognized rows."""
        path = Path(path)
        item = SessionItem(key=uuid.uuid4().hex, source=path, name=path.stem)
        try:
            self._load(item)
        except (ValueError, OSError) as exc:
            item.error_message = str(exc)
            logger.warning("Could not read %s: %s", path.name, exc)
        self._items[item.key] = item
        return item

    def add_many(self, paths: Iterable[Path]) -> list[SessionItem]:
        return [self.add(p) for p in paths]

    def remove(self, key: str) -> None:
        self.get(key)
        del self._items[key]

    def _load(self, item: SessionItem) -> None:
        rows = load_rows(item.source)
        item.rows = rows
        item.preview = preview_rows(rows, self.preview_limit)
        item.recognized = count_recognized(rows)
        item.error_message = ""

    # ── Conversion ───────────────────────────────────────────────

    def convert(self, key: str) -> SessionItem:
        """Convert one file; failures leave it in the ``error`` state."""
        item = self.get(key)
        item.advance(FileStatus.converting)
        logger.debug("Converting %s", item.name)
        try:
            if item.rows is None:
                self._load(item)
            records = convert_rows(item.rows or [])
            payload = records_to_bytes(records)
        except (ValueError, OSError) as exc:
            item.result = None
            item.result_name = None
            item.error_message = str(exc)
            item.advance(FileStatus.error)
            logger.warning("Failed to convert %s: %s", item.name, exc)
            return item

        item.result = payload
        item.result_name = output_name(item.source)
        item.advance(FileStatus.done)
        return item

    def convert_all(self) -> list[SessionItem]:
        """Convert every file that is not already done, in pick order."""
        pending = [item for item in self.items if item.status is not FileStatus.done]
        return [self.convert(item.key) for item in pending]

    # ── Results ──────────────────────────────────────────────────

    @property
    def progress(self) -> int:
        """Share of files converted, as a whole percentage."""
        if not self._items:
            return 0
        done = sum(1 for item in self._items.values() if item.status is FileStatus.done)
        return round(done * 100 / len(self._items))

    def results(self) -> dict[str, bytes]:
        return {
            item.result_name: item.result
            for item in self._items.values()
            if item.status is FileStatus.done and item.result is not None and item.result_name
        }

    def bundle(self) -> bytes:
        """ZIP every finished result; member names are the output file names."""
        return bundle_bytes(self.results())

    def save(self, key: str, out_dir: Path) -> Path:
        item = self.get(key)
        if item.status is not FileStatus.done or item.result is None or not item.result_name:
            raise ValueError(f"{item.name!r} has not been converted")
        out_dir = Path(out_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        path = out_dir / item.result_name
        path.write_bytes(item.result)
        return path
