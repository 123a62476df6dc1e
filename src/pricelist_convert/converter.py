"""Row conversion — pure functions, no side effects."""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping, Sequence
from numbers import Real
from types import MappingProxyType
from typing import Any

from pricelist_convert.models import (
    ConversionReport,
    Country,
    OutputRecord,
    ParsedItem,
    RawRow,
)

# ── Descriptor pattern ──────────────────────────────────────────

# name, first digit run, rest. The digit run is taken whole and the text
# around it is stripped later, so "Tea 120 $" -> ("Tea", "120", "$").
DESCRIPTOR_RE = re.compile(r"(.*?)\s*(\d+)\s*(.*)", re.DOTALL)

_COUNTRY_BY_CODE_POINT: Mapping[int, Country] = MappingProxyType(
    {
        165: Country.JAPAN,  # ¥
        36: Country.USA,  # $
        8364: Country.EUROPE,  # €
    }
)

DEFAULT_PREVIEW_ROWS = 5


# ── Cell coercion ────────────────────────────────────────────────


def _to_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _to_number(value: object) -> float:
    """Loose numeric coercion: empty strings are 0, missing cells and
    anything unreadable are NaN."""
    if value is None:
        return math.nan
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, Real):
        return value  # type: ignore[return-value]
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError:
            return math.nan
    return math.nan


# ── Row extractor ────────────────────────────────────────────────


def extract(row: RawRow) -> ParsedItem | None:
    """Split ``row[0]`` into name/price/unit and coerce ``row[1]`` to a number.

    Returns ``None`` when the row is too short or its descriptor holds no
    digits.
    """
    if isinstance(row, (str, bytes)):
        return None
    try:
        descriptor, quantity = row[0], row[1]
    except (TypeError, IndexError, KeyError):
        return None

    match = DESCRIPTOR_RE.match(_to_text(descriptor))
    if match is None:
        return None

    name, price, unit = match.groups()
    try:
        value = int(price)
    except ValueError:
        # digit run longer than the interpreter's int conversion limit
        return None
    return ParsedItem(
        name=name.strip(),
        price=value,
        unit=unit.strip(),
        quantity=_to_number(quantity),
    )


# ── Unit classifier ──────────────────────────────────────────────


def classify_unit(unit: str) -> Country:
    """Map the first character of *unit* to a :class:`Country`."""
    text = _to_text(unit)
    if not text:
        return Country.UNKNOWN
    return _COUNTRY_BY_CODE_POINT.get(ord(text[0]), Country.UNKNOWN)


# ── Aggregation + pipeline ───────────────────────────────────────


def aggregate(item: ParsedItem) -> str:
    return " ".join([item.name, str(item.price), classify_unit(item.unit).value])


def convert_rows(rows: Iterable[RawRow]) -> list[OutputRecord]:
    """Convert raw rows into output records, dropping unparsable rows.

    Input order is preserved; nothing is deduplicated or sorted.
    """
    records: list[OutputRecord] = []
    for row in rows:
        item = extract(row)
        if item is None:
            continue
        records.append(OutputRecord(aggregate(item)))
    return records


def convert_with_report(
    rows: Sequence[RawRow],
) -> tuple[list[OutputRecord], ConversionReport]:
    """Return ``(records, report)`` for *rows*."""
    records = convert_rows(rows)
    return records, _report(len(rows), len(records))


def summarize(rows: Sequence[RawRow]) -> ConversionReport:
    """Row counts for *rows* without building the output records."""
    return _report(len(rows), count_recognized(rows))


def _report(rows_in: int, rows_out: int) -> ConversionReport:
    return ConversionReport(
        rows_in=rows_in,
        rows_out=rows_out,
        dropped_rows=rows_in - rows_out,
    )


def count_recognized(rows: Iterable[RawRow]) -> int:
    """Number of rows :func:`extract` would accept."""
    return sum(1 for row in rows if extract(row) is not None)


def preview_rows(rows: Sequence[RawRow], limit: int = DEFAULT_PREVIEW_ROWS) -> list[Any]:
    if limit < 0:
        raise ValueError("limit must be >= 0")
    return list(rows[:limit])
