"""Shared helpers — hashing, timestamps, output naming."""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from pathlib import Path

from pricelist_convert import OUTPUT_SUFFIX


def sha256_file(path: Path) -> str:
    """Return the hex SHA-256 digest of *path*."""
    h = hashlib.sha256()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(8192), b""):
            h.update(chunk)
    return h.hexdigest()


def utcnow_iso() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def output_name(source: Path | str) -> str:
    """``prices/march.xlsx`` -> ``march.xlsx``; ``list.csv`` -> ``list.xlsx``."""
    return Path(source).stem + OUTPUT_SUFFIX
