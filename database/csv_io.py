# database/csv_io.py
"""
Low level CSV helpers.

Every table is a ``;``-delimited UTF-8 file with a BOM (so that Excel shows
Cyrillic text correctly), CRLF line endings and a header row. Rows travel
through the application as plain ``dict[str, str]``; missing values are
always ``""``.
"""
from __future__ import annotations

import io
import logging
import os
import tempfile
import warnings
from typing import Dict, Iterable, List, Mapping, Optional

import pandas as pd

logger = logging.getLogger(__name__)

DELIMITER = ";"
RECORD_DELIMITER = "\r\n"
ENCODING = "utf-8-sig"

Row = Dict[str, str]


def _as_text(value) -> str:
    if value is None:
        return ""
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    return str(value)


def normalize_row(columns: Iterable[str], row: Optional[Mapping]) -> Row:
    row = row or {}
    return {column: _as_text(row.get(column)) for column in columns}


def normalize_rows(columns: Iterable[str], rows: Iterable[Mapping]) -> List[Row]:
    columns = list(columns)
    return [normalize_row(columns, row) for row in rows]


def merge_row(columns: Iterable[str], current: Mapping, updates: Mapping) -> Row:
    """Apply ``updates`` on top of ``current``; only known columns are taken."""
    columns = list(columns)
    merged = dict(current)
    for column in columns:
        if column in updates:
            merged[column] = _as_text(updates[column])
    return normalize_row(columns, merged)


# ---------- parsing ----------
def _frame_from_buffer(buffer: bytes) -> pd.DataFrame:
    text = buffer.decode(ENCODING)
    if not text.strip():
        return pd.DataFrame()

    # index_col=False: rows with surplus cells keep only the cells that have a header
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", pd.errors.ParserWarning)
        frame = pd.read_csv(
            io.StringIO(text),
            sep=DELIMITER,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            engine="python",
            index_col=False,
        )
    frame.columns = [str(c).strip() for c in frame.columns]
    if frame.empty:
        return frame
    return frame.fillna("").apply(lambda col: col.astype(str).str.strip())


def parse_csv_bytes(buffer: bytes) -> List[Row]:
    """Parse raw CSV content into rows keyed by the file's own header."""
    frame = _frame_from_buffer(buffer)
    if frame.empty:
        return []
    return frame.to_dict(orient="records")


def to_csv_bytes(columns: Iterable[str], rows: Iterable[Mapping], header: Optional[List[str]] = None) -> bytes:
    columns = list(columns)
    frame = pd.DataFrame(normalize_rows(columns, rows), columns=columns)
    if header is not None:
        frame.columns = header
    text = frame.to_csv(sep=DELIMITER, index=False, lineterminator=RECORD_DELIMITER)
    return text.encode(ENCODING)


# ---------- files ----------
def ensure_csv_file(path: str, columns: Iterable[str]) -> None:
    if os.path.exists(path):
        return
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "wb") as fh:
        fh.write((DELIMITER.join(columns) + RECORD_DELIMITER).encode(ENCODING))


def read_csv(path: str, columns: Iterable[str]) -> List[Row]:
    columns = list(columns)
    ensure_csv_file(path, columns)
    with open(path, "rb") as fh:
        content = fh.read()
    return normalize_rows(columns, parse_csv_bytes(content))


def write_csv(path: str, columns: Iterable[str], rows: Iterable[Mapping]) -> None:
    """Rewrite the whole file; the new content replaces the old one atomically."""
    payload = to_csv_bytes(columns, rows)
    directory = os.path.dirname(path) or "."
    os.makedirs(directory, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(prefix=".tmp_", suffix=".csv", dir=directory)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(payload)
        os.replace(tmp_path, path)
    except Exception:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise
    logger.debug("Wrote %s", path)


def read_header(path: str) -> List[str]:
    if not os.path.exists(path):
        return []
    with open(path, "rb") as fh:
        text = fh.read().decode(ENCODING)
    if not text.strip():
        return []
    frame = pd.read_csv(io.StringIO(text), sep=DELIMITER, dtype=str, nrows=0)
    return [str(c).strip() for c in frame.columns]
