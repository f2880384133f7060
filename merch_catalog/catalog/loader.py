"""
Dataset loading: fetch the source table, decode it, parse it and
normalize every row.

The raw rows and the header order are kept next to the normalized
records because the wishlist CSV export and the detail view both need
columns that ``CanonicalRecord`` does not model.
"""

from __future__ import annotations

import csv
import io
import logging
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Union

from charset_normalizer import from_bytes

from .errors import DatasetLoadError
from .normalize import RawRow, normalize_row
from .schemas import CanonicalRecord

logger = logging.getLogger(__name__)

Source = Union[str, Path]

_UTF8_BOM = b"\xef\xbb\xbf"


@dataclass
class Dataset:
    """One load cycle's worth of data. Rebuilt wholesale on every load."""

    source: str
    records: List[CanonicalRecord] = field(default_factory=list)
    raw_rows: List[RawRow] = field(default_factory=list)
    headers: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @classmethod
    def from_failure(cls, exc: DatasetLoadError) -> "Dataset":
        return cls(source=exc.source, error=str(exc))


def _is_url(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


def read_source(source: Source) -> bytes:
    """Return the raw bytes of a local file or an http(s) resource."""
    src = str(source)
    if _is_url(src):
        try:
            request = urllib.request.Request(src, headers={"Accept": "text/csv, text/plain, */*"})
            with urllib.request.urlopen(request, timeout=10) as response:
                if response.status != 200:
                    raise DatasetLoadError(src, f"HTTP status {response.status}")
                return response.read()
        except urllib.error.URLError as exc:
            raise DatasetLoadError(src, str(exc.reason)) from exc
        except ValueError as exc:
            raise DatasetLoadError(src, f"invalid URL: {exc}") from exc
        except OSError as exc:
            raise DatasetLoadError(src, str(exc)) from exc
    try:
        return Path(src).read_bytes()
    except OSError as exc:
        raise DatasetLoadError(src, exc.strerror or str(exc)) from exc


def decode_source(raw: bytes, source: str = "<memory>") -> str:
    """Decode ``raw`` using charset-normalizer's best guess.

    UTF-8 input (with or without BOM) is decoded directly so the common
    case never depends on detection heuristics.
    """
    if raw.startswith(_UTF8_BOM):
        raw = raw[len(_UTF8_BOM):]
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        pass
    match = from_bytes(raw).best()
    if match is None:
        raise DatasetLoadError(source, "could not detect text encoding")
    logger.info("Decoding %s as %s", source, match.encoding)
    return str(match)


def parse_table(text: str, source: str = "<memory>") -> Tuple[List[str], List[RawRow]]:
    """Parse delimited text with a header row into ordered raw rows.

    Header names are kept verbatim. Blank rows are skipped, short rows
    padded with empty strings and cells beyond the header dropped. When
    a header name repeats, only its first column is kept.
    """
    reader = csv.reader(io.StringIO(text, newline=""))
    try:
        table = list(reader)
    except csv.Error as exc:
        raise DatasetLoadError(source, f"malformed CSV: {exc}") from exc
    while table and not any(c.strip() for c in table[0]):
        table.pop(0)
    if not table:
        return [], []

    positions: List[Tuple[int, str]] = []
    seen = set()
    for i, name in enumerate(table[0]):
        if name in seen:
            logger.warning("Duplicate column %r in %s; keeping the first", name, source)
            continue
        seen.add(name)
        positions.append((i, name))
    headers = [name for _, name in positions]

    rows: List[RawRow] = []
    for cells in table[1:]:
        if not any(c.strip() for c in cells):
            continue
        rows.append({name: (cells[i] if i < len(cells) else "") for i, name in positions})
    return headers, rows


def build_dataset(source: str, headers: List[str], raw_rows: List[RawRow]) -> Dataset:
    records = [normalize_row(row, i) for i, row in enumerate(raw_rows)]
    return Dataset(source=source, records=records, raw_rows=raw_rows, headers=headers)


def load_dataset(source: Source) -> Dataset:
    """Fetch, decode, parse and normalize ``source``.

    Raises
    ------
    DatasetLoadError
        When the source cannot be read, decoded or parsed. No partial
        dataset is returned in that case.
    """
    src = str(source)
    text = decode_source(read_source(src), src)
    headers, raw_rows = parse_table(text, src)
    dataset = build_dataset(src, headers, raw_rows)
    logger.info(
        "Loaded %d records (%d columns) from %s", len(dataset.records), len(headers), src
    )
    return dataset
