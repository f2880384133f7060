"""
The wishlist ("wanted list"): a persisted, ordered set of record ids.

Every mutation writes the full set back to storage before returning,
so a read immediately after a write always sees the new state. A lock
held across each mutation and its write keeps concurrent requests from
persisting a stale snapshot over a newer one. When
the write fails the in-memory change is kept and ``StorageError``
propagates to the caller.
"""

from __future__ import annotations

import csv
import io
import json
import logging
import threading
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence

from .errors import StorageError, WishlistImportError
from .normalize import RawRow
from .storage import KeyValueStorage

logger = logging.getLogger(__name__)

IdResolver = Callable[[Mapping[str, str], int], str]

CSV_ENCODING = "utf-8-sig"
FALLBACK_ID_COLUMN = "id"


def parse_id_list(text: str) -> List[str]:
    """Parse a JSON array of string ids.

    Raises
    ------
    WishlistImportError
        When ``text`` is not JSON, not an array, or holds non-strings.
    """
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as exc:
        raise WishlistImportError(f"invalid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise WishlistImportError("expected a JSON array of ids")
    if not all(isinstance(item, str) for item in data):
        raise WishlistImportError("every wishlist entry must be a string")
    return data


class WishlistStore:
    def __init__(self, storage: KeyValueStorage, key: str = "wanted") -> None:
        self.storage = storage
        self.key = key
        # dict keeps insertion order, giving a stable iteration order.
        self._ids: Dict[str, None] = {}
        self._lock = threading.Lock()
        self._restore()

    def _restore(self) -> None:
        try:
            text = self.storage.get_item(self.key)
        except StorageError as exc:
            logger.warning("Wishlist storage unreadable, starting empty: %s", exc)
            return
        if text is None:
            return
        try:
            ids = parse_id_list(text)
        except WishlistImportError as exc:
            logger.warning("Ignoring malformed persisted wishlist %r: %s", self.key, exc)
            return
        self._ids = dict.fromkeys(ids)

    def _persist(self) -> None:
        # caller holds self._lock
        self.storage.set_item(self.key, json.dumps(list(self._ids), ensure_ascii=False))

    # ------------------------------------------------------------------
    # Set operations
    # ------------------------------------------------------------------

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._ids

    def __iter__(self) -> Iterator[str]:
        return iter(self.ids())

    def __len__(self) -> int:
        return len(self._ids)

    def contains(self, record_id: str) -> bool:
        return record_id in self._ids

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._ids)

    def add(self, record_id: str) -> None:
        with self._lock:
            self._ids.setdefault(record_id, None)
            self._persist()

    def remove(self, record_id: str) -> None:
        with self._lock:
            self._ids.pop(record_id, None)
            self._persist()

    def toggle(self, record_id: str) -> bool:
        """Flip membership of ``record_id`` and return the new state."""
        with self._lock:
            wanted = record_id not in self._ids
            if wanted:
                self._ids[record_id] = None
            else:
                del self._ids[record_id]
            self._persist()
        return wanted

    # ------------------------------------------------------------------
    # JSON import/export
    # ------------------------------------------------------------------

    def export_json(self) -> str:
        return json.dumps(self.ids(), ensure_ascii=False, indent=2)

    def import_json(self, text: str) -> int:
        """Replace the wishlist with the ids in ``text``.

        Malformed input raises ``WishlistImportError`` and leaves the
        current wishlist untouched.
        """
        ids = parse_id_list(text)
        with self._lock:
            self._ids = dict.fromkeys(ids)
            self._persist()
            count = len(self._ids)
        logger.info("Imported wishlist with %d ids", count)
        return count

    # ------------------------------------------------------------------
    # CSV export
    # ------------------------------------------------------------------

    def export_csv(
        self,
        raw_rows: Sequence[RawRow],
        headers: Sequence[str],
        id_resolver: IdResolver,
    ) -> Optional[bytes]:
        """Export the source rows of every wished id as UTF-8 CSV with BOM.

        All raw rows sharing an id are emitted, in wishlist order. Ids
        with no source row become a row holding only the id. Returns
        ``None`` when the wishlist is empty.
        """
        wished = self.ids()
        if not wished:
            return None

        by_id: Dict[str, List[RawRow]] = {}
        for index, row in enumerate(raw_rows):
            by_id.setdefault(id_resolver(row, index), []).append(row)

        out_rows: List[Mapping[str, str]] = []
        unmatched = False
        for record_id in wished:
            matched = by_id.get(record_id)
            if matched:
                out_rows.extend(matched)
            else:
                unmatched = True
                out_rows.append({FALLBACK_ID_COLUMN: record_id})

        fieldnames = list(headers)
        if unmatched and FALLBACK_ID_COLUMN not in fieldnames:
            fieldnames.append(FALLBACK_ID_COLUMN)
        return _write_csv(fieldnames, out_rows)


def _write_csv(fieldnames: List[str], rows: Iterable[Mapping[str, str]]) -> bytes:
    buf = io.StringIO(newline="")
    writer = csv.DictWriter(buf, fieldnames=fieldnames, restval="", extrasaction="ignore")
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
    return buf.getvalue().encode(CSV_ENCODING)
