"""
Query engine: filter, free-text search, sort and paginate records.

Everything here is a pure function over a list of ``CanonicalRecord``;
the caller owns the dataset and passes it in.
"""

from __future__ import annotations

import logging
import math
import re
import unicodedata
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from .schemas import CanonicalRecord, CatalogQuery, MatchPolicy

logger = logging.getLogger(__name__)

# Query dimension -> record attribute.
TAG_DIMENSIONS: Dict[str, str] = {
    "type": "type",
    "work": "relevant_work",
    "character": "relevant_character",
    "image": "relevant_image",
}

RECENT_SORT_KEYS = ("row_index", "recent")


@dataclass
class QueryPage:
    items: List[CanonicalRecord]
    page: int
    page_size: int
    total: int
    total_pages: int


def _norm(s: Optional[str]) -> str:
    return (s or "").strip().lower()


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------


def matches_tokens(tokens: Sequence[str], selected: Sequence[str], policy: MatchPolicy) -> bool:
    """Case-insensitive membership test of ``selected`` against ``tokens``.

    ``all`` requires every selected token, ``any`` at least one. An empty
    selection always matches.
    """
    wanted = {_norm(s) for s in selected if _norm(s)}
    if not wanted:
        return True
    have = {_norm(t) for t in tokens}
    if policy == "any":
        return not wanted.isdisjoint(have)
    return wanted <= have


def search_blob(record: CanonicalRecord) -> str:
    parts = [
        record.title,
        record.jp_title,
        record.description,
        " ".join(record.relevant_work),
        " ".join(record.relevant_character),
        record.detailed,
    ]
    return " ".join(parts).lower()


def matches_search(record: CanonicalRecord, search: str) -> bool:
    needle = _norm(search)
    return not needle or needle in search_blob(record)


def filter_records(
    records: Sequence[CanonicalRecord],
    query: CatalogQuery,
    default_policy: MatchPolicy = "all",
) -> List[CanonicalRecord]:
    """Return the records passing every active dimension and the search."""
    active: List[Tuple[str, List[str], MatchPolicy]] = []
    for dim, attr in TAG_DIMENSIONS.items():
        selected = getattr(query, dim)
        if selected:
            policy = getattr(query, f"{dim}_match") or default_policy
            active.append((attr, selected, policy))

    def _passes(record: CanonicalRecord) -> bool:
        for attr, selected, policy in active:
            if not matches_tokens(getattr(record, attr), selected, policy):
                return False
        return matches_search(record, query.search)

    return [r for r in records if _passes(r)]


# ---------------------------------------------------------------------------
# Sorting
# ---------------------------------------------------------------------------

_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%Y.%m.%d",
    "%Y-%m",
    "%Y/%m",
    "%Y.%m",
    "%Y",
    "%Y年%m月%d日",
    "%Y年%m月",
    "%Y年",
)


def parse_release_date(text: Optional[str]) -> float:
    """Parse a release date into a UTC timestamp; 0 when unparseable."""
    value = (text or "").strip()
    if not value:
        return 0.0
    parsed: Optional[datetime] = None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        for fmt in _DATE_FORMATS:
            try:
                parsed = datetime.strptime(value, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return 0.0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


_DIGITS = re.compile(r"(\d+)")


def natural_key(value: str) -> Tuple:
    """Case-insensitive sort key that orders embedded numbers numerically.

    ``re.split`` with a capture group puts text at even positions and
    digit runs at odd positions, so keys always compare like with like.
    """
    folded = unicodedata.normalize("NFKC", value).casefold()
    return tuple(
        int(part) if i % 2 else part for i, part in enumerate(_DIGITS.split(folded))
    )


def _field_text(record: CanonicalRecord, key: str) -> str:
    value = getattr(record, key, "")
    if isinstance(value, list):
        return " ".join(value)
    return "" if value is None else str(value)


def sort_records(records: Sequence[CanonicalRecord], key: str) -> List[CanonicalRecord]:
    """Stable sort by ``key``.

    ``release_date`` and ``row_index``/``recent`` sort newest first; any
    other field sorts ascending with natural string ordering.
    """
    if key == "release_date":
        return sorted(records, key=lambda r: parse_release_date(r.release_date), reverse=True)
    if key in RECENT_SORT_KEYS:
        return sorted(records, key=lambda r: r.row_index, reverse=True)
    return sorted(records, key=lambda r: natural_key(_field_text(r, key)))


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------


def paginate(records: Sequence[CanonicalRecord], page: int, page_size: int) -> QueryPage:
    """Slice one page out of ``records``; out-of-range pages are clamped."""
    size = max(1, int(page_size))
    total = len(records)
    total_pages = max(1, math.ceil(total / size))
    current = min(max(1, int(page)), total_pages)
    start = (current - 1) * size
    return QueryPage(
        items=list(records[start:start + size]),
        page=current,
        page_size=size,
        total=total,
        total_pages=total_pages,
    )


def run_query(
    records: Sequence[CanonicalRecord],
    query: CatalogQuery,
    default_policy: MatchPolicy = "all",
) -> QueryPage:
    filtered = filter_records(records, query, default_policy)
    ordered = sort_records(filtered, query.sort)
    logger.debug(
        "Query %s matched %d of %d records",
        query.model_dump(exclude_defaults=True),
        len(ordered),
        len(records),
    )
    return paginate(ordered, query.page, query.page_size)
