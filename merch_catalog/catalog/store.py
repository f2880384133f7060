"""
Catalogue state and the operations the API exposes over it.

``CatalogStore`` owns the current dataset and the wishlist. It is
created once at application startup and handed to request handlers
through a FastAPI dependency, so nothing in the engine relies on
module-level globals being populated in the right order.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from .errors import DatasetLoadError
from .loader import Dataset, load_dataset
from .lookup import find_record
from .normalize import RawRow, derive_id
from .query import TAG_DIMENSIONS, QueryPage, natural_key, run_query
from .schemas import CanonicalRecord, CatalogQuery, MatchPolicy
from .wishlist import WishlistStore

logger = logging.getLogger(__name__)


class CatalogStore:
    """In-memory catalogue with query, lookup and wishlist accessors."""

    def __init__(
        self,
        source: Union[str, Path],
        wishlist: WishlistStore,
        default_policy: MatchPolicy = "all",
        lookup_fallback: str = "first",
    ) -> None:
        self.source = str(source)
        self.wishlist = wishlist
        self.default_policy = default_policy
        self.lookup_fallback = lookup_fallback
        self.dataset: Optional[Dataset] = None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @property
    def is_loaded(self) -> bool:
        return self.dataset is not None

    @property
    def load_error(self) -> Optional[str]:
        return self.dataset.error if self.dataset is not None else None

    @property
    def source_name(self) -> str:
        return self.source.rstrip("/").rsplit("/", 1)[-1] or self.source

    def reload(self) -> Dataset:
        """Rebuild the dataset from the source, replacing the previous one."""
        try:
            self.dataset = load_dataset(self.source)
        except DatasetLoadError as exc:
            logger.error("Could not load %s: %s", exc.source, exc.reason)
            self.dataset = Dataset.from_failure(exc)
        return self.dataset

    def ensure_loaded(self) -> Dataset:
        """Load once on first use; a failed load is not retried implicitly."""
        if self.dataset is None:
            return self.reload()
        return self.dataset

    @property
    def records(self) -> List[CanonicalRecord]:
        return self.ensure_loaded().records

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def query(self, query: CatalogQuery) -> QueryPage:
        return run_query(self.records, query, self.default_policy)

    def find(self, record_id: str) -> Optional[CanonicalRecord]:
        return find_record(self.records, record_id, self.lookup_fallback)

    def raw_row(self, record: CanonicalRecord) -> Optional[RawRow]:
        rows = self.ensure_loaded().raw_rows
        if 0 <= record.row_index < len(rows):
            return rows[record.row_index]
        return None

    def filter_options(self) -> Dict[str, List[str]]:
        """Sorted distinct tokens of every tag dimension.

        Tokens differing only in case are listed once, first spelling wins.
        """
        options: Dict[str, List[str]] = {}
        for dim, attr in TAG_DIMENSIONS.items():
            seen: Dict[str, str] = {}
            for record in self.records:
                for token in getattr(record, attr):
                    seen.setdefault(token.casefold(), token)
            options[dim] = sorted(seen.values(), key=natural_key)
        return options

    # ------------------------------------------------------------------
    # Wishlist
    # ------------------------------------------------------------------

    def wishlist_records(self) -> List[Tuple[str, Optional[CanonicalRecord]]]:
        """``(id, record or None)`` pairs in wishlist order."""
        by_id: Dict[str, CanonicalRecord] = {}
        for record in self.records:
            by_id.setdefault(record.id, record)
        return [(rid, by_id.get(rid)) for rid in self.wishlist]

    def export_wishlist_csv(self) -> Optional[bytes]:
        dataset = self.ensure_loaded()
        return self.wishlist.export_csv(dataset.raw_rows, dataset.headers, derive_id)
