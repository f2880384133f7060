"""
Pydantic schema definitions for the catalog module.

``CanonicalRecord`` is the normalized shape of one source row; every
query, lookup and view works on it rather than on the raw spreadsheet
columns. The remaining models are the view-models returned by the HTTP
API: cards for result grids, a detail view that also carries the raw
source columns, and the paginated/wishlist envelopes around them.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field
from typing_extensions import Literal

MatchPolicy = Literal["all", "any"]


class CanonicalRecord(BaseModel):
    """A single catalogue entry.

    Tag dimensions (``type``, ``relevant_work``, ``relevant_character``,
    ``relevant_image``) and ``releaser``/``release_area`` are token lists
    in source order. All other fields are trimmed strings. ``row_index``
    is the zero-based position of the source row and doubles as a
    "recently added" ordering.
    """

    id: str
    title: str = ""
    jp_title: str = ""
    type: List[str] = Field(default_factory=list)
    relevant_work: List[str] = Field(default_factory=list)
    relevant_character: List[str] = Field(default_factory=list)
    relevant_image: List[str] = Field(default_factory=list)
    releaser: List[str] = Field(default_factory=list)
    release_area: List[str] = Field(default_factory=list)
    release_date: str = ""
    release_price: str = ""
    resource: str = ""
    detailed: str = ""
    description: str = ""
    image_filename: str = ""
    row_index: int = 0


class CatalogQuery(BaseModel):
    """Filter, search, sort and paging inputs for one query.

    Each tag dimension carries its own match policy; ``None`` means the
    store's configured default applies.
    """

    type: List[str] = Field(default_factory=list)
    work: List[str] = Field(default_factory=list)
    character: List[str] = Field(default_factory=list)
    image: List[str] = Field(default_factory=list)
    type_match: Optional[MatchPolicy] = None
    work_match: Optional[MatchPolicy] = None
    character_match: Optional[MatchPolicy] = None
    image_match: Optional[MatchPolicy] = None
    search: str = ""
    sort: str = "title"
    page: int = 1
    page_size: int = 24


class RecordCard(BaseModel):
    """Compact view of a record for result grids."""

    id: str
    title: str
    jp_title: str = ""
    type: List[str] = Field(default_factory=list)
    relevant_work: List[str] = Field(default_factory=list)
    release_date: str = ""
    image_url: str
    wanted: bool = False


class RecordDetail(CanonicalRecord):
    """Full record plus the untouched source columns, in source order."""

    image_url: str
    wanted: bool = False
    raw: Dict[str, str] = Field(default_factory=dict)


class CatalogPage(BaseModel):
    """A wrapper for paginated results returned from the ``/items`` endpoint."""

    page: int
    page_size: int
    total: int
    total_pages: int
    items: List[RecordCard]


class FilterOptions(BaseModel):
    type: List[str] = Field(default_factory=list)
    work: List[str] = Field(default_factory=list)
    character: List[str] = Field(default_factory=list)
    image: List[str] = Field(default_factory=list)


class WishlistEntry(BaseModel):
    id: str
    found: bool
    card: Optional[RecordCard] = None


class WishlistView(BaseModel):
    count: int
    items: List[WishlistEntry]


class WishlistToggle(BaseModel):
    id: str
    wanted: bool


class WishlistImportResult(BaseModel):
    imported: int
