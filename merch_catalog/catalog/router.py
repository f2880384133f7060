"""
Route definitions for the catalogue API.

Endpoints under /api/catalog:
- GET    /items                 : filtered, searched, sorted, paginated cards
- GET    /items/{item_id}       : one record with its raw source columns
- GET    /filters               : distinct tokens for each filter dimension
- POST   /reload                : re-read the source table
- GET    /wishlist              : wished ids resolved to cards
- POST   /wishlist              : add an id
- DELETE /wishlist/{item_id}    : remove an id
- POST   /wishlist/toggle       : flip an id
- GET    /wishlist/export.json  : download the wishlist as a JSON array
- POST   /wishlist/import       : replace the wishlist from an uploaded JSON file
- GET    /wishlist/export.csv   : download the wished source rows as CSV
"""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import Response

from .. import config
from .dependencies import get_loaded_store, get_store, load_failure
from .errors import StorageError, WishlistImportError
from .normalize import FIELD_ALIASES
from .schemas import (
    CatalogPage,
    CatalogQuery,
    FilterOptions,
    MatchPolicy,
    RecordDetail,
    WishlistEntry,
    WishlistImportResult,
    WishlistToggle,
    WishlistView,
)
from .store import CatalogStore
from .views import to_card, to_detail

logger = logging.getLogger(__name__)

SORT_KEYS = {"title", "id", "row_index", "recent"} | set(FIELD_ALIASES)

router = APIRouter(prefix="/api/catalog", tags=["catalog"])


def _storage_failure(exc: StorageError) -> HTTPException:
    logger.error("Wishlist storage failure: %s", exc)
    return HTTPException(status_code=500, detail="Wishlist storage unavailable")


@router.get("/items", response_model=CatalogPage)
def list_items(
    type: List[str] = Query(default=[], description="Type tokens"),
    work: List[str] = Query(default=[], description="Relevant work tokens"),
    character: List[str] = Query(default=[], description="Relevant character tokens"),
    image: List[str] = Query(default=[], description="Relevant image tokens"),
    type_match: Optional[MatchPolicy] = Query(default=None),
    work_match: Optional[MatchPolicy] = Query(default=None),
    character_match: Optional[MatchPolicy] = Query(default=None),
    image_match: Optional[MatchPolicy] = Query(default=None),
    q: str = Query(default="", description="Free-text search"),
    sort: str = Query(default="title", description="Sort field"),
    page: int = Query(default=1, ge=1, description="Current page (1-indexed)"),
    page_size: int = Query(default=config.PAGE_SIZE, ge=1, le=200, description="Page size"),
    store: CatalogStore = Depends(get_loaded_store),
) -> CatalogPage:
    if sort not in SORT_KEYS:
        raise HTTPException(status_code=422, detail=f"Unknown sort field: {sort}")
    result = store.query(
        CatalogQuery(
            type=type,
            work=work,
            character=character,
            image=image,
            type_match=type_match,
            work_match=work_match,
            character_match=character_match,
            image_match=image_match,
            search=q,
            sort=sort,
            page=page,
            page_size=page_size,
        )
    )
    return CatalogPage(
        page=result.page,
        page_size=result.page_size,
        total=result.total,
        total_pages=result.total_pages,
        items=[to_card(r, store.wishlist.contains(r.id)) for r in result.items],
    )


@router.get("/items/{item_id:path}", response_model=RecordDetail)
def get_item(item_id: str, store: CatalogStore = Depends(get_loaded_store)) -> RecordDetail:
    record = store.find(item_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Item not found")
    return to_detail(record, store.raw_row(record), store.wishlist.contains(record.id))


@router.get("/filters", response_model=FilterOptions)
def filter_options(store: CatalogStore = Depends(get_loaded_store)) -> FilterOptions:
    return FilterOptions(**store.filter_options())


@router.post("/reload")
def reload_dataset(store: CatalogStore = Depends(get_store)):
    dataset = store.reload()
    if dataset.failed:
        raise load_failure(store)
    return {"records": len(dataset.records), "columns": len(dataset.headers)}


# ---------------------------------------------------------------------------
# Wishlist endpoints
# ---------------------------------------------------------------------------


@router.get("/wishlist", response_model=WishlistView)
def show_wishlist(store: CatalogStore = Depends(get_store)) -> WishlistView:
    entries = [
        WishlistEntry(
            id=rid,
            found=record is not None,
            card=to_card(record, wanted=True) if record is not None else None,
        )
        for rid, record in store.wishlist_records()
    ]
    return WishlistView(count=len(entries), items=entries)


@router.post("/wishlist", response_model=WishlistToggle)
def add_to_wishlist(
    id: str = Body(..., embed=True),
    store: CatalogStore = Depends(get_store),
) -> WishlistToggle:
    try:
        store.wishlist.add(id)
    except StorageError as exc:
        raise _storage_failure(exc) from exc
    return WishlistToggle(id=id, wanted=True)


@router.post("/wishlist/toggle", response_model=WishlistToggle)
def toggle_wishlist(
    id: str = Body(..., embed=True),
    store: CatalogStore = Depends(get_store),
) -> WishlistToggle:
    try:
        wanted = store.wishlist.toggle(id)
    except StorageError as exc:
        raise _storage_failure(exc) from exc
    return WishlistToggle(id=id, wanted=wanted)


@router.get("/wishlist/export.json")
def export_wishlist_json(store: CatalogStore = Depends(get_store)) -> Response:
    return Response(
        content=store.wishlist.export_json(),
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="wanted.json"'},
    )


@router.post("/wishlist/import", response_model=WishlistImportResult)
async def import_wishlist(
    file: UploadFile = File(...),
    store: CatalogStore = Depends(get_store),
) -> WishlistImportResult:
    raw = await file.read()
    try:
        count = store.wishlist.import_json(raw.decode("utf-8-sig"))
    except UnicodeDecodeError as exc:
        raise HTTPException(status_code=400, detail="Invalid JSON") from exc
    except WishlistImportError as exc:
        logger.warning("Rejected wishlist import %s: %s", file.filename, exc)
        raise HTTPException(status_code=400, detail=f"Invalid JSON: {exc}") from exc
    except StorageError as exc:
        raise _storage_failure(exc) from exc
    return WishlistImportResult(imported=count)


@router.get("/wishlist/export.csv")
def export_wishlist_csv(store: CatalogStore = Depends(get_store)) -> Response:
    content = store.export_wishlist_csv()
    if content is None:
        return Response(status_code=204)
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="wanted.csv"'},
    )


@router.delete("/wishlist/{item_id:path}", response_model=WishlistToggle)
def remove_from_wishlist(item_id: str, store: CatalogStore = Depends(get_store)) -> WishlistToggle:
    try:
        store.wishlist.remove(item_id)
    except StorageError as exc:
        raise _storage_failure(exc) from exc
    return WishlistToggle(id=item_id, wanted=False)
