"""
FastAPI dependencies: the ``CatalogStore`` singleton.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException

from .store import CatalogStore

_store: CatalogStore | None = None


def set_store(store: CatalogStore | None) -> None:
    global _store
    _store = store


def get_store() -> CatalogStore:
    if _store is None:
        raise HTTPException(503, "Server not initialized yet")
    return _store


def load_failure(store: CatalogStore) -> HTTPException:
    return HTTPException(503, f"Could not load {store.source_name}. Upload it to the repo root.")


def get_loaded_store(store: CatalogStore = Depends(get_store)) -> CatalogStore:
    """Return the store, or 503 with an operator hint if the data failed to load."""
    if store.ensure_loaded().failed:
        raise load_failure(store)
    return store
