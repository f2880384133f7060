"""
Catalog package for the merchandise catalogue.

The engine modules (``tags``, ``normalize``, ``loader``, ``query``,
``lookup``, ``wishlist``) hold no HTTP code themselves, but importing
this package also imports ``router`` and therefore FastAPI.
``store.CatalogStore`` ties them together around one dataset and one
wishlist, and ``router`` exposes that store over HTTP so a
static front-end page can browse the catalogue.
"""

from .router import router as catalog_router  # noqa: F401
