# merch_catalog/main.py
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from . import config
from .catalog import catalog_router
from .catalog.dependencies import set_store
from .catalog.storage import JsonFileStorage
from .catalog.store import CatalogStore
from .catalog.wishlist import WishlistStore

logger = logging.getLogger(__name__)


def build_store() -> CatalogStore:
    wishlist = WishlistStore(JsonFileStorage(config.STORAGE_FILE), key=config.WISHLIST_KEY)
    return CatalogStore(
        config.DATA_SOURCE,
        wishlist,
        default_policy=config.DEFAULT_MATCH_POLICY,
        lookup_fallback=config.LOOKUP_FALLBACK,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the catalogue once at startup."""
    store = build_store()
    dataset = store.reload()
    set_store(store)
    if dataset.failed:
        logger.error("Catalogue unavailable until %s is provided", store.source_name)
    else:
        logger.info("Catalogue ready with %d records", len(dataset.records))
    yield
    set_store(None)


def create_app() -> FastAPI:
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(
        title="Merch Catalog",
        description=(
            "Browse a spreadsheet-maintained merchandise catalogue: "
            "filter by tags, search, sort, paginate and keep a wanted list."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    app.include_router(catalog_router)

    images_dir = Path(config.IMAGES_FOLDER)
    if images_dir.is_dir():
        app.mount("/" + config.IMAGES_FOLDER.strip("/"), StaticFiles(directory=images_dir), name="images")
    return app


app = create_app()
