"""Exceptions raised by the catalogue engine."""


class CatalogError(RuntimeError):
    pass


class DatasetLoadError(CatalogError):
    """The source table could not be fetched, decoded or parsed."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"failed to load {source}: {reason}")
        self.source = source
        self.reason = reason


class WishlistError(CatalogError):
    pass


class WishlistImportError(WishlistError):
    """Imported wishlist text is not a JSON array of strings."""


class StorageError(WishlistError):
    """The key/value store could not be read or written."""
