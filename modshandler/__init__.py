"""Mod library catalog: folder-name identity resolution against a canonical
character/costume catalog, persisted through the `db` package."""
from .errors import CatalogParseError, ModsHandlerError, ScrapeError, StoreError  # noqa: F401

__version__ = "0.1.0"

__all__ = ["CatalogParseError", "ModsHandlerError", "ScrapeError", "StoreError", "__version__"]
