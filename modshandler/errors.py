from __future__ import annotations


class ModsHandlerError(Exception):
    pass


class CatalogParseError(ModsHandlerError):
    """Catalog JSON is malformed or does not match the character schema."""


class ScrapeError(ModsHandlerError):
    """A catalog source could not be fetched or no selector set matched it."""


class StoreError(ModsHandlerError):
    """A store transaction failed and was rolled back."""
