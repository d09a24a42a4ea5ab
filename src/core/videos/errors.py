"""
Catalog error kinds.

Each error carries the storage key (or prefix) involved and, where one
exists, the underlying cause, so the HTTP layer can log and map it
without inspecting messages.
"""

from typing import Optional


class CatalogError(Exception):
    """Base class for upload and catalog failures."""

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.key = key
        self.cause = cause


class InvalidTitleError(CatalogError):
    """The title sanitizes to nothing usable as a storage key."""


class StorageWriteError(CatalogError):
    """Writing the binary or metadata object failed."""


class StorageReadError(CatalogError):
    """Listing or downloading during cataloging failed."""


class CorruptMetadataError(CatalogError):
    """A metadata object is not a valid video record."""
