"""
Video catalog logic.

Contains the domain model, key derivation, the upload handler and the
catalog reader.
"""

from .catalog import CatalogReader
from .errors import (
    CatalogError,
    CorruptMetadataError,
    InvalidTitleError,
    StorageReadError,
    StorageWriteError,
)
from .models import CatalogConfig, UploadFields, VideoRecord
from .uploader import VideoUploader

__all__ = [
    "CatalogConfig",
    "CatalogError",
    "CatalogReader",
    "CorruptMetadataError",
    "InvalidTitleError",
    "StorageReadError",
    "StorageWriteError",
    "UploadFields",
    "VideoRecord",
    "VideoUploader",
]
