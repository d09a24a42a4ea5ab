"""
Object storage integration for video binaries and metadata.

Supports Google Cloud Storage via its S3-compatible API.
Includes mock mode for local development without credentials.
"""

from .client import (
    GCSStorageClient,
    MockStorageClient,
    StorageClient,
    StorageConfig,
    StorageError,
    create_storage_client,
    load_hmac_key_file,
)

__all__ = [
    "GCSStorageClient",
    "MockStorageClient",
    "StorageClient",
    "StorageConfig",
    "StorageError",
    "create_storage_client",
    "load_hmac_key_file",
]
