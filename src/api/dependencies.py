"""
FastAPI dependency injection.

Dependencies provide the storage client, catalog configuration and
catalog services to route handlers. Routes never build their own
clients, so tests can swap any of them via app.dependency_overrides.
"""

import logging
from typing import Annotated, Optional

from fastapi import Depends

from ..config.settings import Settings, get_settings
from ..core.videos import CatalogConfig, CatalogReader, VideoUploader
from ..infrastructure.storage.client import (
    StorageClient,
    StorageConfig,
    create_storage_client,
    load_hmac_key_file,
)

logger = logging.getLogger(__name__)

# Shared mock instance (uploaded objects persist across requests)
_mock_storage_client = None

# GCS client, built once for the settings object get_settings hands out
_storage_client: Optional[StorageClient] = None
_storage_client_settings: Optional[Settings] = None


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

def build_storage_config(settings: Settings) -> StorageConfig:
    """Resolve credentials, preferring the key file over inline keys."""
    access_key_id = settings.gcs_access_key_id
    secret_access_key = settings.gcs_secret_access_key

    if settings.google_cloud_key_file:
        access_key_id, secret_access_key = load_hmac_key_file(
            settings.google_cloud_key_file
        )

    return StorageConfig(
        access_key_id=access_key_id,
        secret_access_key=secret_access_key,
        bucket_name=settings.gcs_bucket_name,
        endpoint_url=settings.gcs_endpoint_url,
        project_id=settings.google_cloud_project_id,
        timeout_seconds=settings.storage_timeout_seconds,
    )


def get_storage_client(
    settings: Annotated[Settings, Depends(get_settings)],
) -> StorageClient:
    """
    Provide storage client for uploads and catalog reads.

    In mock mode, we reuse the same client across requests so that
    uploaded videos persist during the session. The GCS client is also
    shared: credentials are resolved and the boto3 client built once,
    and again only if a different settings object is passed in.
    """
    global _mock_storage_client, _storage_client, _storage_client_settings

    if settings.storage_mock_mode:
        if _mock_storage_client is None:
            _mock_storage_client = create_storage_client(mock_mode=True)
            logger.info("Created shared mock storage client for session")
        return _mock_storage_client

    if _storage_client is None or _storage_client_settings is not settings:
        _storage_client = create_storage_client(config=build_storage_config(settings))
        _storage_client_settings = settings
        logger.info(
            "Created shared GCS storage client",
            extra={"bucket": settings.gcs_bucket_name}
        )

    return _storage_client


# ---------------------------------------------------------------------------
# Catalog Services
# ---------------------------------------------------------------------------

def get_catalog_config(
    settings: Annotated[Settings, Depends(get_settings)],
) -> CatalogConfig:
    return CatalogConfig(
        bucket_name=settings.gcs_bucket_name,
        public_base_url=settings.public_base_url,
        skip_corrupt_metadata=settings.skip_corrupt_metadata,
    )


def get_video_uploader(
    storage: Annotated[StorageClient, Depends(get_storage_client)],
    config: Annotated[CatalogConfig, Depends(get_catalog_config)],
) -> VideoUploader:
    return VideoUploader(storage=storage, config=config)


def get_catalog_reader(
    storage: Annotated[StorageClient, Depends(get_storage_client)],
    config: Annotated[CatalogConfig, Depends(get_catalog_config)],
) -> CatalogReader:
    return CatalogReader(storage=storage, config=config)


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

SettingsDep = Annotated[Settings, Depends(get_settings)]
StorageClientDep = Annotated[StorageClient, Depends(get_storage_client)]
VideoUploaderDep = Annotated[VideoUploader, Depends(get_video_uploader)]
CatalogReaderDep = Annotated[CatalogReader, Depends(get_catalog_reader)]
