"""
Shared fixtures: an in-memory bucket and a catalog wired to it.
"""

from datetime import datetime, timezone
from typing import Optional

import pytest

from src.core.videos import CatalogConfig, CatalogReader, VideoUploader
from src.infrastructure.storage.client import MockStorageClient, StorageError


BUCKET = "short-form-project"


class FixedClock:
    """Clock that returns a settable instant."""

    def __init__(self, moment: datetime) -> None:
        self.moment = moment

    def __call__(self) -> datetime:
        return self.moment


class FailingStorageClient(MockStorageClient):
    """Mock storage that fails chosen operations."""

    def __init__(self) -> None:
        super().__init__(bucket_name=BUCKET)
        self.fail_put_suffix: Optional[str] = None
        self.fail_get_key: Optional[str] = None
        self.fail_list = False

    async def put_object(self, key, data, content_type, metadata=None):
        if self.fail_put_suffix and key.endswith(self.fail_put_suffix):
            raise StorageError("Upload failed: 503 Service Unavailable")
        await super().put_object(key, data, content_type, metadata=metadata)

    async def get_object(self, key):
        if key == self.fail_get_key:
            raise StorageError("Download failed: connection reset")
        return await super().get_object(key)

    async def list_objects(self, prefix):
        if self.fail_list:
            raise StorageError("List failed: 403 Forbidden")
        return await super().list_objects(prefix)


@pytest.fixture
def storage() -> FailingStorageClient:
    return FailingStorageClient()


@pytest.fixture
def catalog_config() -> CatalogConfig:
    return CatalogConfig(bucket_name=BUCKET)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2025, 7, 24, 14, 48, 3, 64000, tzinfo=timezone.utc))


@pytest.fixture
def uploader(storage, catalog_config, clock) -> VideoUploader:
    return VideoUploader(storage=storage, config=catalog_config, clock=clock)


@pytest.fixture
def reader(storage, catalog_config) -> CatalogReader:
    return CatalogReader(storage=storage, config=catalog_config)
