"""
Object storage client for video binaries and metadata sidecars.

Talks to Google Cloud Storage through its S3-interoperable XML API using
boto3 and HMAC credentials. Using the S3 API instead of a GCS-only SDK
because:
- The catalog only needs put, get and prefix listing
- The same client works against MinIO or S3 for local testing
- Listing is paginated identically everywhere

Mock mode keeps objects in memory, enabling API testing without
provisioning a bucket.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Protocol
from urllib.parse import quote

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when storage operations fail."""
    pass


@dataclass
class StorageConfig:
    """
    Configuration for the GCS interoperability endpoint.

    Project ID is optional; when set it is sent as the
    `x-goog-project-id` header, which GCS uses to scope requests.
    """
    access_key_id: str
    secret_access_key: str
    bucket_name: str
    endpoint_url: str = "https://storage.googleapis.com"
    project_id: str = ""
    region: str = "auto"
    timeout_seconds: float = 30.0
    max_attempts: int = 1


@dataclass
class StoredObject:
    """An object held by the mock store."""
    data: bytes
    content_type: str
    metadata: dict[str, str] = field(default_factory=dict)


class StorageClient(Protocol):
    """
    Protocol for object storage operations.

    The catalog treats the store as a capability with exactly three
    operations. Tests provide the in-memory implementation.
    """

    async def put_object(
        self,
        key: str,
        data: bytes,
        content_type: str,
        metadata: Optional[dict[str, str]] = None,
    ) -> None:
        """Write an object, replacing any existing object at key."""
        ...

    async def get_object(self, key: str) -> bytes:
        """Download an object's content."""
        ...

    async def list_objects(self, prefix: str) -> list[str]:
        """List every key under prefix, in the store's listing order."""
        ...


def load_hmac_key_file(path: str) -> tuple[str, str]:
    """
    Read HMAC credentials from a JSON key file.

    Accepts the output of `gcloud storage hmac create --format=json`
    (access ID nested under "metadata") as well as a flat
    {"accessId": ..., "secret": ...} document.
    """
    try:
        document = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise StorageError(f"Cannot read key file {path}: {e}")

    access_id = document.get("accessId") or document.get("metadata", {}).get("accessId")
    secret = document.get("secret")
    if not access_id or not secret:
        raise StorageError(f"Key file {path} has no accessId/secret pair")

    return access_id, secret


def _encode_metadata(metadata: Optional[dict[str, str]]) -> dict[str, str]:
    """Object metadata travels as HTTP headers, so values must be ASCII."""
    return {name: quote(str(value), safe="") for name, value in (metadata or {}).items()}


class GCSStorageClient:
    """
    Google Cloud Storage client over the S3-compatible API.

    boto3 is synchronous, so each call runs in a worker thread via
    asyncio.to_thread and the event loop stays free during large
    uploads. Retries are disabled by default so failures surface to the
    caller immediately.
    """

    def __init__(self, config: StorageConfig) -> None:
        """
        Initialize the boto3 client.

        boto3 is imported here (not at module level) because mock mode
        doesn't need it.
        """
        try:
            import boto3
            from botocore.config import Config
        except ImportError:
            raise ImportError(
                "boto3 is required for GCS storage. Install with: pip install boto3"
            )

        self._config = config

        boto_config = Config(
            signature_version='s3v4',
            s3={'addressing_style': 'path'},
            connect_timeout=config.timeout_seconds,
            read_timeout=config.timeout_seconds,
            retries={'max_attempts': config.max_attempts, 'mode': 'standard'},
        )

        self._s3_client = boto3.client(
            's3',
            endpoint_url=config.endpoint_url,
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
            region_name=config.region,
            config=boto_config,
        )

        if config.project_id:
            self._s3_client.meta.events.register(
                'before-sign.s3',
                self._add_project_header,
            )

        logger.info(
            "Initialized GCS storage client",
            extra={
                "bucket": config.bucket_name,
                "endpoint": config.endpoint_url,
                "project_id": config.project_id,
            }
        )

    def _add_project_header(self, request, **kwargs) -> None:
        request.headers['x-goog-project-id'] = self._config.project_id

    @property
    def bucket_name(self) -> str:
        return self._config.bucket_name

    async def put_object(
        self,
        key: str,
        data: bytes,
        content_type: str,
        metadata: Optional[dict[str, str]] = None,
    ) -> None:
        try:
            await asyncio.to_thread(
                self._s3_client.put_object,
                Bucket=self._config.bucket_name,
                Key=key,
                Body=data,
                ContentType=content_type,
                Metadata=_encode_metadata(metadata),
            )

            logger.debug(
                "Uploaded object",
                extra={"key": key, "size_bytes": len(data)}
            )

        except Exception as e:
            logger.error(
                "Failed to upload object",
                extra={"key": key, "error": str(e)}
            )
            raise StorageError(f"Upload failed: {e}") from e

    async def get_object(self, key: str) -> bytes:
        try:
            return await asyncio.to_thread(self._read_object, key)

        except Exception as e:
            logger.error(
                "Failed to download object",
                extra={"key": key, "error": str(e)}
            )
            raise StorageError(f"Download failed: {e}") from e

    async def list_objects(self, prefix: str) -> list[str]:
        """
        List keys under prefix.

        Uses the paginator because a single list_objects_v2 call stops
        at 1000 keys.
        """
        try:
            keys = await asyncio.to_thread(self._list_keys, prefix)

        except Exception as e:
            logger.error(
                "Failed to list objects",
                extra={"prefix": prefix, "error": str(e)}
            )
            raise StorageError(f"List failed: {e}") from e

        logger.debug(
            "Listed objects",
            extra={"prefix": prefix, "count": len(keys)}
        )

        return keys

    def _read_object(self, key: str) -> bytes:
        response = self._s3_client.get_object(
            Bucket=self._config.bucket_name,
            Key=key,
        )
        return response['Body'].read()

    def _list_keys(self, prefix: str) -> list[str]:
        keys: list[str] = []
        paginator = self._s3_client.get_paginator('list_objects_v2')
        for page in paginator.paginate(
            Bucket=self._config.bucket_name,
            Prefix=prefix,
        ):
            keys.extend(obj['Key'] for obj in page.get('Contents', []))
        return keys


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

class MockStorageClient:
    """
    In-memory storage for local development and tests.

    Objects live in a dictionary keyed by storage key. Listing returns
    keys in lexicographic order, the same order GCS uses.
    """

    def __init__(self, bucket_name: str = "mock-bucket") -> None:
        self.bucket_name = bucket_name
        self._objects: dict[str, StoredObject] = {}
        logger.info("Initialized mock storage client (in-memory)")

    async def put_object(
        self,
        key: str,
        data: bytes,
        content_type: str,
        metadata: Optional[dict[str, str]] = None,
    ) -> None:
        """Store object in memory."""
        self._objects[key] = StoredObject(
            data=data,
            content_type=content_type,
            metadata=_encode_metadata(metadata),
        )

        logger.debug(
            "Stored object in mock storage",
            extra={"key": key, "size_bytes": len(data)}
        )

    async def get_object(self, key: str) -> bytes:
        """Retrieve object from memory."""
        if key not in self._objects:
            raise StorageError(f"Object not found: {key}")

        return self._objects[key].data

    async def list_objects(self, prefix: str) -> list[str]:
        return sorted(key for key in self._objects if key.startswith(prefix))

    def get_stored(self, key: str) -> Optional[StoredObject]:
        """Inspect a stored object (content type, metadata) in tests."""
        return self._objects.get(key)


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_storage_client(
    config: Optional[StorageConfig] = None,
    mock_mode: bool = False,
) -> StorageClient:
    """
    Create storage client based on configuration.

    Args:
        config: Storage configuration (required if not mock_mode)
        mock_mode: If True, return mock client for testing

    Returns:
        StorageClient implementation (GCS or Mock)
    """
    if mock_mode:
        return MockStorageClient(
            bucket_name=config.bucket_name if config else "mock-bucket"
        )

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return GCSStorageClient(config)
