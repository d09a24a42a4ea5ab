"""
Upload handler.

Writes the video binary, then its JSON metadata sidecar. The two writes
are not atomic: if the sidecar write fails, the binary stays in the
bucket with no record pointing at it. Nothing is rolled back.
"""

import logging
from datetime import datetime, timezone
from typing import Callable

from ...infrastructure.storage.client import StorageClient, StorageError
from . import keys
from .errors import StorageWriteError
from .models import CatalogConfig, UploadFields, VideoRecord, format_timestamp

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class VideoUploader:
    """
    Stores uploaded videos and their metadata.

    Callers are expected to have validated size and MIME type already;
    the uploader only guards against titles that cannot form a key.
    """

    def __init__(
        self,
        storage: StorageClient,
        config: CatalogConfig,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._storage = storage
        self._config = config
        self._clock = clock

    async def upload(
        self,
        file_data: bytes,
        filename: str,
        content_type: str,
        fields: UploadFields,
    ) -> VideoRecord:
        """
        Store a video and return its record.

        Raises:
            InvalidTitleError: title sanitizes to nothing
            StorageWriteError: either object write failed
        """
        tags = keys.normalize_tags(fields.tags)
        safe_title = keys.require_sanitized_title(fields.title)

        # one clock reading, in UTC, for both the key partition and uploadDate
        now = self._clock().astimezone(timezone.utc)
        upload_date = format_timestamp(now)
        ext = keys.file_extension(filename)
        video_key = keys.video_key(safe_title, ext, now)

        logger.info(
            "Video upload started",
            extra={
                "key": video_key,
                "video_filename": filename,
                "content_type": content_type,
                "size_bytes": len(file_data),
            }
        )

        await self._write(
            "video",
            video_key,
            file_data,
            content_type,
            metadata={"title": fields.title, "uploadDate": upload_date},
        )

        bucket = self._config.bucket_name
        record = VideoRecord(
            title=fields.title,
            description=fields.description or "",
            tags=tags,
            category=fields.category or "",
            upload_date=upload_date,
            file_size=len(file_data),
            format=ext,
            video_url=keys.storage_uri(self._config.uri_scheme, bucket, video_key),
            public_url=keys.public_url(self._config.public_base_url, bucket, video_key),
        )

        metadata_key = keys.metadata_key(safe_title, now)
        await self._write(
            "metadata",
            metadata_key,
            record.to_json().encode("utf-8"),
            "application/json",
        )

        logger.info(
            "Video upload complete",
            extra={
                "key": video_key,
                "metadata_key": metadata_key,
                "public_url": record.public_url,
            }
        )

        return record

    async def _write(
        self,
        kind: str,
        key: str,
        data: bytes,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> None:
        try:
            await self._storage.put_object(key, data, content_type, metadata=metadata)
        except StorageError as e:
            logger.error(
                "Failed to write %s object",
                kind,
                extra={"operation": f"write_{kind}", "key": key, "error": str(e)},
            )
            raise StorageWriteError(
                f"Failed to write {kind} object {key}: {e}", key=key, cause=e
            ) from e
