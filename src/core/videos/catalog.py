"""
Catalog reader.

There is no index: every read lists the whole videos/ prefix and
downloads each metadata sidecar, one at a time. Cost grows linearly
with the number of stored videos.
"""

import logging
import random
from typing import Optional

from ...infrastructure.storage.client import StorageClient, StorageError
from . import keys
from .errors import CorruptMetadataError, StorageReadError
from .models import CatalogConfig, VideoRecord

logger = logging.getLogger(__name__)


class CatalogReader:
    """Reads video records back out of the bucket."""

    def __init__(self, storage: StorageClient, config: CatalogConfig) -> None:
        self._storage = storage
        self._config = config

    async def list_all(self) -> list[VideoRecord]:
        """
        Every record in the catalog, newest upload first.

        Records with equal uploadDate keep their listing order. A
        metadata object that fails to decode aborts the whole listing
        with CorruptMetadataError, unless the catalog is configured to
        skip corrupt entries.
        """
        metadata_keys = [
            key for key in await self._list(keys.VIDEO_PREFIX)
            if keys.is_metadata_key(key)
        ]

        records: list[VideoRecord] = []
        for key in metadata_keys:
            try:
                records.append(await self._load(key))
            except CorruptMetadataError:
                if not self._config.skip_corrupt_metadata:
                    raise
                logger.warning(
                    "Skipping corrupt metadata object",
                    extra={"key": key},
                )

        # sorted() is stable, including with reverse=True
        records = sorted(records, key=lambda record: record.uploaded_at, reverse=True)

        logger.debug(
            "Listed catalog",
            extra={"metadata_objects": len(metadata_keys), "records": len(records)}
        )

        return records

    async def lookup_by_title(self, title: str) -> Optional[VideoRecord]:
        """
        Find a record by title in any upload month.

        Object stores only match literal prefixes, so the month segment
        cannot be wildcarded in the listing call; the whole videos/
        prefix is scanned and filtered here. When the same title exists
        in several months, the first key in listing order wins.
        """
        safe_title = keys.require_sanitized_title(title)

        for key in await self._list(keys.VIDEO_PREFIX):
            if keys.metadata_key_matches(key, safe_title):
                return await self._load(key)

        logger.debug("Title not found", extra={"safe_title": safe_title})
        return None

    async def sample_random(
        self,
        count: int,
        seed: Optional[int] = None,
    ) -> list[VideoRecord]:
        """
        Up to count records in uniformly random order.

        Shuffles a copy of the full catalog (Fisher-Yates via
        random.Random.shuffle) and returns its first count entries.
        count <= 0 gives an empty list; count larger than the catalog
        gives the whole catalog.
        """
        if count <= 0:
            return []

        catalog = await self.list_all()

        shuffled = list(catalog)
        random.Random(seed).shuffle(shuffled)

        return shuffled[:count]

    async def _list(self, prefix: str) -> list[str]:
        try:
            return await self._storage.list_objects(prefix)
        except StorageError as e:
            logger.error(
                "Failed to list catalog",
                extra={"operation": "list", "key": prefix, "error": str(e)},
            )
            raise StorageReadError(
                f"Failed to list objects under {prefix}: {e}", key=prefix, cause=e
            ) from e

    async def _load(self, key: str) -> VideoRecord:
        try:
            content = await self._storage.get_object(key)
        except StorageError as e:
            logger.error(
                "Failed to download metadata",
                extra={"operation": "download", "key": key, "error": str(e)},
            )
            raise StorageReadError(
                f"Failed to download {key}: {e}", key=key, cause=e
            ) from e

        try:
            return VideoRecord.from_json(content, key=key)
        except CorruptMetadataError as e:
            logger.error(
                "Corrupt metadata object",
                extra={"operation": "parse", "key": key, "error": str(e)},
            )
            raise
