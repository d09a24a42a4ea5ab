"""
Domain models for the video catalog.

VideoRecord is the only entity. It is persisted as a JSON sidecar next
to the video binary, so the model owns its wire format: camelCase field
names, reserved fields omitted when unset.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Union

from .errors import CorruptMetadataError
from .keys import normalize_tags

# may be absent or null, otherwise must be strings
_OPTIONAL_TEXT_FIELDS = (
    "description", "category", "format", "duration", "resolution", "thumbnailUrl",
)


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision, e.g. 2025-07-24T14:48:03.064Z"""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def parse_timestamp(value: str) -> datetime:
    """Parse an uploadDate string. Naive values are taken as UTC."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    moment = datetime.fromisoformat(value)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


@dataclass(frozen=True)
class CatalogConfig:
    """
    Process-wide catalog settings, built once at startup and handed to
    both the uploader and the reader.
    """
    bucket_name: str
    public_base_url: str = "https://storage.googleapis.com"
    uri_scheme: str = "gs"
    skip_corrupt_metadata: bool = False


@dataclass
class UploadFields:
    """Form fields accompanying an upload. Tags may still be a raw string."""
    title: str
    description: Optional[str] = None
    tags: Union[str, list[str], None] = None
    category: Optional[str] = None


@dataclass
class VideoRecord:
    """
    Metadata for one uploaded video.

    upload_date is set once when the record is created and never
    rewritten; the catalog sorts on it.
    """
    title: str
    upload_date: str
    file_size: int
    format: str
    video_url: str
    public_url: str
    description: str = ""
    tags: list[str] = field(default_factory=list)
    category: str = ""
    # reserved, never populated by upload
    duration: Optional[str] = None
    resolution: Optional[str] = None
    thumbnail_url: Optional[str] = None

    @property
    def uploaded_at(self) -> datetime:
        return parse_timestamp(self.upload_date)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "title": self.title,
            "description": self.description,
            "tags": list(self.tags),
            "category": self.category,
            "uploadDate": self.upload_date,
            "fileSize": self.file_size,
            "format": self.format,
            "videoUrl": self.video_url,
            "publicUrl": self.public_url,
        }
        optional = {
            "duration": self.duration,
            "resolution": self.resolution,
            "thumbnailUrl": self.thumbnail_url,
        }
        data.update({name: value for name, value in optional.items() if value is not None})
        return data

    def to_json(self) -> str:
        """Pretty-printed, 2-space indent, non-ASCII kept as-is."""
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Any, key: Optional[str] = None) -> "VideoRecord":
        """
        Build a record from a decoded metadata document.

        Absent optional fields default to empty values. Missing required
        fields, non-string text fields or tags, and an unparseable
        uploadDate raise CorruptMetadataError.
        """
        if not isinstance(data, dict):
            raise CorruptMetadataError(
                f"Metadata at {key} is not a JSON object", key=key
            )

        required = ("title", "uploadDate", "videoUrl", "publicUrl")
        missing = [name for name in required if not isinstance(data.get(name), str)]
        if missing:
            raise CorruptMetadataError(
                f"Metadata at {key} is missing fields: {', '.join(missing)}", key=key
            )

        mistyped = [
            name for name in _OPTIONAL_TEXT_FIELDS
            if data.get(name) is not None and not isinstance(data[name], str)
        ]
        tags = data.get("tags")
        if isinstance(tags, list) and not all(isinstance(tag, str) for tag in tags):
            mistyped.append("tags")
        if mistyped:
            raise CorruptMetadataError(
                f"Metadata at {key} has non-string fields: {', '.join(mistyped)}", key=key
            )

        try:
            parse_timestamp(data["uploadDate"])
            file_size = int(data.get("fileSize") or 0)
            tags = normalize_tags(data.get("tags"))
        except (TypeError, ValueError) as e:
            raise CorruptMetadataError(
                f"Metadata at {key} has invalid values: {e}", key=key, cause=e
            ) from e

        return cls(
            title=data["title"],
            upload_date=data["uploadDate"],
            file_size=file_size,
            format=data.get("format") or "",
            video_url=data["videoUrl"],
            public_url=data["publicUrl"],
            description=data.get("description") or "",
            tags=tags,
            category=data.get("category") or "",
            duration=data.get("duration"),
            resolution=data.get("resolution"),
            thumbnail_url=data.get("thumbnailUrl"),
        )

    @classmethod
    def from_json(cls, content: Union[bytes, str], key: Optional[str] = None) -> "VideoRecord":
        try:
            data = json.loads(content)
        except (UnicodeDecodeError, ValueError) as e:
            raise CorruptMetadataError(
                f"Metadata at {key} is not valid JSON: {e}", key=key, cause=e
            ) from e
        return cls.from_dict(data, key=key)
