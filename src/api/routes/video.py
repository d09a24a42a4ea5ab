"""
Video upload and catalog endpoints.

Flow:
1. Client uploads a video with title/description/category/tags
2. Binary and JSON metadata sidecar are written to the bucket
3. Catalog reads list the sidecars back (all, random sample, by title)

Request validation (MIME type, size, required fields) happens here so
the catalog services only ever see already-validated input. Catalog
errors are left to the application-level handler in main.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, File, Form, HTTPException, Query, UploadFile, status
from pydantic import BaseModel, Field

from ...core.videos import UploadFields, VideoRecord
from ..dependencies import CatalogReaderDep, SettingsDep, VideoUploaderDep

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Response Models
# ---------------------------------------------------------------------------

class VideoRecordResponse(BaseModel):
    """Video metadata as stored in the sidecar JSON."""
    title: str = Field(description="Video title as uploaded")
    description: str = Field(default="", description="Video description")
    tags: list[str] = Field(default_factory=list, description="Tags, in upload order")
    category: str = Field(default="", description="Video category")
    uploadDate: str = Field(description="Upload time, ISO-8601 UTC")
    fileSize: int = Field(description="Size of the video in bytes")
    format: str = Field(description="Lower-cased file extension (mp4, mov, ...)")
    videoUrl: str = Field(description="Internal storage URI (gs://...)")
    publicUrl: str = Field(description="Publicly resolvable URL")
    duration: Optional[str] = Field(default=None, description="Reserved")
    resolution: Optional[str] = Field(default=None, description="Reserved")
    thumbnailUrl: Optional[str] = Field(default=None, description="Reserved")

    @classmethod
    def from_record(cls, record: VideoRecord) -> "VideoRecordResponse":
        return cls(**record.to_dict())


# ---------------------------------------------------------------------------
# Helper Functions
# ---------------------------------------------------------------------------

def parse_count(raw: Optional[str], default: int) -> int:
    """Parse the count query value. Missing or non-numeric means default."""
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def combine_tags(values: Optional[list[str]]) -> str | list[str] | None:
    """
    A single tags field is a comma-joined string; repeated tags fields
    arrive as a list and are kept as one tag per field.
    """
    if not values:
        return None
    if len(values) == 1:
        return values[0]
    return values


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "/upload",
    response_model=VideoRecordResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    summary="Upload video",
    description="Upload a video file with metadata and store both in the bucket.",
)
async def upload_video(
    video: Annotated[UploadFile, File(description="Video file (video/*)")],
    title: Annotated[str, Form(description="Video title, also used for the storage key")],
    uploader: VideoUploaderDep,
    settings: SettingsDep,
    description: Annotated[Optional[str], Form()] = None,
    category: Annotated[Optional[str], Form()] = None,
    tags: Annotated[Optional[list[str]], Form(description="Comma-joined string or repeated field")] = None,
) -> VideoRecordResponse:
    """
    Store an uploaded video and its metadata.

    Max file size: configured in settings (default 100MB)
    Accepted types: any video/* MIME type
    """
    if not video.content_type or not video.content_type.startswith("video/"):
        logger.warning(
            "Rejected upload with non-video type",
            extra={"content_type": video.content_type, "video_filename": video.filename},
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported file type: {video.content_type}. Upload a video/* file."
        )

    video_data = await video.read()

    if len(video_data) > settings.max_upload_size_bytes:
        logger.warning(
            "Rejected oversized upload",
            extra={"size_bytes": len(video_data), "video_filename": video.filename},
        )
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Video too large. Maximum size: {settings.max_upload_size_mb}MB"
        )

    fields = UploadFields(
        title=title,
        description=description,
        tags=combine_tags(tags),
        category=category,
    )

    record = await uploader.upload(
        file_data=video_data,
        filename=video.filename or "",
        content_type=video.content_type,
        fields=fields,
    )

    return VideoRecordResponse.from_record(record)


@router.get(
    "",
    response_model=list[VideoRecordResponse],
    response_model_exclude_none=True,
    summary="List all videos",
    description="Return every video's metadata, newest first.",
)
async def list_videos(reader: CatalogReaderDep) -> list[VideoRecordResponse]:
    records = await reader.list_all()

    return [VideoRecordResponse.from_record(record) for record in records]


@router.get(
    "/random",
    response_model=list[VideoRecordResponse],
    response_model_exclude_none=True,
    summary="Random videos",
    description="Return a uniformly random selection of videos.",
)
async def random_videos(
    reader: CatalogReaderDep,
    settings: SettingsDep,
    count: Annotated[Optional[str], Query(description="How many videos (default 5)")] = None,
) -> list[VideoRecordResponse]:
    requested = parse_count(count, settings.default_random_count)

    records = await reader.sample_random(requested)

    return [VideoRecordResponse.from_record(record) for record in records]


@router.get(
    "/title/{title}",
    response_model=VideoRecordResponse,
    response_model_exclude_none=True,
    summary="Find video by title",
    description="Look up a video's metadata by title across all upload months.",
)
async def get_video_by_title(
    title: str,
    reader: CatalogReaderDep,
) -> VideoRecordResponse:
    record = await reader.lookup_by_title(title)

    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No video titled {title!r}",
        )

    return VideoRecordResponse.from_record(record)
